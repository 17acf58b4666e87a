# models/property_visit.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, Integer, ForeignKey, CheckConstraint, Index, Uuid
from uuid import uuid4
from commission_guard.db.base_class import Base

class PropertyVisit(Base):
    __tablename__ = "property_visits"

    id = Column(Uuid, primary_key=True, default=uuid4)
    agent_id = Column(String(100), ForeignKey("users.id"), nullable=False)
    client_id = Column(Uuid, ForeignKey("clients.id"), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    showing_id = Column(Uuid, ForeignKey("showings.id"), nullable=True)
    visit_date = Column(DateTime, nullable=False)
    visit_type = Column(String(20), nullable=False)  # showing, drive-by, walk-by, online-view
    duration_minutes = Column(Integer, nullable=True)
    agent_present = Column(Boolean, default=False)
    was_scheduled = Column(Boolean, default=False)
    discovery_method = Column(String(30), nullable=True)  # gps, client-report, agent-observation, system
    risk_level = Column(String(10), default="low")
    follow_up_required = Column(Boolean, default=False)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("risk_level IN ('low','medium','high')", name="chk_visit_risk"),
        Index("idx_visits_client", "client_id"),
        Index("idx_visits_showing", "showing_id"),
    )
