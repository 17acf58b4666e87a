# models/showing.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint, Index, Uuid
from uuid import uuid4
from commission_guard.db.base_class import Base

class Showing(Base):
    __tablename__ = "showings"

    id = Column(Uuid, primary_key=True, default=uuid4)
    agent_id = Column(String(100), ForeignKey("users.id"), nullable=False)
    client_id = Column(Uuid, ForeignKey("clients.id"), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    scheduled_date = Column(DateTime, nullable=False)
    actual_start_time = Column(DateTime, nullable=True)
    actual_end_time = Column(DateTime, nullable=True)
    showing_type = Column(String(20), nullable=False, default="scheduled")  # scheduled, walk-in, drive-by
    status = Column(String(20), nullable=False, default="scheduled")
    agent_present = Column(Boolean, default=True)
    agent_notes = Column(Text, nullable=True)
    interest_level = Column(String(20), nullable=True)
    commission_protected = Column(Boolean, default=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled','in-progress','completed','cancelled','no-show')",
            name="chk_showing_status"
        ),
        Index("idx_showings_agent_status", "agent_id", "status"),
        Index("idx_showings_scheduled", "scheduled_date"),
    )
