# models/alert.py
from sqlalchemy import Column, String, Text, Boolean, ForeignKey, CheckConstraint, Index, Uuid
from uuid import uuid4
from commission_guard.db.base_class import Base

class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Uuid, primary_key=True, default=uuid4)
    agent_id = Column(String(100), ForeignKey("users.id"), nullable=False)
    contract_id = Column(Uuid, ForeignKey("contracts.id"), nullable=True)
    client_id = Column(Uuid, ForeignKey("clients.id"), nullable=True)
    breach_id = Column(Uuid, ForeignKey("potential_breaches.id"), nullable=True)
    type = Column(String(30), nullable=False)  # breach, breach_confirmed, expiration
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(String(10), nullable=False, default="medium")
    is_read = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint("severity IN ('low','medium','high','critical')", name="chk_alert_severity"),
        Index("idx_alerts_agent_read", "agent_id", "is_read"),
    )
