# models/commission_protection.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, CheckConstraint, Index, JSON, Uuid
from uuid import uuid4
from commission_guard.db.base_class import Base

class CommissionProtection(Base):
    __tablename__ = "commission_protection"

    id = Column(Uuid, primary_key=True, default=uuid4)
    agent_id = Column(String(100), ForeignKey("users.id"), nullable=False)
    client_id = Column(Uuid, ForeignKey("clients.id"), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    protection_type = Column(String(20), nullable=False)  # showing, inquiry, negotiation, contract
    protection_date = Column(DateTime, nullable=False)
    expiration_date = Column(DateTime, nullable=True)
    evidence_type = Column(String(30), nullable=False)  # gps-tracking, signed-document, email-trail, witness
    evidence_data = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False, default="active")
    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('active','expired','claimed','disputed')", name="chk_protection_status"),
        Index("idx_protection_agent_status", "agent_id", "status"),
    )
