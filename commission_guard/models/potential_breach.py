# models/potential_breach.py
from sqlalchemy import (
    Column, String, Text, Boolean, Date, DateTime, Integer, ForeignKey,
    CheckConstraint, Index, JSON, Uuid,
)
from sqlalchemy.orm import relationship
from uuid import uuid4
from datetime import datetime
from commission_guard.db.base_class import Base

UNRESOLVED_STATUSES = ("pending", "investigating")

class PotentialBreach(Base):
    __tablename__ = "potential_breaches"

    id = Column(Uuid, primary_key=True, default=uuid4)
    agent_id = Column(String(100), ForeignKey("users.id"), nullable=False)
    client_id = Column(Uuid, ForeignKey("clients.id"), nullable=False)
    contract_id = Column(Uuid, ForeignKey("contracts.id"), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=True)
    property_address = Column(Text, nullable=True)  # normalized, part of the dedup key
    breach_type = Column(String(30), nullable=False)
    detection_method = Column(String(20), nullable=False)
    detection_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    breach_date = Column(Date, nullable=True)
    evidence_data = Column(JSON, nullable=False)
    risk_level = Column(String(10), nullable=False, default="medium")
    estimated_commission_loss = Column(Integer, nullable=False, default=0)
    auto_detection_score = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending")
    admin_reviewer_id = Column(String(100), ForeignKey("users.id"), nullable=True)
    admin_notes = Column(Text, nullable=True)
    confirmation_date = Column(DateTime, nullable=True)
    agent_notified_date = Column(DateTime, nullable=True)
    resolution_date = Column(DateTime, nullable=True)
    resolution_outcome = Column(String(50), nullable=True)
    requires_legal_action = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "breach_type IN ('unauthorized_purchase','contract_violation','other')",
            name="chk_breach_type"
        ),
        CheckConstraint(
            "detection_method IN ('public_records','client_report','gps_tracking','manual')",
            name="chk_breach_detection_method"
        ),
        CheckConstraint("risk_level IN ('low','medium','high')", name="chk_breach_risk"),
        CheckConstraint(
            "status IN ('pending','investigating','confirmed','dismissed')",
            name="chk_breach_status"
        ),
        CheckConstraint("estimated_commission_loss >= 0", name="chk_breach_loss"),
        CheckConstraint("auto_detection_score BETWEEN 0 AND 100", name="chk_breach_score"),
        Index("idx_breach_agent_status", "agent_id", "status"),
        Index("idx_breach_dedup", "contract_id", "property_address", "breach_date"),
    )

    # Relationships
    agent = relationship("User", foreign_keys=[agent_id])
    client = relationship("Client")
    contract = relationship("Contract")
