# models/contract.py
from sqlalchemy import Column, String, Text, Date, ForeignKey, CheckConstraint, Index, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4
from commission_guard.db.base_class import Base

class Contract(Base):
    __tablename__ = "contracts"

    id = Column(Uuid, primary_key=True, default=uuid4)
    agent_id = Column(String(100), ForeignKey("users.id"), nullable=False)
    client_id = Column(Uuid, ForeignKey("clients.id"), nullable=False)
    representation_type = Column(String(10), nullable=False)  # buyer, seller
    property_address = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("representation_type IN ('buyer','seller')", name="chk_contract_representation"),
        CheckConstraint("status IN ('active','expired','terminated')", name="chk_contract_status"),
        CheckConstraint("start_date < end_date", name="chk_contract_window"),
        Index("idx_contracts_agent_status", "agent_id", "status"),
        Index("idx_contracts_client", "client_id"),
    )

    # Relationships
    agent = relationship("User", back_populates="contracts")
    client = relationship("Client", back_populates="contracts")
