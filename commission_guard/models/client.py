# models/client.py
from sqlalchemy import Column, String, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4
from commission_guard.db.base_class import Base

class Client(Base):
    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid4)
    agent_id = Column(String(100), ForeignKey("users.id"), nullable=False)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)

    __table_args__ = (
        Index("idx_clients_agent", "agent_id"),
    )

    # Relationships
    agent = relationship("User", back_populates="clients")
    contracts = relationship("Contract", back_populates="client")
