# models/user.py
from sqlalchemy import Column, String, Boolean, CheckConstraint
from sqlalchemy.orm import relationship
from commission_guard.db.base_class import Base

class User(Base):
    """Agents, brokers and admins. The id is the subject issued by the identity provider."""
    __tablename__ = "users"

    id = Column(String(100), primary_key=True)
    email = Column(String(255), unique=True, nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default="agent")
    license_number = Column(String(50), nullable=True)
    brokerage = Column(String(200), nullable=True)
    is_active = Column(Boolean, default=True)

    __table_args__ = (
        CheckConstraint("role IN ('agent','broker','admin')", name="chk_user_role"),
    )

    # Relationships
    clients = relationship("Client", back_populates="agent")
    contracts = relationship("Contract", back_populates="agent")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def identifying_strings(self) -> list:
        """Strings that identify this agent on an external sale record."""
        return [s for s in (self.id, self.full_name, self.license_number) if s]
