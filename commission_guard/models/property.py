# models/property.py
from sqlalchemy import Column, String, Text, Index, Uuid
from uuid import uuid4
from commission_guard.db.base_class import Base

class Property(Base):
    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid4)
    mls_number = Column(String(50), nullable=True)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(10), nullable=True)
    county = Column(String(100), nullable=True)
    listing_agent = Column(String(200), nullable=True)

    __table_args__ = (
        Index("idx_properties_address", "address"),
    )
