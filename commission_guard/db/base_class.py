# db/base_class.py
from datetime import datetime
from sqlalchemy import Column, DateTime, MetaData
from sqlalchemy.orm import as_declarative, declared_attr

# Deterministic constraint names so migrations can address them
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


@as_declarative(metadata=MetaData(naming_convention=NAMING_CONVENTION))
class Base:
    """Declarative base for every Commission Guard table; rows carry audit timestamps."""
    id: any
    __name__: str

    # Fallback table name; models set __tablename__ explicitly
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
