# File: database/models/store_model.py
from sqlalchemy import Column, String, JSON, DateTime, func
from database.db import Base


class StoredValue(Base):
    __tablename__ = "stored_values"

    # One row per store key, e.g. "analyses"
    key = Column(String(255), primary_key=True, index=True)

    # The whole list for the key, as JSON
    value = Column(JSON, nullable=False, default=list)

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )
