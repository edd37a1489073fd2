"""
Database Table Definitions.

This module defines the SQL schema using SQLModel.
We use the 'DBModel' suffix to distinguish these persistence models
from the Pydantic state models (SessionRegistry, SessionState).
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StoredRecordDBModel(SQLModel, table=True):
    """
    One durable key holding a raw JSON document.
    Each schema generation of the registry lives under its own key.
    """

    __tablename__ = "stored_records"

    key: str = Field(primary_key=True)

    # Raw text rather than a JSON column: a record that no longer parses must
    # still be readable so the migration engine can skip it.
    value: str = Field(sa_column=Column(Text, nullable=False))

    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
