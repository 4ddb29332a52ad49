"""
Snapshot model.
"""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, Text
from datetime import datetime, timezone


class Snapshot(SQLModel, table=True):
    """Snapshot table - one serialized collection per storage key."""
    __tablename__ = "snapshot"

    key: str = Field(primary_key=True, max_length=64)  # e.g. 'flashcards', 'quiz_attempts'
    payload: str = Field(sa_column=Column(Text, nullable=False))  # JSON document
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
