"""
Textbook update job model.
"""
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from sqlalchemy import Column, String as SAString

from app.models.enums import PdfJobStatus
from app.models.ids import new_id
from app.models.timestamps import UTC_DATETIME, utc_now


class PdfJob(SQLModel, table=True):
    """PdfJob table - durable queue of pending textbook updates, one per attempt."""
    __tablename__ = "pdf_job"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    user_id: str = Field(foreign_key="user.id", index=True)
    attempt_id: str = Field(foreign_key="exercise_attempt.id", unique=True)
    status: str = Field(
        default=PdfJobStatus.PENDING.value,
        sa_column=Column(SAString, nullable=False, index=True, default=PdfJobStatus.PENDING.value)
    )
    attempts: int = Field(default=0)
    last_error: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTC_DATETIME)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=UTC_DATETIME)
