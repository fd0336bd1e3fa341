"""
User model.
"""
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from sqlalchemy import Column, String as SAString

from app.models.enums import SubscriptionStatus
from app.models.ids import new_id
from app.models.timestamps import UTC_DATETIME, utc_now


class User(SQLModel, table=True):
    """User table - account, subscription state and textbook pointer."""
    __tablename__ = "user"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    email: str = Field(unique=True, index=True)
    name: Optional[str] = Field(default=None)
    native_language: Optional[str] = Field(default=None)  # Language code used for exercise translations
    native_language_name: Optional[str] = Field(default=None)
    subscription_status: str = Field(
        default=SubscriptionStatus.ACTIVE.value,
        sa_column=Column(SAString, nullable=False, default=SubscriptionStatus.ACTIVE.value)
    )
    last_exercise_date: Optional[datetime] = Field(default=None, sa_type=UTC_DATETIME)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTC_DATETIME)

    # Cumulative textbook
    pdf_url: Optional[str] = Field(default=None)
    pdf_lessons_count: int = Field(default=0)  # Lessons merged so far; next lesson is count + 1
    pdf_last_updated: Optional[datetime] = Field(default=None, sa_type=UTC_DATETIME)

    # Lease held while the textbook is being rewritten
    pdf_lock_token: Optional[str] = Field(default=None)
    pdf_locked_at: Optional[datetime] = Field(default=None, sa_type=UTC_DATETIME)

    @property
    def has_active_subscription(self) -> bool:
        return self.subscription_status == SubscriptionStatus.ACTIVE.value
