"""
Exercise attempt model.
"""
from sqlmodel import SQLModel, Field
from typing import Optional, Dict, Any
from datetime import datetime
from sqlalchemy import Column, JSON, CheckConstraint, String as SAString

from app.models.ids import new_id
from app.models.timestamps import UTC_DATETIME, utc_now


class ExerciseAttempt(SQLModel, table=True):
    """ExerciseAttempt table - one graded submission for one paragraph."""
    __tablename__ = "exercise_attempt"
    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 100", name="exercise_attempt_score_range"),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    user_id: str = Field(foreign_key="user.id", index=True)
    paragraph_id: str = Field(foreign_key="paragraph.id", index=True)
    exercise_type: str = Field(sa_column=Column(SAString, nullable=False))
    user_answer: str
    correct_answer: Optional[str] = Field(default=None)
    score: int
    feedback: str = Field(default="")
    ai_analysis: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False, default=dict))
    time_spent_seconds: Optional[int] = Field(default=None, ge=0)
    completed_at: datetime = Field(default_factory=utc_now, sa_type=UTC_DATETIME)
    added_to_pdf: bool = Field(default=False)  # Flipped once by the textbook pipeline, never reverted
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTC_DATETIME)
