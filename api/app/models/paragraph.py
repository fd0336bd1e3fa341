"""
Paragraph model.
"""
from sqlmodel import SQLModel, Field
from typing import List
from datetime import datetime
from sqlalchemy import Column, JSON, String as SAString

from app.models.ids import new_id
from app.models.timestamps import UTC_DATETIME, utc_now


class Paragraph(SQLModel, table=True):
    """Paragraph table - source texts that exercises are built on."""
    __tablename__ = "paragraph"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    title: str = Field(max_length=200)
    content: str
    difficulty: str = Field(sa_column=Column(SAString, nullable=False))  # 'beginner', 'intermediate' or 'advanced'
    language: str = Field(default="en", max_length=2)
    topics: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    word_count: int = Field(default=0)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTC_DATETIME)

    @staticmethod
    def count_words(content: str) -> int:
        return len([word for word in content.split() if word])
