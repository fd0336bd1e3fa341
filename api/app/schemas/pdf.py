"""
Textbook PDF schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class GeneratePdfRequest(BaseModel):
    """Request to add an attempt to a user's textbook."""
    user_id: str = Field(..., description="User ID (32 hex characters)")
    attempt_id: str = Field(..., description="Exercise attempt ID (32 hex characters)")


class GeneratePdfResponse(BaseModel):
    success: bool = True
    message: str
    lesson_number: Optional[int] = None


class PdfDownloadResponse(BaseModel):
    """Signed download link for a user's textbook."""
    success: bool = True
    url: str
    expires_in: int
    lessons_count: int
    last_updated: Optional[datetime] = None
