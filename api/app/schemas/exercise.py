"""
Exercise submission schemas.
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from app.models.enums import ExerciseType


class SubmitExerciseRequest(BaseModel):
    """Request to grade an answer for an exercise."""
    exercise_type: ExerciseType = Field(..., description="Exercise type: translation, gap_fill, rewrite or comprehension")
    user_answer: str = Field(..., description="The student's answer")
    correct_answer: Optional[str] = Field(None, description="Optional reference answer")
    time_spent_seconds: Optional[int] = Field(None, ge=0, description="Seconds spent on the exercise")

    class Config:
        json_schema_extra = {
            "example": {
                "exercise_type": "translation",
                "user_answer": "Esta es mi traducción",
                "time_spent_seconds": 240
            }
        }


class AiAnalysis(BaseModel):
    """Structured feedback stored with an attempt."""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    corrected_version: Optional[str] = None
    grammar_mistakes: List[Dict[str, str]] = Field(default_factory=list)
    tenses: List[str] = Field(default_factory=list)
    key_vocabulary: List[Dict[str, str]] = Field(default_factory=list)


class SubmitExerciseResponse(BaseModel):
    """Response from grading an exercise."""
    success: bool = True
    attempt_id: str
    score: int = Field(..., ge=0, le=100)
    feedback: str
    ai_analysis: AiAnalysis
    completed: bool = Field(..., description="True when the score reaches the mastery threshold (70)")


class ExerciseResponse(BaseModel):
    """A paragraph as served to the exercise page."""
    id: str
    title: str
    content: str
    difficulty: str
    language: str
    topics: List[str]
    word_count: int
    estimated_minutes: int
    translation: Optional[str] = None
    translation_language: Optional[str] = None
    translation_error: Optional[str] = None


class ParagraphSummary(BaseModel):
    id: str
    title: str
    content: str
    difficulty: str
    language: str
    topics: List[str]


class AttemptDetail(BaseModel):
    id: str
    user_id: str
    paragraph_id: str
    exercise_type: str
    user_answer: str
    correct_answer: Optional[str] = None
    score: int
    feedback: str
    ai_analysis: AiAnalysis
    time_spent_seconds: Optional[int] = None
    completed_at: datetime
    added_to_pdf: bool


class AttemptDetailResponse(BaseModel):
    success: bool = True
    attempt: AttemptDetail
    paragraph: ParagraphSummary
