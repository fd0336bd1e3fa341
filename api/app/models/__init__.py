"""
Models package - imports all models so SQLModel registers their tables.
"""
# Import enums first
from app.models.enums import SubscriptionStatus, DifficultyLevel, ExerciseType, PdfJobStatus

# Import all models
from app.models.user import User
from app.models.paragraph import Paragraph
from app.models.exercise_attempt import ExerciseAttempt
from app.models.pdf_job import PdfJob

__all__ = [
    'SubscriptionStatus',
    'DifficultyLevel',
    'ExerciseType',
    'PdfJobStatus',
    'User',
    'Paragraph',
    'ExerciseAttempt',
    'PdfJob',
]
