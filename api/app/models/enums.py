"""
Model enums.
"""
from enum import Enum


class SubscriptionStatus(str, Enum):
    """Billing state of a user's subscription."""
    ACTIVE = "active"
    CANCELED = "canceled"
    EXPIRED = "expired"
    TRIAL = "trial"


class DifficultyLevel(str, Enum):
    """Difficulty of a paragraph."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ExerciseType(str, Enum):
    """Kinds of exercise a paragraph can be practiced with."""
    TRANSLATION = "translation"
    GAP_FILL = "gap_fill"
    REWRITE = "rewrite"
    COMPREHENSION = "comprehension"


class PdfJobStatus(str, Enum):
    """Lifecycle of a queued textbook update."""
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
