"""
Exercise submission: grading, persistence and textbook queueing.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlmodel import Session, select

from app.core.exceptions import NotFoundError, ValidationError
from app.models.ids import is_valid_id
from app.models.models import User, Paragraph, ExerciseAttempt, PdfJob
from app.schemas.exercise import SubmitExerciseRequest
from app.services.feedback_service import FeedbackService
from app.services.pdf_jobs import enqueue_pdf_job

logger = logging.getLogger(__name__)

MASTERY_SCORE = 70  # An exercise counts as completed at or above this score
FALLBACK_SCORE = 50


@dataclass
class Grade:
    score: int
    feedback: str
    ai_analysis: Dict[str, Any] = field(default_factory=dict)


def _fallback_analysis(improvement: str, suggestion: str) -> Dict[str, Any]:
    return {
        "strengths": ["You completed the exercise"],
        "improvements": [improvement],
        "suggestions": [suggestion],
        "corrected_version": None,
        "grammar_mistakes": [],
        "tenses": [],
        "key_vocabulary": [],
    }


def grade_answer(
    feedback_service: FeedbackService,
    exercise_type: str,
    original_text: str,
    user_answer: str,
    correct_answer: Optional[str] = None
) -> Grade:
    """
    Grade an answer, substituting a fixed fallback grade when AI feedback is
    not configured or fails. Never raises for AI problems.
    """
    if not feedback_service.is_configured:
        logger.warning("Gemini API not configured, using fallback feedback")
        return Grade(
            score=FALLBACK_SCORE,
            feedback="AI feedback service is currently unavailable. Your submission has been recorded.",
            ai_analysis=_fallback_analysis(
                "AI feedback unavailable - please try again later",
                "Contact support if this issue persists",
            ),
        )

    result = feedback_service.generate_feedback(exercise_type, original_text, user_answer, correct_answer)
    if result.success and result.feedback:
        return Grade(
            score=result.feedback.score,
            feedback=result.feedback.overall_feedback,
            ai_analysis=result.feedback.analysis(),
        )

    logger.error(f"Feedback generation failed: {result.error}")
    return Grade(
        score=FALLBACK_SCORE,
        feedback="Unable to generate detailed feedback at this time. Your submission has been recorded.",
        ai_analysis=_fallback_analysis(
            "AI feedback temporarily unavailable",
            "Try submitting again or contact support",
        ),
    )


def get_active_paragraph(session: Session, exercise_id: str) -> Paragraph:
    """Load an active paragraph by id (400 on malformed id, 404 if missing)."""
    if not is_valid_id(exercise_id):
        raise ValidationError("Invalid exercise ID")

    paragraph = session.exec(
        select(Paragraph).where(Paragraph.id == exercise_id, Paragraph.is_active == True)  # noqa: E712
    ).first()
    if not paragraph:
        raise NotFoundError("Exercise not found")
    return paragraph


def update_user_stats(session: Session, user_id: str) -> None:
    """
    Record the user's last exercise date.

    Best effort: failures are logged and never reach the caller.
    """
    try:
        user = session.get(User, user_id)
        if user:
            user.last_exercise_date = datetime.now(timezone.utc)
            session.add(user)
            session.commit()
        logger.info(f"User stats updated for user {user_id}")
    except Exception as e:
        session.rollback()
        logger.error(f"Failed to update user stats for user {user_id}: {str(e)}")


def submit_exercise(
    session: Session,
    feedback_service: FeedbackService,
    user: User,
    exercise_id: str,
    request: SubmitExerciseRequest
) -> Tuple[ExerciseAttempt, PdfJob]:
    """
    Grade and store a submission.

    The attempt and its textbook job are committed together, so every stored
    attempt has a queued textbook update.

    Returns:
        Tuple of (stored attempt, pending PdfJob)

    Raises:
        ValidationError: Malformed id or blank answer
        NotFoundError: Paragraph missing or inactive
    """
    if not is_valid_id(exercise_id):
        raise ValidationError("Invalid exercise ID")

    if not request.user_answer.strip():
        raise ValidationError("User answer cannot be empty")

    paragraph = get_active_paragraph(session, exercise_id)

    exercise_type = request.exercise_type.value
    grade = grade_answer(
        feedback_service,
        exercise_type,
        paragraph.content,
        request.user_answer,
        request.correct_answer,
    )

    attempt = ExerciseAttempt(
        user_id=user.id,
        paragraph_id=paragraph.id,
        exercise_type=exercise_type,
        user_answer=request.user_answer,
        correct_answer=request.correct_answer or None,
        score=grade.score,
        feedback=grade.feedback,
        ai_analysis=grade.ai_analysis,
        time_spent_seconds=request.time_spent_seconds,
        completed_at=datetime.now(timezone.utc),
    )
    session.add(attempt)
    session.flush()  # Insert the attempt before the job that references it
    job = enqueue_pdf_job(session, user.id, attempt.id)
    session.commit()
    session.refresh(attempt)
    session.refresh(job)

    logger.info(
        f"Stored attempt {attempt.id} for user {user.id} on paragraph {paragraph.id} "
        f"(score {attempt.score}); PDF job {job.id} queued"
    )

    update_user_stats(session, user.id)
    return attempt, job


def is_completed(score: int) -> bool:
    return score >= MASTERY_SCORE
