"""
Exercise endpoints: fetch, submit and review attempts.
"""
# pyright: reportAttributeAccessIssue=false
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session
import logging
import math

from app.core.config import settings
from app.core.database import get_session
from app.core.dependencies import get_feedback_service, get_translation_service, get_pdf_generator
from app.core.exceptions import NotFoundError, ValidationError
from app.core.security import get_current_user, require_active_subscription
from app.models.ids import is_valid_id
from app.models.models import User, Paragraph, ExerciseAttempt
from app.schemas.exercise import (
    SubmitExerciseRequest,
    SubmitExerciseResponse,
    ExerciseResponse,
    AttemptDetail,
    AttemptDetailResponse,
    ParagraphSummary,
    AiAnalysis,
)
from app.services.feedback_service import FeedbackService
from app.services.translation_service import TranslationService
from app.services.pdf_service import PdfGenerator
from app.services.pdf_jobs import run_pdf_job
from app.services.submission_service import submit_exercise, get_active_paragraph, is_completed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exercises", tags=["exercises"])

WORDS_PER_MINUTE = 50


@router.get("/attempts/{attempt_id}", response_model=AttemptDetailResponse)
def get_attempt(
    attempt_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Return one of the caller's graded attempts with its paragraph."""
    if not is_valid_id(attempt_id):
        raise ValidationError("Invalid attempt ID")

    attempt = session.get(ExerciseAttempt, attempt_id)
    if not attempt or attempt.user_id != user.id:
        raise NotFoundError("Attempt not found")

    paragraph = session.get(Paragraph, attempt.paragraph_id)
    if not paragraph:
        raise NotFoundError("Exercise not found")

    return AttemptDetailResponse(
        attempt=AttemptDetail(
            id=attempt.id,
            user_id=attempt.user_id,
            paragraph_id=attempt.paragraph_id,
            exercise_type=attempt.exercise_type,
            user_answer=attempt.user_answer,
            correct_answer=attempt.correct_answer,
            score=attempt.score,
            feedback=attempt.feedback,
            ai_analysis=AiAnalysis(**(attempt.ai_analysis or {})),
            time_spent_seconds=attempt.time_spent_seconds,
            completed_at=attempt.completed_at,
            added_to_pdf=attempt.added_to_pdf,
        ),
        paragraph=ParagraphSummary(
            id=paragraph.id,
            title=paragraph.title,
            content=paragraph.content,
            difficulty=paragraph.difficulty,
            language=paragraph.language,
            topics=paragraph.topics or [],
        ),
    )


@router.get("/{exercise_id}", response_model=ExerciseResponse)
def get_exercise(
    exercise_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    translation_service: TranslationService = Depends(get_translation_service)
):
    """
    Return a paragraph for the exercise page.

    When the user has a native language that differs from the paragraph's,
    a translation is attached. A failed translation is reported in
    translation_error rather than failing the request.
    """
    paragraph = get_active_paragraph(session, exercise_id)

    response = ExerciseResponse(
        id=paragraph.id,
        title=paragraph.title,
        content=paragraph.content,
        difficulty=paragraph.difficulty,
        language=paragraph.language,
        topics=paragraph.topics or [],
        word_count=paragraph.word_count,
        estimated_minutes=max(1, math.ceil(paragraph.word_count / WORDS_PER_MINUTE)),
    )

    native = (user.native_language or "").lower()
    if native and native != paragraph.language.lower():
        result = translation_service.translate_text(
            paragraph.content,
            source_language=paragraph.language,
            target_language=native,
            target_language_name=user.native_language_name,
        )
        response.translation_language = native
        if result.success:
            response.translation = result.translation
        else:
            logger.warning(f"Translation for paragraph {paragraph.id} into {native} failed: {result.error}")
            response.translation_error = result.error

    return response


@router.post("/{exercise_id}/submit", response_model=SubmitExerciseResponse)
def submit(
    exercise_id: str,
    request: SubmitExerciseRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_active_subscription),
    session: Session = Depends(get_session),
    feedback_service: FeedbackService = Depends(get_feedback_service),
    pdf_generator: PdfGenerator = Depends(get_pdf_generator)
):
    """
    Grade and store an answer.

    Grading falls back to a fixed score when AI feedback is unavailable, so a
    valid submission is always stored. The textbook update runs after the
    response is sent and cannot fail the submission.
    """
    attempt, job = submit_exercise(session, feedback_service, user, exercise_id, request)

    background_tasks.add_task(run_pdf_job, job.id, pdf_generator, settings.pdf_job_max_attempts)
    logger.info(f"PDF update scheduled for user {user.id} (attempt {attempt.id})")

    return SubmitExerciseResponse(
        attempt_id=attempt.id,
        score=attempt.score,
        feedback=attempt.feedback,
        ai_analysis=AiAnalysis(**attempt.ai_analysis),
        completed=is_completed(attempt.score),
    )
