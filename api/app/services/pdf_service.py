"""
Cumulative textbook generation.

Each graded attempt becomes one lesson: the lesson is rendered to HTML, turned
into PDF pages with xhtml2pdf, appended to the user's existing textbook with
PyPDF2 and written back to the single per-user object in storage.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from io import BytesIO
from typing import Callable, Iterator, Optional

from PyPDF2 import PdfReader, PdfWriter
from sqlalchemy import or_, update
from sqlmodel import Session
from xhtml2pdf import pisa

from app.core.exceptions import ErrorKind
from app.models.models import User, Paragraph, ExerciseAttempt
from app.models.ids import new_id
from app.services.pdf_template import LessonRenderData, render_lesson_html
from app.services.storage_service import StorageGateway, key_for_user

logger = logging.getLogger(__name__)


class PdfStage(str, Enum):
    """Pipeline stage a textbook update failed in."""
    CONFIG = "config"
    NOT_FOUND = "not_found"
    LOCK = "lock"
    RENDER = "render"
    FETCH = "fetch"
    MERGE = "merge"
    UPLOAD = "upload"
    PERSIST = "persist"


@dataclass
class PdfResult:
    success: bool
    error: Optional[str] = None
    stage: Optional[PdfStage] = None
    lesson_number: Optional[int] = None
    skipped: bool = False  # Attempt was already in the textbook

    @classmethod
    def failed(cls, stage: PdfStage, error: str) -> "PdfResult":
        return cls(success=False, stage=stage, error=error)


class PdfRenderError(Exception):
    """Raised when the HTML-to-PDF engine reports errors."""
    pass


@contextmanager
def pdf_renderer() -> Iterator[BytesIO]:
    """Provide an output buffer for one render and always release it."""
    output = BytesIO()
    try:
        yield output
    finally:
        output.close()


def html_to_pdf(html: str) -> bytes:
    """Render an HTML document to PDF bytes."""
    with pdf_renderer() as output:
        status = pisa.CreatePDF(src=html, dest=output, encoding="utf-8")
        if status.err:
            raise PdfRenderError(f"xhtml2pdf reported {status.err} error(s)")
        return output.getvalue()


def merge_pdfs(existing_pdf: bytes, new_lesson_pdf: bytes) -> bytes:
    """Build a new document with all existing pages followed by all new pages."""
    writer = PdfWriter()
    for source in (existing_pdf, new_lesson_pdf):
        reader = PdfReader(BytesIO(source))
        for page in reader.pages:
            writer.add_page(page)

    output = BytesIO()
    writer.write(output)
    return output.getvalue()


def build_lesson_data(
    lesson_number: int,
    paragraph: Paragraph,
    attempt: ExerciseAttempt
) -> LessonRenderData:
    """Project paragraph + attempt into the data the lesson template needs."""
    analysis = attempt.ai_analysis or {}
    return LessonRenderData(
        lesson_number=lesson_number,
        title=paragraph.title,
        original_text=paragraph.content,
        user_translation=attempt.user_answer,
        corrected_version=analysis.get("corrected_version"),
        score=attempt.score,
        completed_at=attempt.completed_at,
        difficulty=paragraph.difficulty,
        topics=list(paragraph.topics or []),
        grammar_mistakes=analysis.get("grammar_mistakes") or [],
        key_vocabulary=analysis.get("key_vocabulary") or [],
        tenses=analysis.get("tenses") or [],
        strengths=analysis.get("strengths") or [],
        improvements=analysis.get("improvements") or [],
        suggestions=analysis.get("suggestions") or [],
    )


def acquire_user_lock(session: Session, user_id: str, ttl_seconds: int) -> Optional[str]:
    """
    Take the per-user textbook lease.

    Succeeds when no lease is held or the held one is older than ttl_seconds.

    Returns:
        The lease token, or None if another update holds the lease
    """
    token = new_id()
    now = datetime.now(timezone.utc)
    statement = (
        update(User)
        .where(User.id == user_id)
        .where(or_(User.pdf_lock_token.is_(None), User.pdf_locked_at < now - timedelta(seconds=ttl_seconds)))
        .values(pdf_lock_token=token, pdf_locked_at=now)
        .execution_options(synchronize_session=False)
    )
    result = session.execute(statement)
    session.commit()
    return token if result.rowcount == 1 else None


def release_user_lock(session: Session, user_id: str, token: str) -> None:
    statement = (
        update(User)
        .where(User.id == user_id)
        .where(User.pdf_lock_token == token)
        .values(pdf_lock_token=None, pdf_locked_at=None)
        .execution_options(synchronize_session=False)
    )
    session.execute(statement)
    session.commit()


class PdfGenerator:
    """Adds graded attempts to users' cumulative textbooks."""

    def __init__(
        self,
        storage: StorageGateway,
        render_pdf: Callable[[str], bytes] = html_to_pdf,
        lock_ttl_seconds: int = 300,
    ):
        self.storage = storage
        self.render_pdf = render_pdf
        self.lock_ttl_seconds = lock_ttl_seconds

    def generate_or_update_user_pdf(self, session: Session, user_id: str, attempt_id: str) -> PdfResult:
        """
        Append the lesson for an attempt to the user's textbook.

        An attempt already marked added_to_pdf is a successful no-op. Any
        failure leaves added_to_pdf false so the update can be retried.
        """
        if not self.storage.is_configured:
            logger.warning("AWS not configured - PDF generation skipped")
            return PdfResult.failed(PdfStage.CONFIG, "AWS credentials not configured")

        attempt = session.get(ExerciseAttempt, attempt_id)
        if not attempt or attempt.user_id != user_id:
            return PdfResult.failed(PdfStage.NOT_FOUND, "Exercise attempt not found")

        if attempt.added_to_pdf:
            logger.info(f"Attempt {attempt_id} already added to PDF, skipping")
            return PdfResult(success=True, skipped=True)

        token = acquire_user_lock(session, user_id, self.lock_ttl_seconds)
        if token is None:
            if session.get(User, user_id) is None:
                return PdfResult.failed(PdfStage.NOT_FOUND, "User not found")
            logger.info(f"Textbook for user {user_id} is being updated elsewhere; attempt {attempt_id} deferred")
            return PdfResult.failed(PdfStage.LOCK, "PDF update already in progress for this user")

        try:
            return self._update_locked(session, user_id, attempt_id)
        finally:
            release_user_lock(session, user_id, token)

    def _update_locked(self, session: Session, user_id: str, attempt_id: str) -> PdfResult:
        # Re-read under the lease: a concurrent run may have finished meanwhile
        attempt = session.get(ExerciseAttempt, attempt_id)
        if attempt.added_to_pdf:
            logger.info(f"Attempt {attempt_id} was added to PDF by a concurrent update, skipping")
            return PdfResult(success=True, skipped=True)

        paragraph = session.get(Paragraph, attempt.paragraph_id)
        if not paragraph:
            return PdfResult.failed(PdfStage.NOT_FOUND, "Paragraph not found")

        user = session.get(User, user_id)
        if not user:
            return PdfResult.failed(PdfStage.NOT_FOUND, "User not found")

        lesson_number = (user.pdf_lessons_count or 0) + 1
        lesson_data = build_lesson_data(lesson_number, paragraph, attempt)

        logger.info(f"Generating PDF lesson {lesson_number} for user {user_id}...")
        try:
            new_lesson_pdf = self.render_pdf(render_lesson_html(lesson_data))
        except Exception as e:
            logger.error(f"Rendering lesson {lesson_number} for user {user_id} failed: {e}", exc_info=True)
            return PdfResult.failed(PdfStage.RENDER, f"Failed to render lesson: {e}")

        pdf_key = key_for_user(user_id)
        existing = self.storage.download(pdf_key)

        if existing.success:
            logger.info(f"Merging with existing PDF for user {user_id}...")
            try:
                final_pdf = merge_pdfs(existing.data, new_lesson_pdf)
            except Exception as e:
                logger.error(f"Merging PDF for user {user_id} failed: {e}", exc_info=True)
                return PdfResult.failed(PdfStage.MERGE, f"Failed to merge PDF: {e}")
        elif existing.error_kind == ErrorKind.NOT_FOUND:
            logger.info(f"No existing PDF found, creating new PDF for user {user_id}...")
            final_pdf = new_lesson_pdf
        else:
            return PdfResult.failed(PdfStage.FETCH, f"Failed to download existing PDF: {existing.error}")

        upload = self.storage.upload(pdf_key, final_pdf)
        if not upload.success:
            return PdfResult.failed(PdfStage.UPLOAD, f"Failed to upload PDF: {upload.error}")

        try:
            user.pdf_url = upload.url
            user.pdf_lessons_count = lesson_number
            user.pdf_last_updated = datetime.now(timezone.utc)
            attempt.added_to_pdf = True
            session.add(user)
            session.add(attempt)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Saving textbook state for user {user_id} failed: {e}", exc_info=True)
            return PdfResult.failed(PdfStage.PERSIST, f"Failed to update user PDF state: {e}")

        logger.info(f"Successfully generated PDF for user {user_id} (lesson {lesson_number})")
        return PdfResult(success=True, lesson_number=lesson_number)
