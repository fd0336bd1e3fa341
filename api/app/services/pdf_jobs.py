"""
Durable queue of textbook updates.

A PdfJob row is written in the same transaction as the attempt it refers to.
Jobs are run right after the submission response by a FastAPI background task
and re-run by scripts/process_pdf_jobs.py until they succeed or exhaust their
attempts. Delivery is at-least-once; the generator's added_to_pdf guard makes
duplicate runs harmless.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from sqlalchemy import and_, or_
from sqlmodel import Session, select

from app.core import database
from app.models.models import PdfJob, PdfJobStatus
from app.services.pdf_service import PdfGenerator, PdfResult, PdfStage

logger = logging.getLogger(__name__)

# Failures another run can fix; anything else is terminal for the job
RETRYABLE_STAGES = {
    PdfStage.LOCK,
    PdfStage.RENDER,
    PdfStage.FETCH,
    PdfStage.MERGE,
    PdfStage.UPLOAD,
    PdfStage.PERSIST,
}


def enqueue_pdf_job(session: Session, user_id: str, attempt_id: str) -> PdfJob:
    """Add a pending job to the session (committed by the caller)."""
    job = PdfJob(user_id=user_id, attempt_id=attempt_id)
    session.add(job)
    return job


def execute_pdf_job(session: Session, job: PdfJob, generator: PdfGenerator, max_attempts: int = 5) -> PdfJob:
    """Run one job and record its outcome."""
    job.status = PdfJobStatus.RUNNING.value
    job.attempts += 1
    job.updated_at = datetime.now(timezone.utc)
    session.add(job)
    session.commit()
    job_id = job.id

    try:
        result = generator.generate_or_update_user_pdf(session, job.user_id, job.attempt_id)
    except Exception as e:
        session.rollback()
        logger.exception(f"PDF job {job_id} raised while generating")
        result = PdfResult.failed(PdfStage.PERSIST, f"Unexpected error: {e}")

    job = session.get(PdfJob, job_id)
    if result.success:
        job.status = PdfJobStatus.DONE.value
        job.last_error = None
        logger.info(f"PDF job {job.id} done (attempt {job.attempt_id}, skipped={result.skipped})")
    else:
        job.last_error = f"{result.stage.value}: {result.error}"
        retryable = result.stage in RETRYABLE_STAGES and job.attempts < max_attempts
        job.status = PdfJobStatus.PENDING.value if retryable else PdfJobStatus.FAILED.value
        logger.warning(f"PDF job {job.id} failed ({job.last_error}); status now {job.status}")
    job.updated_at = datetime.now(timezone.utc)
    session.add(job)
    session.commit()
    session.refresh(job)
    return job


def mark_job_done(session: Session, attempt_id: str) -> None:
    """Close the queued job of an attempt that was added to the textbook directly."""
    job = session.exec(select(PdfJob).where(PdfJob.attempt_id == attempt_id)).first()
    if job and job.status != PdfJobStatus.DONE.value:
        job.status = PdfJobStatus.DONE.value
        job.last_error = None
        job.updated_at = datetime.now(timezone.utc)
        session.add(job)
        session.commit()


def run_pdf_job(job_id: str, generator: PdfGenerator, max_attempts: int = 5) -> None:
    """
    Background task entry point.

    Creates its own database session; never raises, since nothing awaits it.
    """
    with Session(database.engine) as bg_session:
        try:
            job = bg_session.get(PdfJob, job_id)
            if not job:
                logger.warning(f"Background task: PDF job {job_id} not found")
                return
            if job.status != PdfJobStatus.PENDING.value:
                logger.info(f"Background task: PDF job {job_id} is {job.status}, skipping")
                return
            execute_pdf_job(bg_session, job, generator, max_attempts)
        except Exception:
            logger.exception(f"Background task: PDF job {job_id} crashed")


def process_pending_pdf_jobs(
    session: Session,
    generator: PdfGenerator,
    max_attempts: int = 5,
    limit: Optional[int] = None,
    stale_after_seconds: int = 900
) -> Dict[str, int]:
    """
    Run pending jobs oldest first, one at a time.

    Jobs stuck in running for longer than stale_after_seconds (a worker died
    mid-run) are picked up again.

    Returns:
        Counts of jobs by resulting status
    """
    stale_before = datetime.now(timezone.utc) - timedelta(seconds=stale_after_seconds)
    statement = (
        select(PdfJob)
        .where(or_(
            PdfJob.status == PdfJobStatus.PENDING.value,
            and_(PdfJob.status == PdfJobStatus.RUNNING.value, PdfJob.updated_at < stale_before),
        ))
        .order_by(PdfJob.created_at)
    )
    if limit:
        statement = statement.limit(limit)
    jobs = list(session.exec(statement).all())

    counts = {status.value: 0 for status in PdfJobStatus}
    for job in jobs:
        job = execute_pdf_job(session, job, generator, max_attempts)
        counts[job.status] += 1

    logger.info(f"Processed {len(jobs)} PDF job(s): {counts}")
    return counts
