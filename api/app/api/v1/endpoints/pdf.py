"""
Textbook PDF endpoints.
"""
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlmodel import Session
from typing import Optional
import logging
import secrets

from app.core.config import settings
from app.core.database import get_session
from app.core.dependencies import get_pdf_generator, get_storage_gateway
from app.core.exceptions import AuthorizationError, NotFoundError, ServiceUnavailableError, ValidationError
from app.core.security import require_active_subscription
from app.models.ids import is_valid_id
from app.models.models import User
from app.schemas.pdf import GeneratePdfRequest, GeneratePdfResponse, PdfDownloadResponse
from app.services.pdf_jobs import mark_job_done
from app.services.pdf_service import PdfGenerator
from app.services.storage_service import StorageGateway, key_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pdf", tags=["pdf"])


def verify_internal_token(x_internal_token: Optional[str] = Header(None)) -> None:
    """When INTERNAL_API_TOKEN is set, only callers presenting it may trigger generation."""
    expected = settings.internal_api_token
    if expected and not secrets.compare_digest(x_internal_token or "", expected):
        raise AuthorizationError("Invalid internal token")


@router.post("/generate", response_model=GeneratePdfResponse, dependencies=[Depends(verify_internal_token)])
def generate_pdf(
    request: GeneratePdfRequest,
    session: Session = Depends(get_session),
    pdf_generator: PdfGenerator = Depends(get_pdf_generator)
):
    """
    Add an attempt to its user's textbook.

    Safe to call repeatedly: an attempt already in the textbook is a no-op.
    """
    if not is_valid_id(request.user_id) or not is_valid_id(request.attempt_id):
        raise ValidationError("Invalid user_id or attempt_id format")

    logger.info(f"PDF generation requested for user {request.user_id}, attempt {request.attempt_id}")
    result = pdf_generator.generate_or_update_user_pdf(session, request.user_id, request.attempt_id)

    if not result.success:
        logger.error(f"PDF generation failed at {result.stage.value}: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"stage": result.stage.value, "error": result.error or "PDF generation failed"}
        )

    mark_job_done(session, request.attempt_id)
    return GeneratePdfResponse(
        message="PDF generated/updated successfully",
        lesson_number=result.lesson_number,
    )


@router.get("/download", response_model=PdfDownloadResponse)
def download_pdf(
    user: User = Depends(require_active_subscription),
    storage: StorageGateway = Depends(get_storage_gateway)
):
    """Return a time-limited download link for the caller's textbook."""
    if not storage.is_configured:
        raise ServiceUnavailableError("PDF download service not configured")

    if not user.pdf_url or not user.pdf_lessons_count:
        raise NotFoundError("No PDF available yet. Complete some exercises to generate your textbook!")

    ttl = settings.pdf_signed_url_ttl
    signed = storage.signed_url(key_for_user(user.id), ttl)
    if not signed.success:
        logger.error(f"Failed to generate signed URL for user {user.id}: {signed.error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate download URL"
        )

    return PdfDownloadResponse(
        url=signed.url,
        expires_in=ttl,
        lessons_count=user.pdf_lessons_count,
        last_updated=user.pdf_last_updated,
    )
