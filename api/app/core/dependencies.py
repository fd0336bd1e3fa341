"""
Providers for external-service clients.

Each client is built once from settings and handed to endpoints through
FastAPI's dependency injection, so tests can swap them with
app.dependency_overrides.
"""
from functools import lru_cache

from fastapi import Depends

from app.core.config import settings
from app.services.gemini_client import GeminiClient
from app.services.feedback_service import FeedbackService
from app.services.translation_service import TranslationService
from app.services.storage_service import StorageGateway
from app.services.pdf_service import PdfGenerator


def _gemini_client(model: str) -> GeminiClient:
    return GeminiClient(
        api_key=settings.google_gemini_api_key,
        model=model,
        timeout=settings.gemini_request_timeout,
        max_retries=settings.gemini_max_retries,
        initial_retry_delay=settings.gemini_initial_retry_delay,
    )


@lru_cache
def get_feedback_service() -> FeedbackService:
    return FeedbackService(_gemini_client(settings.gemini_feedback_model))


@lru_cache
def get_translation_service() -> TranslationService:
    return TranslationService(_gemini_client(settings.gemini_translation_model))


@lru_cache
def get_storage_gateway() -> StorageGateway:
    return StorageGateway(
        bucket=settings.aws_s3_bucket,
        region=settings.aws_region,
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
        endpoint_url=settings.aws_s3_endpoint_url,
    )


def get_pdf_generator(storage: StorageGateway = Depends(get_storage_gateway)) -> PdfGenerator:
    return PdfGenerator(storage, lock_ttl_seconds=settings.pdf_lock_ttl)
