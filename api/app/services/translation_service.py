from app.core.exceptions import ErrorKind
from app.services.gemini_client import GeminiClient, GeminiError
from dataclasses import dataclass
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class TranslationResult:
    success: bool
    translation: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


class TranslationService:
    """Service for translating exercise text using Gemini."""

    def __init__(self, client: GeminiClient):
        self.client = client
        logger.info(f"TranslationService initialized. API key present: {client.is_configured}")

    @property
    def is_configured(self) -> bool:
        return self.client.is_configured

    def translate_text(
        self,
        text: str,
        source_language: str,
        target_language: str,
        target_language_name: Optional[str] = None
    ) -> TranslationResult:
        """
        Translate text from source language to target language.

        Args:
            text: Text to translate
            source_language: Source language code (e.g., 'en')
            target_language: Target language code (e.g., 'es')
            target_language_name: Human-readable target language (e.g., 'Spanish')

        Returns:
            TranslationResult; an empty model response is a failure, not an empty translation
        """
        if not self.is_configured:
            logger.error("Gemini API not configured")
            return TranslationResult(
                success=False,
                error="Translation service not configured",
                error_kind=ErrorKind.NOT_CONFIGURED,
            )

        target = target_language_name or target_language
        prompt = (
            f"Translate the following text from {source_language} to {target}. "
            "Provide only the translation without any explanations or additional text.\n\n"
            f"Text to translate:\n{text}"
        )

        try:
            translation = self.client.generate_text(prompt, temperature=0.2).strip()
        except GeminiError as e:
            logger.error(f"Translation failed ({e.kind.value}): {e}")
            return TranslationResult(success=False, error=str(e), error_kind=e.kind)

        if not translation:
            return TranslationResult(
                success=False,
                error="Empty translation received",
                error_kind=ErrorKind.EMPTY_RESPONSE,
            )

        logger.info(f"Translation successful: {source_language} -> {target_language}")
        return TranslationResult(success=True, translation=translation)
