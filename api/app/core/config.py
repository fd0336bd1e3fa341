from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path
import logging

from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Look for .env in api directory (parent of app directory), then the current directory
api_dir = Path(__file__).parent.parent.parent
env_path = api_dir / ".env"

if env_path.exists():
    load_dotenv(env_path)
    _logger.info(f"Loaded .env file from: {env_path}")
elif Path(".env").exists():
    load_dotenv(Path(".env"))
    _logger.info(f"Loaded .env file from: {Path('.env').absolute()}")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database - Railway/Heroku style DATABASE_URL; SQLite for local development
    database_url: str = "sqlite:///./easyenglish.db"

    # API
    api_v1_prefix: str = "/api/v1"
    environment: str = "production"

    # CORS
    cors_origins: list[str] = ["*"]

    # Google Generative AI (Gemini) API
    google_gemini_api_key: str = ""
    gemini_feedback_model: str = "gemini-2.5-pro"
    gemini_translation_model: str = "gemini-2.5-flash"
    gemini_request_timeout: float = 30.0  # seconds per model call
    gemini_max_retries: int = 3
    gemini_initial_retry_delay: float = 1.0  # seconds, doubled on every retry

    # AWS S3 (user textbooks)
    aws_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_s3_bucket: str = ""
    aws_s3_endpoint_url: Optional[str] = None

    # Textbook PDF pipeline
    pdf_signed_url_ttl: int = 3600
    pdf_lock_ttl: int = 300
    pdf_job_max_attempts: int = 5

    # Auth
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    internal_api_token: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")


# Create settings instance
settings = Settings()
