"""
Builders for rows and service objects used across the tests.
"""
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.security import create_access_token
from app.models.ids import new_id
from app.models.models import User, Paragraph, ExerciseAttempt
from app.services.gemini_client import GeminiClient
from app.services.storage_service import StorageGateway
from tests.fakes import FakeHttp, FakeS3Client


def no_sleep(_seconds):
    pass


def make_gemini(*outcomes, api_key: str = "test-key") -> GeminiClient:
    return GeminiClient(api_key, "gemini-test", http=FakeHttp(*outcomes), sleep=no_sleep)


def make_gateway(s3=None, configured: bool = True) -> StorageGateway:
    if not configured:
        return StorageGateway(bucket="", region="us-east-1", access_key_id="", secret_access_key="")
    return StorageGateway(
        bucket="textbooks",
        region="us-east-1",
        access_key_id="test-key",
        secret_access_key="test-secret",
        client=s3 if s3 is not None else FakeS3Client(),
    )


def create_user(session: Session, **overrides) -> User:
    values = {
        "email": f"learner-{new_id()[:8]}@example.com",
        "name": "Test Learner",
        "native_language": "en",
        "subscription_status": "active",
    }
    values.update(overrides)
    user = User(**values)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def create_paragraph(session: Session, **overrides) -> Paragraph:
    content = overrides.pop(
        "content",
        "Every Saturday morning, Maria walks to the market near her house.\nShe buys fresh bread.",
    )
    values = {
        "title": "A Morning at the Market",
        "content": content,
        "difficulty": "beginner",
        "topics": ["daily life"],
        "word_count": Paragraph.count_words(content),
    }
    values.update(overrides)
    paragraph = Paragraph(**values)
    session.add(paragraph)
    session.commit()
    session.refresh(paragraph)
    return paragraph


def create_attempt(session: Session, user: User, paragraph: Paragraph, **overrides) -> ExerciseAttempt:
    values = {
        "user_id": user.id,
        "paragraph_id": paragraph.id,
        "exercise_type": "translation",
        "user_answer": "Cada sábado por la mañana, María camina al mercado.",
        "score": 85,
        "feedback": "Good work",
        "ai_analysis": {
            "strengths": ["Accurate meaning"],
            "improvements": ["Articles"],
            "suggestions": ["Read more"],
            "corrected_version": None,
            "grammar_mistakes": [],
            "tenses": ["Present Simple"],
            "key_vocabulary": [],
        },
        "completed_at": datetime(2026, 10, 5, 14, 30, tzinfo=timezone.utc),
    }
    values.update(overrides)
    attempt = ExerciseAttempt(**values)
    session.add(attempt)
    session.commit()
    session.refresh(attempt)
    return attempt


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
