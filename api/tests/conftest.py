import json
import os

# Settings are read at import time, so the environment is fixed before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["GOOGLE_GEMINI_API_KEY"] = ""
os.environ["AWS_ACCESS_KEY_ID"] = ""
os.environ["AWS_SECRET_ACCESS_KEY"] = ""
os.environ["AWS_S3_BUCKET"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["INTERNAL_API_TOKEN"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from app.core.database import engine  # noqa: E402
from app.core.dependencies import (  # noqa: E402
    get_feedback_service,
    get_translation_service,
    get_storage_gateway,
    get_pdf_generator,
)
from app.main import app  # noqa: E402
from app.services.feedback_service import FeedbackService  # noqa: E402
from app.services.pdf_service import PdfGenerator  # noqa: E402
from app.services.translation_service import TranslationService  # noqa: E402
from tests.factories import make_gemini, make_gateway, create_user, create_paragraph  # noqa: E402
from tests.fakes import FakeRenderer, FakeS3Client, FEEDBACK_JSON, gemini_ok  # noqa: E402


@pytest.fixture
def session():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def s3():
    return FakeS3Client()


@pytest.fixture
def storage(s3):
    return make_gateway(s3)


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def generator(storage, renderer):
    return PdfGenerator(storage, render_pdf=renderer, lock_ttl_seconds=300)


@pytest.fixture
def client(session, storage, generator):
    """API client with AI, storage and rendering replaced by fakes."""
    feedback_service = FeedbackService(make_gemini(gemini_ok(json.dumps(FEEDBACK_JSON))))
    translation_service = TranslationService(make_gemini(gemini_ok("Cada sábado por la mañana...")))
    app.dependency_overrides[get_feedback_service] = lambda: feedback_service
    app.dependency_overrides[get_translation_service] = lambda: translation_service
    app.dependency_overrides[get_storage_gateway] = lambda: storage
    app.dependency_overrides[get_pdf_generator] = lambda: generator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user(session):
    return create_user(session)


@pytest.fixture
def paragraph(session):
    return create_paragraph(session)
