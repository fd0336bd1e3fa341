from datetime import datetime, timedelta, timezone

from jose import jwt

from app.core.exceptions import EasyEnglishException, NotFoundError, ServiceUnavailableError
from app.core.security import create_access_token, decode_access_token
from app.main import status_code_for


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["database"] is True
    assert body["ai_feedback_configured"] is False
    assert body["storage_configured"] is False


def test_root(client):
    assert client.get("/").json()["message"] == "EasyEnglish API"


def test_access_token_round_trip():
    assert decode_access_token(create_access_token("a" * 32)) == "a" * 32


def test_expired_access_token_is_rejected():
    token = create_access_token("a" * 32, expires_delta=timedelta(seconds=-10))
    assert decode_access_token(token) is None


def test_token_signed_with_another_key_is_rejected():
    expire = datetime.now(timezone.utc) + timedelta(hours=1)
    token = jwt.encode({"sub": "a" * 32, "exp": expire}, "someone-else", algorithm="HS256")
    assert decode_access_token(token) is None


def test_token_without_subject_is_rejected():
    expire = datetime.now(timezone.utc) + timedelta(hours=1)
    token = jwt.encode({"exp": expire}, "test-secret", algorithm="HS256")
    assert decode_access_token(token) is None


def test_exception_status_codes_follow_class_hierarchy():
    class StaleAttemptError(NotFoundError):
        pass

    assert status_code_for(StaleAttemptError("gone")) == 404
    assert status_code_for(ServiceUnavailableError("down")) == 503
    assert status_code_for(EasyEnglishException("unknown")) == 500
