import pytest
import requests

from app.core.exceptions import ErrorKind
from app.services.gemini_client import GeminiClient, GeminiError, classify_http_error
from tests.fakes import FakeHttp, FakeResponse, gemini_ok, gemini_payload


def make_client(*outcomes, max_retries=3):
    delays = []
    http = FakeHttp(*outcomes)
    client = GeminiClient(
        "test-key",
        "gemini-test",
        timeout=12.5,
        max_retries=max_retries,
        initial_retry_delay=1.0,
        http=http,
        sleep=delays.append,
    )
    return client, http, delays


def test_generate_text_posts_prompt_with_key_and_timeout():
    client, http, _ = make_client(gemini_ok("  hello  "))

    assert client.generate_text("Say hello", temperature=0.2) == "hello"

    call = http.calls[0]
    assert call["url"].endswith("/gemini-test:generateContent")
    assert call["params"] == {"key": "test-key"}
    assert call["timeout"] == 12.5
    assert call["json"]["contents"][0]["parts"][0]["text"] == "Say hello"
    assert call["json"]["generationConfig"]["temperature"] == 0.2


def test_candidate_parts_are_joined():
    payload = {"candidates": [{"content": {"parts": [{"text": "Hello, "}, {"text": "world"}]}}]}
    client, _, _ = make_client(FakeResponse(200, payload))
    assert client.generate_text("x") == "Hello, world"


def test_missing_key_is_not_configured_without_a_request():
    http = FakeHttp(gemini_ok("unused"))
    client = GeminiClient("", "gemini-test", http=http)

    with pytest.raises(GeminiError) as exc_info:
        client.generate_text("x")

    assert exc_info.value.kind == ErrorKind.NOT_CONFIGURED
    assert http.calls == []


def test_rate_limit_is_retried_with_doubling_delay():
    client, http, delays = make_client(
        FakeResponse(429, {"error": {"status": "RESOURCE_EXHAUSTED"}}),
        FakeResponse(429, {"error": {"status": "RESOURCE_EXHAUSTED"}}),
        gemini_ok("finally"),
    )

    assert client.generate_text("x") == "finally"
    assert len(http.calls) == 3
    assert delays == [1.0, 2.0]


def test_timeout_is_retried_then_reported():
    client, http, delays = make_client(requests.exceptions.Timeout("slow"), max_retries=2)

    with pytest.raises(GeminiError) as exc_info:
        client.generate_text("x")

    assert exc_info.value.kind == ErrorKind.TIMEOUT
    assert len(http.calls) == 3
    assert delays == [1.0, 2.0]


def test_other_upstream_errors_fail_immediately():
    client, http, delays = make_client(FakeResponse(500, {"error": {"status": "INTERNAL"}}))

    with pytest.raises(GeminiError) as exc_info:
        client.generate_text("x")

    assert exc_info.value.kind == ErrorKind.UPSTREAM
    assert not exc_info.value.retryable
    assert len(http.calls) == 1
    assert delays == []


def test_connection_error_is_upstream():
    client, _, _ = make_client(requests.exceptions.ConnectionError("refused"))

    with pytest.raises(GeminiError) as exc_info:
        client.generate_text("x")

    assert exc_info.value.kind == ErrorKind.UPSTREAM


def test_unexpected_response_shape_is_upstream():
    client, _, _ = make_client(FakeResponse(200, {"promptFeedback": {"blockReason": "SAFETY"}}))

    with pytest.raises(GeminiError) as exc_info:
        client.generate_text("x")

    assert exc_info.value.kind == ErrorKind.UPSTREAM


@pytest.mark.parametrize("response, expected", [
    (FakeResponse(429, text="Too Many Requests"), ErrorKind.RATE_LIMITED),
    (FakeResponse(400, {"error": {"status": "RESOURCE_EXHAUSTED"}}), ErrorKind.RATE_LIMITED),
    (FakeResponse(400, {"error": {"status": "INVALID_ARGUMENT"}}), ErrorKind.UPSTREAM),
    (FakeResponse(503, text="<html>unavailable</html>"), ErrorKind.UPSTREAM),
])
def test_classify_http_error(response, expected):
    assert classify_http_error(response) == expected


def test_call_with_retry_gives_up_after_max_retries():
    client, _, delays = make_client(gemini_ok("unused"), max_retries=3)
    calls = []

    def always_rate_limited():
        calls.append(1)
        raise GeminiError(ErrorKind.RATE_LIMITED, "quota")

    with pytest.raises(GeminiError):
        client.call_with_retry(always_rate_limited)

    assert len(calls) == 4
    assert delays == [1.0, 2.0, 4.0]


def test_gemini_payload_helper_matches_client_parsing():
    client, _, _ = make_client(FakeResponse(200, gemini_payload("ok")))
    assert client.generate_text("x") == "ok"
