from sqlmodel import select

from app.core.dependencies import get_feedback_service, get_translation_service, get_pdf_generator
from app.main import app
from app.models.models import ExerciseAttempt, PdfJob, PdfJobStatus, User
from app.models.ids import new_id
from app.services.feedback_service import FeedbackService
from app.services.pdf_service import PdfGenerator
from app.services.storage_service import key_for_user
from app.services.translation_service import TranslationService
from tests.factories import auth_headers, create_attempt, create_paragraph, create_user, make_gateway, make_gemini
from tests.fakes import FakeRenderer, FakeResponse, gemini_ok, page_texts

ANSWER = {
    "exercise_type": "translation",
    "user_answer": "Cada sábado por la mañana, María camina al mercado.",
    "time_spent_seconds": 240,
}


def submit(client, user, exercise_id, body=None, headers=None):
    return client.post(
        f"/api/v1/exercises/{exercise_id}/submit",
        json=ANSWER if body is None else body,
        headers=auth_headers(user) if headers is None else headers,
    )


def stored_attempts(session):
    session.expire_all()
    return session.exec(select(ExerciseAttempt)).all()


def test_submit_grades_stores_and_builds_textbook(client, session, s3, user, paragraph):
    response = submit(client, user, paragraph.id)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["score"] == 85
    assert body["completed"] is True
    assert body["feedback"] == "A solid translation with minor slips."
    assert body["ai_analysis"]["tenses"] == ["Present Simple"]
    assert body["ai_analysis"]["grammar_mistakes"][0]["mistake"] == "walk to market"

    session.expire_all()
    attempt = session.get(ExerciseAttempt, body["attempt_id"])
    assert attempt.user_id == user.id
    assert attempt.score == 85
    assert attempt.time_spent_seconds == 240

    # The background task has run by the time TestClient returns
    assert attempt.added_to_pdf
    job = session.exec(select(PdfJob).where(PdfJob.attempt_id == attempt.id)).one()
    assert job.status == PdfJobStatus.DONE.value
    stored_user = session.get(User, user.id)
    assert stored_user.pdf_lessons_count == 1
    assert stored_user.last_exercise_date is not None
    assert page_texts(s3.objects[key_for_user(user.id)]) == ["lesson-1"]


def test_score_below_mastery_is_not_completed(client, user, paragraph):
    feedback = FeedbackService(make_gemini(gemini_ok('{"score": 69, "overallFeedback": "Close"}')))
    app.dependency_overrides[get_feedback_service] = lambda: feedback

    body = submit(client, user, paragraph.id).json()

    assert body["score"] == 69
    assert body["completed"] is False


def test_submit_survives_non_text_overall_feedback(client, session, user, paragraph):
    feedback = FeedbackService(make_gemini(gemini_ok('{"score": 80, "overallFeedback": ["Nice", "work"]}')))
    app.dependency_overrides[get_feedback_service] = lambda: feedback

    response = submit(client, user, paragraph.id)

    assert response.status_code == 200
    body = response.json()
    assert body["score"] == 80
    assert body["feedback"] == "Good effort!"
    attempts = stored_attempts(session)
    assert len(attempts) == 1
    assert attempts[0].feedback == "Good effort!"


def test_submit_survives_infinite_score(client, session, user, paragraph):
    feedback = FeedbackService(make_gemini(gemini_ok('{"score": 1e999, "overallFeedback": "Great"}')))
    app.dependency_overrides[get_feedback_service] = lambda: feedback

    response = submit(client, user, paragraph.id)

    assert response.status_code == 200
    assert response.json()["score"] == 100
    assert stored_attempts(session)[0].score == 100


def test_submit_without_ai_configured_uses_fallback_grade(client, session, user, paragraph):
    feedback = FeedbackService(make_gemini(gemini_ok("unused"), api_key=""))
    app.dependency_overrides[get_feedback_service] = lambda: feedback

    response = submit(client, user, paragraph.id)

    assert response.status_code == 200
    body = response.json()
    assert body["score"] == 50
    assert body["completed"] is False
    assert body["feedback"] == "AI feedback service is currently unavailable. Your submission has been recorded."
    assert body["ai_analysis"]["improvements"] == ["AI feedback unavailable - please try again later"]
    assert [a.score for a in stored_attempts(session)] == [50]


def test_submit_when_ai_fails_uses_fallback_grade(client, session, user, paragraph):
    feedback = FeedbackService(make_gemini(FakeResponse(500, {"error": {"status": "INTERNAL"}})))
    app.dependency_overrides[get_feedback_service] = lambda: feedback

    body = submit(client, user, paragraph.id).json()

    assert body["score"] == 50
    assert body["feedback"] == "Unable to generate detailed feedback at this time. Your submission has been recorded."
    assert body["ai_analysis"]["suggestions"] == ["Try submitting again or contact support"]
    assert len(stored_attempts(session)) == 1


def test_textbook_failure_does_not_fail_submission(client, session, user, paragraph):
    generator = PdfGenerator(make_gateway(configured=False), render_pdf=FakeRenderer())
    app.dependency_overrides[get_pdf_generator] = lambda: generator

    response = submit(client, user, paragraph.id)

    assert response.status_code == 200
    attempt = stored_attempts(session)[0]
    assert not attempt.added_to_pdf
    job = session.exec(select(PdfJob).where(PdfJob.attempt_id == attempt.id)).one()
    assert job.status == PdfJobStatus.FAILED.value
    assert job.last_error.startswith("config: ")


def test_blank_answer_is_rejected(client, session, user, paragraph):
    response = submit(client, user, paragraph.id, body={**ANSWER, "user_answer": "   \n"})

    assert response.status_code == 400
    assert response.json()["detail"] == "User answer cannot be empty"
    assert stored_attempts(session) == []


def test_blank_answer_is_rejected_before_paragraph_lookup(client, user):
    response = submit(client, user, new_id(), body={**ANSWER, "user_answer": ""})
    assert response.status_code == 400


def test_invalid_exercise_type_is_rejected(client, user, paragraph):
    response = submit(client, user, paragraph.id, body={**ANSWER, "exercise_type": "essay"})
    assert response.status_code == 400


def test_missing_answer_is_rejected(client, user, paragraph):
    response = submit(client, user, paragraph.id, body={"exercise_type": "translation"})
    assert response.status_code == 400


def test_negative_time_spent_is_rejected(client, user, paragraph):
    response = submit(client, user, paragraph.id, body={**ANSWER, "time_spent_seconds": -5})
    assert response.status_code == 400


def test_malformed_exercise_id_is_rejected(client, user):
    response = submit(client, user, "not-an-id")

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid exercise ID"


def test_unknown_exercise_is_not_found(client, user):
    assert submit(client, user, new_id()).status_code == 404


def test_inactive_exercise_is_not_found(client, session, user):
    paragraph = create_paragraph(session, is_active=False)
    assert submit(client, user, paragraph.id).status_code == 404


def test_missing_token_is_unauthorized(client, paragraph, user):
    response = submit(client, user, paragraph.id, headers={})

    assert response.status_code == 401
    assert response.json()["type"] == "AuthenticationError"


def test_invalid_token_is_unauthorized(client, paragraph, user):
    response = submit(client, user, paragraph.id, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_token_for_unknown_user_is_unauthorized(client, session, paragraph):
    ghost = User(id=new_id(), email="ghost@example.com")
    assert submit(client, ghost, paragraph.id).status_code == 401


def test_inactive_subscription_is_forbidden(client, session, paragraph):
    user = create_user(session, subscription_status="expired")

    response = submit(client, user, paragraph.id, body={**ANSWER, "user_answer": ""})

    assert response.status_code == 403
    assert response.json()["detail"] == "Active subscription required"


def test_trial_subscription_is_forbidden(client, session, paragraph):
    user = create_user(session, subscription_status="trial")
    assert submit(client, user, paragraph.id).status_code == 403


def test_get_exercise_with_translation(client, session, paragraph):
    user = create_user(session, native_language="es", native_language_name="Spanish")

    response = client.get(f"/api/v1/exercises/{paragraph.id}", headers=auth_headers(user))

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "A Morning at the Market"
    assert body["estimated_minutes"] == 1
    assert body["translation_language"] == "es"
    assert body["translation"] == "Cada sábado por la mañana..."
    assert body["translation_error"] is None


def test_get_exercise_without_translation_for_english_speakers(client, user, paragraph):
    body = client.get(f"/api/v1/exercises/{paragraph.id}", headers=auth_headers(user)).json()

    assert body["translation"] is None
    assert body["translation_language"] is None


def test_get_exercise_reports_failed_translation(client, session, paragraph):
    user = create_user(session, native_language="es")
    translation = TranslationService(make_gemini(gemini_ok("")))
    app.dependency_overrides[get_translation_service] = lambda: translation

    response = client.get(f"/api/v1/exercises/{paragraph.id}", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["translation"] is None
    assert response.json()["translation_error"] == "Empty translation received"


def test_get_attempt_returns_owned_attempt(client, session, user, paragraph):
    attempt = create_attempt(session, user, paragraph)

    response = client.get(f"/api/v1/exercises/attempts/{attempt.id}", headers=auth_headers(user))

    assert response.status_code == 200
    body = response.json()
    assert body["attempt"]["score"] == 85
    assert body["attempt"]["added_to_pdf"] is False
    assert body["paragraph"]["id"] == paragraph.id


def test_get_attempt_of_another_user_is_not_found(client, session, user, paragraph):
    attempt = create_attempt(session, create_user(session), paragraph)

    response = client.get(f"/api/v1/exercises/attempts/{attempt.id}", headers=auth_headers(user))

    assert response.status_code == 404
