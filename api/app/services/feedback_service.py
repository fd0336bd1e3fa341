"""
AI feedback generation for exercise submissions.
"""
import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.core.exceptions import ErrorKind
from app.models.enums import ExerciseType
from app.services.gemini_client import GeminiClient, GeminiError

logger = logging.getLogger(__name__)

# First "{" through last "}" - tolerates prose or code fences around the JSON
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

DEFAULT_OVERALL_FEEDBACK = "Good effort!"


@dataclass
class Feedback:
    """Structured feedback parsed from a model response."""
    score: int
    strengths: List[str]
    improvements: List[str]
    suggestions: List[str]
    overall_feedback: str
    corrected_version: Optional[str] = None
    grammar_mistakes: List[Dict[str, str]] = field(default_factory=list)
    tenses: List[str] = field(default_factory=list)
    key_vocabulary: List[Dict[str, str]] = field(default_factory=list)

    def analysis(self) -> Dict[str, Any]:
        """The ai_analysis payload stored on an attempt."""
        return {
            "strengths": self.strengths,
            "improvements": self.improvements,
            "suggestions": self.suggestions,
            "corrected_version": self.corrected_version,
            "grammar_mistakes": self.grammar_mistakes,
            "tenses": self.tenses,
            "key_vocabulary": self.key_vocabulary,
        }


@dataclass
class FeedbackResult:
    success: bool
    feedback: Optional[Feedback] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


def fallback_feedback() -> Feedback:
    """Feedback used when the model output cannot be parsed."""
    return Feedback(
        score=50,
        strengths=["You completed the exercise"],
        improvements=["Continue practicing"],
        suggestions=["Review the material and try again"],
        overall_feedback="Thank you for completing this exercise. Keep practicing!",
    )


def clamp_score(value: Any) -> int:
    """Coerce a model-provided score into an int in [0, 100]."""
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0
    except OverflowError:
        # Integers too large for a float
        return 100 if value > 0 else 0
    if math.isnan(score):
        return 0
    # Infinities clamp like any other out-of-range number
    return int(round(min(100.0, max(0.0, score))))


def _list_or_empty(value: Any) -> list:
    return value if isinstance(value, list) else []


def _text_or_default(value: Any, default: Optional[str]) -> Optional[str]:
    return value if isinstance(value, str) and value.strip() else default


def _text_items(value: Any) -> List[str]:
    """Keep scalar entries as strings; nested lists and objects are dropped."""
    return [str(item) for item in _list_or_empty(value) if isinstance(item, (str, int, float)) and str(item).strip()]


def _dict_items(value: Any, keys: tuple) -> List[Dict[str, str]]:
    """Keep only dict entries, normalised to the expected string keys."""
    items = []
    for entry in _list_or_empty(value):
        if isinstance(entry, dict):
            items.append({key: str(entry.get(key) or "") for key in keys})
    return items


def parse_feedback_response(response_text: str) -> Feedback:
    """
    Parse the JSON feedback object out of a free-form model response.

    Never raises: anything that is not a JSON object yields fallback_feedback().
    """
    match = JSON_OBJECT_PATTERN.search(response_text or "")
    if not match:
        logger.warning("No JSON object found in feedback response; using fallback feedback")
        return fallback_feedback()

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse feedback response: {e}; using fallback feedback")
        return fallback_feedback()

    if not isinstance(parsed, dict):
        return fallback_feedback()

    return Feedback(
        score=clamp_score(parsed.get("score") or 0),
        strengths=_text_items(parsed.get("strengths")),
        improvements=_text_items(parsed.get("improvements")),
        suggestions=_text_items(parsed.get("suggestions")),
        overall_feedback=_text_or_default(parsed.get("overallFeedback"), DEFAULT_OVERALL_FEEDBACK),
        corrected_version=_text_or_default(parsed.get("correctedVersion"), None),
        grammar_mistakes=_dict_items(parsed.get("grammarMistakes"), ("mistake", "correction", "explanation")),
        tenses=_text_items(parsed.get("tenses")),
        key_vocabulary=_dict_items(parsed.get("keyVocabulary"), ("word", "definition", "example")),
    )


BASIC_JSON_FORMAT = """{{
  "score": <number between 0-100>,
  "strengths": [<array of 2-3 specific strengths{strength_suffix}>],
  "improvements": [<array of 2-3 {improvement_phrase}>],
  "suggestions": [<array of 2-3 actionable suggestions>],
  "overallFeedback": "<brief 2-3 sentence summary>"
}}"""

TRANSLATION_JSON_FORMAT = """{
  "score": <number between 0-100>,
  "strengths": [<array of 2-3 specific strengths in the translation>],
  "improvements": [<array of 2-3 specific areas that need improvement>],
  "suggestions": [<array of 2-3 actionable suggestions for better translation>],
  "overallFeedback": "<brief 2-3 sentence summary of the translation quality>",
  "correctedVersion": "<the corrected/improved version of the student's translation>",
  "grammarMistakes": [
    {
      "mistake": "<specific mistake from student's text>",
      "correction": "<corrected version>",
      "explanation": "<brief explanation of the grammar rule>"
    }
  ],
  "tenses": [<array of key tenses used or needed in the translation, e.g., "Present Simple", "Past Perfect">],
  "keyVocabulary": [
    {
      "word": "<important vocabulary word from the text>",
      "definition": "<simple definition>",
      "example": "<example sentence using the word>"
    }
  ]
}"""

JSON_ONLY = "Respond ONLY with valid JSON, no additional text."


def _basic_format(strength_suffix: str = "", improvement_phrase: str = "specific areas that need improvement") -> str:
    return BASIC_JSON_FORMAT.format(strength_suffix=strength_suffix, improvement_phrase=improvement_phrase)


def _criteria(items: List[str]) -> str:
    return "Evaluate based on:\n" + "\n".join(f"- {item}" for item in items)


def build_feedback_prompt(
    exercise_type: str,
    original_text: str,
    user_answer: str,
    correct_answer: Optional[str] = None
) -> str:
    """Build the grading prompt for an exercise type."""
    def reference(label: str) -> str:
        return f"{label}:\n{correct_answer}\n\n" if correct_answer else ""

    if exercise_type == ExerciseType.TRANSLATION.value:
        return (
            "You are an English language teacher evaluating a student's translation exercise.\n\n"
            f"Original Text:\n{original_text}\n\n"
            f"Student's Translation:\n{user_answer}\n\n"
            f"{reference('Reference Translation')}"
            f"Please provide detailed feedback in the following JSON format:\n{TRANSLATION_JSON_FORMAT}\n\n"
            + _criteria([
                "Accuracy of meaning",
                "Natural language flow",
                "Grammar and vocabulary",
                "Context preservation",
            ])
            + f"\n\n{JSON_ONLY}"
        )

    if exercise_type == ExerciseType.GAP_FILL.value:
        return (
            "You are an English language teacher evaluating a student's gap-fill exercise.\n\n"
            f"Original Text with Gaps:\n{original_text}\n\n"
            f"Student's Answer:\n{user_answer}\n\n"
            f"{reference('Correct Answer')}"
            f"Please provide detailed feedback in the following JSON format:\n{_basic_format()}\n\n"
            + _criteria([
                "Correctness of filled words",
                "Grammar and context appropriateness",
                "Vocabulary choice",
            ])
            + f"\n\n{JSON_ONLY}"
        )

    if exercise_type == ExerciseType.REWRITE.value:
        return (
            "You are an English language teacher evaluating a student's text rewriting exercise.\n\n"
            f"Original Text:\n{original_text}\n\n"
            f"Student's Rewrite:\n{user_answer}\n\n"
            f"Please provide detailed feedback in the following JSON format:\n{_basic_format(' in the rewrite')}\n\n"
            + _criteria([
                "Preservation of original meaning",
                "Improved clarity and style",
                "Grammar and vocabulary enhancement",
                "Natural English flow",
            ])
            + f"\n\n{JSON_ONLY}"
        )

    if exercise_type == ExerciseType.COMPREHENSION.value:
        return (
            "You are an English language teacher evaluating a student's comprehension exercise.\n\n"
            f"Text:\n{original_text}\n\n"
            f"Student's Answer:\n{user_answer}\n\n"
            f"{reference('Model Answer')}"
            "Please provide detailed feedback in the following JSON format:\n"
            f"{_basic_format(' in understanding', 'areas where understanding could improve')}\n\n"
            + _criteria([
                "Accuracy of comprehension",
                "Depth of understanding",
                "Relevance to question",
                "Clarity of expression",
            ])
            + f"\n\n{JSON_ONLY}"
        )

    return (
        "You are an English language teacher providing feedback on a student's exercise.\n\n"
        f"Exercise:\n{original_text}\n\n"
        f"Student's Answer:\n{user_answer}\n\n"
        f"Please provide detailed feedback in the following JSON format:\n{_basic_format()}\n\n"
        f"{JSON_ONLY}"
    )


class FeedbackService:
    """Service for grading exercise answers with Gemini."""

    def __init__(self, client: GeminiClient):
        self.client = client

    @property
    def is_configured(self) -> bool:
        return self.client.is_configured

    def generate_feedback(
        self,
        exercise_type: str,
        original_text: str,
        user_answer: str,
        correct_answer: Optional[str] = None
    ) -> FeedbackResult:
        """
        Grade an answer.

        Args:
            exercise_type: ExerciseType value (unknown types use a generic prompt)
            original_text: The paragraph the exercise is based on
            user_answer: The student's answer
            correct_answer: Optional reference answer

        Returns:
            FeedbackResult. Unparseable model output still succeeds with fallback
            feedback; only configuration and transport failures are unsuccessful.
        """
        if not self.is_configured:
            logger.error("Gemini API not configured")
            return FeedbackResult(
                success=False,
                error="AI feedback service not configured",
                error_kind=ErrorKind.NOT_CONFIGURED,
            )

        prompt = build_feedback_prompt(exercise_type, original_text, user_answer, correct_answer)
        try:
            response_text = self.client.generate_text(prompt)
        except GeminiError as e:
            logger.error(f"Feedback generation error ({e.kind.value}): {e}")
            return FeedbackResult(success=False, error=str(e), error_kind=e.kind)

        feedback = parse_feedback_response(response_text)
        logger.info(f"Feedback generated successfully for {exercise_type} exercise (score {feedback.score})")
        return FeedbackResult(success=True, feedback=feedback)
