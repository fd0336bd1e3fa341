"""
HTML template for one textbook lesson.

The markup sticks to what xhtml2pdf lays out reliably: block elements, tables
for side-by-side content, and simple CSS (no flexbox or grid).
"""
from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from typing import Dict, List, Optional

SCORE_GREEN = "#10b981"
SCORE_AMBER = "#f59e0b"
SCORE_ORANGE = "#f97316"
SCORE_RED = "#ef4444"
NEUTRAL_GREY = "#6b7280"

# Light backgrounds paired with each badge colour
BADGE_TINTS = {
    SCORE_GREEN: "#d1fae5",
    SCORE_AMBER: "#fef3c7",
    SCORE_ORANGE: "#ffedd5",
    SCORE_RED: "#fee2e2",
    NEUTRAL_GREY: "#f3f4f6",
}

DIFFICULTY_COLORS = {
    "beginner": SCORE_GREEN,
    "intermediate": SCORE_AMBER,
    "advanced": SCORE_RED,
}


@dataclass
class LessonRenderData:
    """Everything needed to draw one lesson; assembled from user, paragraph and attempt."""
    lesson_number: int
    title: str
    original_text: str
    user_translation: str
    score: int
    completed_at: datetime
    difficulty: str
    topics: List[str] = field(default_factory=list)
    corrected_version: Optional[str] = None
    grammar_mistakes: List[Dict[str, str]] = field(default_factory=list)
    key_vocabulary: List[Dict[str, str]] = field(default_factory=list)
    tenses: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


def score_color(score: int) -> str:
    if score >= 90:
        return SCORE_GREEN
    if score >= 70:
        return SCORE_AMBER
    if score >= 50:
        return SCORE_ORANGE
    return SCORE_RED


def difficulty_color(difficulty: str) -> str:
    return DIFFICULTY_COLORS.get((difficulty or "").lower(), NEUTRAL_GREY)


def escape_html(text) -> str:
    """Escape &, <, >, " and ' in user-originating text."""
    return escape(str(text if text is not None else ""), quote=True)


def escape_multiline(text) -> str:
    return escape_html(text).replace("\r\n", "\n").replace("\n", "<br>")


def format_date(value: datetime) -> str:
    return f"{value:%B} {value.day}, {value.year}"


STYLES = """
    @page {
      size: a4 portrait;
      margin: 0;
    }

    body {
      font-family: Helvetica, Arial, sans-serif;
      font-size: 12px;
      line-height: 1.6;
      color: #1f2937;
      background: #ffffff;
    }

    .page {
      padding: 40px 50px;
    }

    .header {
      margin-bottom: 24px;
      padding-bottom: 16px;
      border-bottom: 3px solid #8b5cf6;
    }

    .lesson-number {
      font-size: 14px;
      font-weight: bold;
      color: #8b5cf6;
      text-transform: uppercase;
      margin-bottom: 8px;
    }

    .title {
      font-size: 24px;
      font-weight: bold;
      color: #111827;
      margin-bottom: 12px;
    }

    .meta td {
      font-size: 11px;
      color: #6b7280;
      padding-right: 16px;
    }

    .badge {
      padding: 4px 12px;
      font-size: 10px;
      font-weight: bold;
    }

    .topic-tag {
      background: #ede9fe;
      color: #7c3aed;
      padding: 3px 10px;
      font-size: 10px;
      font-weight: bold;
    }

    .section {
      margin-bottom: 20px;
      page-break-inside: avoid;
    }

    .section-title {
      font-size: 14px;
      font-weight: bold;
      color: #111827;
      margin-bottom: 10px;
      padding-bottom: 4px;
      border-bottom: 2px solid #e5e7eb;
    }

    .text-box {
      background: #f9fafb;
      border: 1px solid #e5e7eb;
      padding: 12px;
    }

    .comparison td {
      background: #f9fafb;
      border: 1px solid #e5e7eb;
      padding: 10px;
      vertical-align: top;
      width: 50%;
    }

    .comparison-label {
      font-size: 10px;
      font-weight: bold;
      color: #6b7280;
      text-transform: uppercase;
      margin-bottom: 6px;
    }

    .comparison-text {
      font-size: 11px;
      color: #374151;
    }

    .mistake-card {
      background: #fef2f2;
      border-left: 3px solid #ef4444;
      padding: 10px;
      margin-bottom: 8px;
    }

    .mistake-original { font-size: 11px; color: #dc2626; }
    .mistake-correction { font-size: 11px; color: #059669; }
    .mistake-explanation { font-size: 10px; color: #6b7280; font-style: italic; }

    .vocab-card {
      background: #eff6ff;
      border-left: 3px solid #3b82f6;
      padding: 10px;
      margin-bottom: 8px;
    }

    .vocab-word { font-size: 12px; font-weight: bold; color: #1e40af; }
    .vocab-definition { font-size: 11px; color: #374151; }
    .vocab-example { font-size: 10px; color: #6b7280; font-style: italic; }

    .tense-tag {
      background: #f3f4f6;
      border: 1px solid #d1d5db;
      padding: 3px 10px;
      font-size: 10px;
      font-weight: bold;
      color: #374151;
    }

    .feedback-item {
      padding: 6px 10px;
      margin-bottom: 6px;
      font-size: 11px;
    }

    .feedback-item.strength { background: #f0fdf4; border-left: 3px solid #10b981; color: #065f46; }
    .feedback-item.improvement { background: #fffbeb; border-left: 3px solid #f59e0b; color: #92400e; }
    .feedback-item.suggestion { background: #eff6ff; border-left: 3px solid #3b82f6; color: #1e40af; }

    .footer {
      margin-top: 32px;
      padding-top: 16px;
      border-top: 2px solid #e5e7eb;
      text-align: center;
      font-size: 10px;
      color: #9ca3af;
    }
"""


def _badge(text: str, color: str, css_class: str) -> str:
    tint = BADGE_TINTS.get(color, BADGE_TINTS[NEUTRAL_GREY])
    return (
        f'<span class="badge {css_class}" style="background-color: {tint}; color: {color};">'
        f'{text}</span>'
    )


def _topics_html(topics: List[str]) -> str:
    if not topics:
        return ""
    tags = " ".join(f'<span class="topic-tag">{escape_html(topic)}</span>' for topic in topics)
    return f'<div class="topic-tags">{tags}</div>'


def _grammar_section(mistakes: List[Dict[str, str]]) -> str:
    if not mistakes:
        return ""
    cards = "".join(
        '<div class="mistake-card">'
        f'<div class="mistake-original">&#10007; {escape_html(m.get("mistake"))}</div>'
        f'<div class="mistake-correction">&#10003; {escape_html(m.get("correction"))}</div>'
        f'<div class="mistake-explanation">{escape_html(m.get("explanation"))}</div>'
        '</div>'
        for m in mistakes
    )
    return (
        '<div class="section">'
        f'<h2 class="section-title">Grammar Corrections ({len(mistakes)})</h2>'
        f'{cards}</div>'
    )


def _tenses_section(tenses: List[str]) -> str:
    if not tenses:
        return ""
    tags = " ".join(f'<span class="tense-tag">{escape_html(tense)}</span>' for tense in tenses)
    return (
        '<div class="section">'
        '<h2 class="section-title">Grammar Tenses Used</h2>'
        f'<div class="tense-tags">{tags}</div></div>'
    )


def _vocabulary_section(vocabulary: List[Dict[str, str]]) -> str:
    if not vocabulary:
        return ""
    cards = "".join(
        '<div class="vocab-card">'
        f'<div class="vocab-word">{escape_html(v.get("word"))}</div>'
        f'<div class="vocab-definition">{escape_html(v.get("definition"))}</div>'
        f'<div class="vocab-example">&quot;{escape_html(v.get("example"))}&quot;</div>'
        '</div>'
        for v in vocabulary
    )
    return (
        '<div class="section">'
        f'<h2 class="section-title">Key Vocabulary ({len(vocabulary)})</h2>'
        f'{cards}</div>'
    )


def _list_section(title: str, items: List[str], item_class: str) -> str:
    if not items:
        return ""
    entries = "".join(f'<div class="feedback-item {item_class}">{escape_html(item)}</div>' for item in items)
    return (
        '<div class="section">'
        f'<h2 class="section-title">{title}</h2>'
        f'{entries}</div>'
    )


def render_lesson_html(data: LessonRenderData) -> str:
    """
    Render one lesson as a standalone HTML document.

    Pure function of its input: user text is escaped, newlines become <br>,
    and every feedback section whose list is empty is left out.
    """
    title = escape_html(data.title)
    color = score_color(data.score)
    corrected = data.corrected_version or data.user_translation
    difficulty = escape_html(data.difficulty)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Lesson {data.lesson_number}: {title}</title>
  <style>{STYLES}</style>
</head>
<body>
<div class="page">
  <div class="header">
    <div class="lesson-number">Lesson {data.lesson_number}</div>
    <h1 class="title">{title}</h1>
    <table class="meta"><tr>
      <td>{format_date(data.completed_at)}</td>
      <td>{_badge(difficulty, difficulty_color(data.difficulty), "badge-difficulty")}</td>
      <td>{_badge(f"Score: {data.score}%", color, "badge-score")}</td>
    </tr></table>
    {_topics_html(data.topics)}
  </div>

  <div class="section">
    <h2 class="section-title">Original Text</h2>
    <div class="text-box">{escape_multiline(data.original_text)}</div>
  </div>

  <div class="section">
    <h2 class="section-title">Your Translation vs. Corrected Version</h2>
    <table class="comparison"><tr>
      <td>
        <div class="comparison-label">Your Translation</div>
        <div class="comparison-text">{escape_multiline(data.user_translation)}</div>
      </td>
      <td>
        <div class="comparison-label">Corrected Version</div>
        <div class="comparison-text">{escape_multiline(corrected)}</div>
      </td>
    </tr></table>
  </div>

  {_grammar_section(data.grammar_mistakes)}
  {_tenses_section(data.tenses)}
  {_vocabulary_section(data.key_vocabulary)}
  {_list_section("Strengths", data.strengths, "strength")}
  {_list_section("Areas for Improvement", data.improvements, "improvement")}
  {_list_section("Suggestions", data.suggestions, "suggestion")}

  <div class="footer">
    <p>EasyEnglish Learning Textbook - Lesson {data.lesson_number} - {format_date(data.completed_at)}</p>
    <p>Keep up the great work!</p>
  </div>
</div>
</body>
</html>"""
