"""Normalization of raw fixture records into stored documents.

Everything here is pure: no I/O, no timestamps. Fixture files are written by
hand, so field values are coerced rather than validated. A value counts as
"given" unless it is None, False, zero or an empty string; empty lists and
mappings are given values and are kept as they are.
"""

import math
import re
from typing import Any

from .exceptions import InvalidRecordError
from .schemas import DEFAULT_BADGE_THRESHOLDS, ModuleDocument, QuestionDocument, QuizDocument

DEFAULT_QUIZ_TITLE = "Quiz"

# Leading optionally-signed decimal digits, after leading whitespace
_LEADING_INT = re.compile(r'^\s*([+-]?[0-9]+)')


def _given(value: Any) -> bool:
    """Return True unless value is None, False, zero, NaN or an empty string."""
    if value is None or value is False or value == "":
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    return True


def _or(raw: dict, key: str, default: Any) -> Any:
    value = raw.get(key)
    return value if _given(value) else default


def _present_or(raw: dict, key: str, default: Any) -> Any:
    value = raw.get(key)
    return default if value is None else value


def _js_string(value: Any) -> str:
    """Stringify a JSON scalar the way the web client renders it.

    True -> "true", None -> "null", 1.0 -> "1"; other values use str().
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def record_id(raw: Any, dataset: str) -> str:
    """Return the document id of a fixture record.

    Raises:
        InvalidRecordError: the record is not an object, or its id is not a
            string, is blank, or contains a path separator.
    """
    if not isinstance(raw, dict):
        raise InvalidRecordError(dataset, raw)
    doc_id = raw.get('id')
    if not isinstance(doc_id, str) or not doc_id.strip() or '/' in doc_id:
        raise InvalidRecordError(dataset, raw)
    return doc_id


def coerce_correct_index(value: Any) -> int:
    """Coerce a raw correctIndex into an int.

    Integer-valued numbers are used as they are. Anything else is read like a
    base-10 integer prefix ("2" -> 2, "2abc" -> 2, 2.7 -> 2); missing values and
    unparsable input give 0.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if value is None:
        return 0
    match = _LEADING_INT.match(str(value))
    if not match:
        return 0
    return int(match.group(1))


def normalize_question(raw: Any) -> QuestionDocument:
    """Normalize one embedded question; non-object entries become empty questions."""
    if not isinstance(raw, dict):
        raw = {}
    options = raw.get('options')
    return QuestionDocument(
        question=_js_string(_or(raw, 'question', "")),
        options=[_js_string(option) for option in options] if isinstance(options, list) else [],
        correct_index=coerce_correct_index(raw.get('correctIndex')),
        explanation=_js_string(_or(raw, 'explanation', "")),
    )


def normalize_quiz(raw: Any, fallback_module_id: str) -> QuizDocument:
    """Map a raw quiz record to its stored shape.

    Args:
        raw: Quiz object from a quizzes fixture
        fallback_module_id: Id of the module whose fixture the quiz came from

    Returns:
        QuizDocument without timestamps; the importer adds createdAt/updatedAt.
    """
    if not isinstance(raw, dict):
        raise InvalidRecordError('quizzes', raw)

    raw_questions = raw.get('questions')
    if isinstance(raw_questions, list):
        questions = [normalize_question(item) for item in raw_questions]
        question_count = len(raw_questions)
    else:
        questions = []
        question_count = 0

    return QuizDocument(
        id=raw.get('id'),
        module_id=_or(raw, 'moduleId', fallback_module_id),
        title=_or(raw, 'title', DEFAULT_QUIZ_TITLE),
        description=_or(raw, 'description', ""),
        duration_seconds=_present_or(raw, 'durationSeconds', None),
        allow_retake=_present_or(raw, 'allowRetake', True),
        order=_present_or(raw, 'order', 0),
        badge_thresholds=_or(raw, 'badgeThresholds', dict(DEFAULT_BADGE_THRESHOLDS)),
        questions=questions,
        question_count=question_count,
    )


def normalize_module(raw: dict) -> ModuleDocument:
    """Fill defaults for missing module metadata. Values are otherwise kept."""
    return ModuleDocument(
        title=_or(raw, 'title', ""),
        description=_or(raw, 'description', ""),
        count_fiches=_or(raw, 'countFiches', 0),
        count_videos=_or(raw, 'countVideos', 0),
        count_quizzes=_or(raw, 'countQuizzes', 0),
        tags=_or(raw, 'tags', []),
        image_url=_or(raw, 'imageUrl', ""),
    )
