"""
Question Bank Storage
=====================
JSON interchange format for question banks: an object keyed by
question-number strings, each value carrying ``question``, ``answers``,
``community_answer``, ``proposed_answer`` and ``community_answer_score``.

The same format is written on export and accepted on import, so a bank
survives a save/load round trip unchanged.

Directory Layout:
    output/
    ├── {bank_id}_questions.json    # Interchange format
    └── {bank_id}_validation.json   # Validation report
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from .errors import ImportFormatError
from .models import Question, QuestionNumber

logger = logging.getLogger(__name__)

MAX_IMPORT_BYTES = 10 * 1024 * 1024  # 10MB

_NUMBER_KEY = re.compile(r"\d+")


# ─── Interchange Conversion ───────────────────────────────────────────────────


def questions_to_dict(
    questions: dict[QuestionNumber, Question],
) -> dict[str, dict]:
    """Question map -> interchange dict (source order preserved)."""
    return {
        number: question.to_interchange()
        for number, question in questions.items()
    }


def questions_from_dict(data: object) -> dict[QuestionNumber, Question]:
    """
    Interchange dict -> question map.

    Raises:
        ImportFormatError: If the structure does not match the format.
    """
    if not isinstance(data, dict):
        raise ImportFormatError(
            f"Expected a JSON object of questions, got {type(data).__name__}"
        )

    questions: dict[QuestionNumber, Question] = {}
    for key, value in data.items():
        if not isinstance(key, str) or not _NUMBER_KEY.fullmatch(key):
            raise ImportFormatError(f"Invalid question number key: {key!r}")
        if not isinstance(value, dict):
            raise ImportFormatError(f"Question {key}: expected an object")

        try:
            questions[key] = Question.model_validate(
                {**value, "question_number": key}
            )
        except ValidationError as e:
            raise ImportFormatError(f"Question {key}: {e}") from e

    return questions


def dumps_questions(
    questions: dict[QuestionNumber, Question], indent: int = 2
) -> str:
    return json.dumps(
        questions_to_dict(questions), indent=indent, ensure_ascii=False
    )


def loads_questions(
    raw: Union[str, bytes],
    max_bytes: int = MAX_IMPORT_BYTES,
) -> dict[QuestionNumber, Question]:
    """
    Parse a JSON document in interchange format.

    Raises:
        ImportFormatError: On oversize input, invalid JSON, or bad structure.
    """
    size = len(raw.encode("utf-8") if isinstance(raw, str) else raw)
    if size > max_bytes:
        raise ImportFormatError(
            f"File too large. Maximum size is {max_bytes / 1024 / 1024:g}MB"
        )

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ImportFormatError(f"Invalid JSON: {e}") from e

    return questions_from_dict(data)


# ─── Files ────────────────────────────────────────────────────────────────────


def save_questions(
    questions: dict[QuestionNumber, Question], path: Union[str, Path]
) -> Path:
    """Write a question map to ``path`` in interchange format."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_questions(questions), encoding="utf-8")
    logger.info(f"Saved {len(questions)} questions: {path}")
    return path


def load_questions(
    path: Union[str, Path],
    max_bytes: int = MAX_IMPORT_BYTES,
) -> dict[QuestionNumber, Question]:
    """Read a question map from an interchange-format JSON file."""
    path = Path(path)
    if path.stat().st_size > max_bytes:
        raise ImportFormatError(
            f"File too large. Maximum size is {max_bytes / 1024 / 1024:g}MB"
        )
    questions = loads_questions(path.read_bytes(), max_bytes=max_bytes)
    logger.info(f"Loaded {len(questions)} questions: {path}")
    return questions


def save_json_dict(data: dict, path: Union[str, Path]) -> Path:
    """Save a plain dict (e.g. a validation report) as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)
    logger.info(f"Saved JSON: {path}")
    return path


def bank_id_for(name: str) -> str:
    """Filesystem-safe identifier for a bank name."""
    clean_name = "".join(
        c if c.isalnum() or c in "-_" else "_"
        for c in name
    )
    return clean_name[:50] or "bank"
