"""
Data Models
===========
Pydantic models for extracted question banks.
Questions serialize to the JSON interchange format consumed by the quiz UI.

Question numbers are kept as the digit strings found in the source
("007" and "7" are different questions).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    field_validator,
)

# Digit string exactly as captured from a question marker
QuestionNumber = str


# ─── Enums ────────────────────────────────────────────────────────────────────


class DiagnosticKind(str, Enum):
    """Structural problems reported by strict-mode extraction."""
    MISSING_MARKER = "missing_marker"
    MALFORMED_OPTION = "malformed_option"
    COUNT_MISMATCH = "count_mismatch"
    DUPLICATE_NUMBER = "duplicate_number"


# ─── Question Model ──────────────────────────────────────────────────────────


class Question(BaseModel):
    """
    A single multiple-choice question.

    Immutable once built: label sequences are tuples and ``answers`` is a
    read-only mapping. ``question_number`` is the key of the question map
    and is not part of the serialized value object; ``question_text``
    serializes as ``question``.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question_number: QuestionNumber = Field(default="", exclude=True)
    question_text: str = Field(alias="question")
    answers: Mapping[str, str] = Field(
        description="Option label -> option text, in source order"
    )
    community_answer: tuple[str, ...]
    community_answer_score: str
    proposed_answer: tuple[str, ...]

    @field_validator("answers", mode="after")
    @classmethod
    def _freeze_answers(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("answers")
    def _serialize_answers(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)

    @property
    def max_selectable(self) -> int:
        """How many options a user must select."""
        return len(self.proposed_answer)

    @property
    def is_usable(self) -> bool:
        return bool(self.answers) and bool(self.proposed_answer)

    def to_interchange(self) -> dict:
        """Value object of the JSON interchange format."""
        return self.model_dump(mode="json", by_alias=True)


# ─── Diagnostics ──────────────────────────────────────────────────────────────


class Diagnostic(BaseModel):
    """A structural issue found while extracting one block (or the document)."""
    kind: DiagnosticKind
    question_number: Optional[QuestionNumber] = None
    message: str


class ExtractionResult(BaseModel):
    """Question map plus any diagnostics collected during extraction."""
    questions: dict[QuestionNumber, Question] = Field(default_factory=dict)
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.diagnostics


# ─── Validation Report ───────────────────────────────────────────────────────


class NumberGap(BaseModel):
    """A run of absent question numbers too long to list one by one."""
    after: str
    before: str
    missing_count: int


class ValidationReport(BaseModel):
    """Post-extraction validation report for a question bank."""
    total_questions: int = 0
    usable_questions: int = 0
    missing_question_numbers: list[int] = Field(default_factory=list)
    large_number_gaps: list[NumberGap] = Field(default_factory=list)
    questions_without_options: list[QuestionNumber] = Field(default_factory=list)
    questions_without_proposed_answer: list[QuestionNumber] = Field(
        default_factory=list
    )
    dangling_labels: dict[QuestionNumber, list[str]] = Field(default_factory=dict)
    out_of_universe_labels: dict[QuestionNumber, list[str]] = Field(
        default_factory=dict
    )
    community_disagreements: list[QuestionNumber] = Field(default_factory=list)

    @computed_field
    @property
    def success_rate(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return round(self.usable_questions / self.total_questions * 100, 2)


# ─── Bank / Parse Result Models ──────────────────────────────────────────────


class BankMetadata(BaseModel):
    """Metadata about the source of a question bank."""
    name: str = ""
    source_file: str = ""
    file_hash: str = ""
    file_size_bytes: int = 0
    parser_version: str = "1.0.0"
    parse_timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


class ParseResult(BaseModel):
    """
    Complete output of an extraction or import run.
    """
    bank: BankMetadata = Field(default_factory=BankMetadata)
    questions: dict[QuestionNumber, Question] = Field(default_factory=dict)
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    validation: ValidationReport = Field(default_factory=ValidationReport)

    def to_dict(self) -> dict:
        """JSON-ready dict with questions in interchange form."""
        data = self.model_dump(mode="json", exclude={"questions"})
        data["questions"] = {
            number: question.to_interchange()
            for number, question in self.questions.items()
        }
        return data
