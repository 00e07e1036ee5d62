"""
Question Extractor
==================
Turns raw exam text (already extracted from a PDF) into an ordered map of
question number -> Question, driven by text anchors:

    Question 12
    Which service ...
    A. Option text
       wrapped option text
    B. Option text
    Answer by the community: AC (67%)
    Answer proposed: A, C

Extraction is best-effort: any input string produces a (possibly empty)
question map and never raises. Strict mode reports structural problems as
diagnostics without changing the extracted questions.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from .errors import ExtractionError
from .models import (
    Diagnostic,
    DiagnosticKind,
    ExtractionResult,
    Question,
    QuestionNumber,
)

logger = logging.getLogger(__name__)

# ─── Anchor Patterns ──────────────────────────────────────────────────────────

QUESTION_WORD = "Question"

# "Question 12" anywhere in the text; re.split needs the non-capturing form
QUESTION_SPLIT_PATTERN = re.compile(r"Question\s+\d+")
QUESTION_MARKER_PATTERN = re.compile(r"Question\s+(\d+)")

# "A. Option text"
OPTION_PATTERN = re.compile(r"^([A-E])\.\s+(.*)")
OPTION_START_PATTERN = re.compile(r"^[A-E]\.\s")

# Option-looking lines that the strict pattern rejects: "b) text", "(C) text", "F. text"
LOOSE_OPTION_PATTERN = re.compile(r"^\(?[A-Za-z][\.\)]\s+\S")

COMMUNITY_MARKER = "Answer by the community"
PROPOSED_MARKER = "Answer proposed"
SECTION_END_MARKERS = (COMMUNITY_MARKER, PROPOSED_MARKER)

# ": B (85%)", ": A, C", ": AC"
COMMUNITY_VALUE_PATTERN = re.compile(
    r":\s*([A-E, ]+)(?:\s*\((\d+(?:\.\d+)?%)\))?"
)
COMMUNITY_SPLIT_PATTERN = re.compile(r",")
COMPACT_LABELS_PATTERN = re.compile(r"^[A-E]{2,}$")
PROPOSED_VALUE_PATTERN = re.compile(r":\s*(.+)")
PROPOSED_SPLIT_PATTERN = re.compile(r",\s*")


# ─── Document Level ───────────────────────────────────────────────────────────


def split_into_blocks(text: str) -> list[str]:
    """Split text on question markers into trimmed, non-empty blocks."""
    fragments = [f.strip() for f in QUESTION_SPLIT_PATTERN.split(text)]

    # Leading boilerplate before the first marker
    if not fragments[0] or not fragments[0].startswith(QUESTION_WORD):
        fragments.pop(0)

    return [f for f in fragments if f]


def extract_question_numbers(text: str) -> list[QuestionNumber]:
    """Question numbers in source order, one per marker, as written."""
    return QUESTION_MARKER_PATTERN.findall(text)


# ─── Block Level ──────────────────────────────────────────────────────────────


def split_lines(block: str) -> list[str]:
    """Trimmed, non-empty lines of a block."""
    return [line.strip() for line in block.splitlines() if line.strip()]


def find_answer_start(lines: list[str]) -> Optional[int]:
    for idx, line in enumerate(lines):
        if OPTION_START_PATTERN.match(line):
            return idx
    return None


def find_answer_end(lines: list[str], start: int) -> int:
    """Index of the first marker line at or after ``start`` (or len(lines))."""
    for idx in range(start, len(lines)):
        if lines[idx].startswith(SECTION_END_MARKERS):
            return idx
    return len(lines)


def reconstruct_answers(
    lines: Iterable[str],
) -> tuple[dict[str, str], list[str]]:
    """
    Rebuild option texts from answer lines.

    An option line opens a new active label; any other line continues the
    active label's text. Lines seen while no label is active are dropped
    and returned as orphans.
    """
    answers: dict[str, str] = {}
    orphans: list[str] = []
    active_label: Optional[str] = None

    for line in lines:
        match = OPTION_PATTERN.match(line)
        if match:
            active_label = match.group(1)
            answers[active_label] = match.group(2)
        elif active_label is not None:
            answers[active_label] += " " + line
        else:
            orphans.append(line)

    return answers, orphans


def _find_marker_line(lines: list[str], marker: str) -> Optional[str]:
    return next((line for line in lines if line.startswith(marker)), None)


def _split_labels(raw: str, separator: re.Pattern) -> list[str]:
    return [token.strip() for token in separator.split(raw) if token.strip()]


def parse_community_answer(lines: list[str]) -> tuple[list[str], str]:
    """
    Community answer labels and score from the first community line.

    Notations, in priority order:
        "A, C"  -> ["A", "C"]
        "AC"    -> ["A", "C"]
        "B"     -> ["B"]
    """
    line = _find_marker_line(lines, COMMUNITY_MARKER)
    if line is None:
        return [], ""

    match = COMMUNITY_VALUE_PATTERN.search(line)
    if not match:
        return [], ""

    raw = match.group(1).strip()
    score = match.group(2) or ""

    if "," in raw:
        labels = _split_labels(raw, COMMUNITY_SPLIT_PATTERN)
    elif COMPACT_LABELS_PATTERN.match(raw):
        labels = list(raw)
    else:
        labels = [raw] if raw else []

    return labels, score


def parse_proposed_answer(lines: list[str]) -> list[str]:
    line = _find_marker_line(lines, PROPOSED_MARKER)
    if line is None:
        return []

    match = PROPOSED_VALUE_PATTERN.search(line)
    if not match:
        return []
    return _split_labels(match.group(1), PROPOSED_SPLIT_PATTERN)


# ─── Extractor ────────────────────────────────────────────────────────────────


class QuestionExtractor:
    """
    Converts a raw text blob into structured Question records.

    In lenient mode (the default) ``extract`` returns an ExtractionResult
    whose diagnostics are informational. With ``strict=True`` any
    diagnostic raises ExtractionError instead.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    def extract(self, text: str) -> ExtractionResult:
        blocks = split_into_blocks(text)
        numbers = extract_question_numbers(text)

        result = ExtractionResult()

        if len(blocks) != len(numbers):
            logger.warning(
                f"Found {len(numbers)} question markers but {len(blocks)} "
                f"blocks; unpaired entries are dropped"
            )
            result.diagnostics.append(Diagnostic(
                kind=DiagnosticKind.COUNT_MISMATCH,
                message=(
                    f"{len(numbers)} question markers, {len(blocks)} blocks"
                ),
            ))

        for number, block in zip(numbers, blocks):
            question, diagnostics = self.parse_block(block, number)
            if number in result.questions:
                logger.warning(
                    f"Question {number} appears more than once; "
                    f"the later block replaces the earlier one"
                )
                result.diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.DUPLICATE_NUMBER,
                    question_number=number,
                    message=f"Question {number} repeated; earlier block replaced",
                ))
            result.questions[number] = question
            result.diagnostics.extend(diagnostics)

        logger.info(
            f"Extracted {len(result.questions)} questions "
            f"({len(result.diagnostics)} diagnostics)"
        )

        if self.strict and result.diagnostics:
            raise ExtractionError(result.diagnostics)

        return result

    def parse_block(
        self, block: str, number: QuestionNumber = ""
    ) -> tuple[Question, list[Diagnostic]]:
        """Parse one question block into a Question and its diagnostics."""
        lines = split_lines(block)
        diagnostics: list[Diagnostic] = []

        def report(kind: DiagnosticKind, message: str):
            diagnostics.append(Diagnostic(
                kind=kind, question_number=number, message=message
            ))

        start = find_answer_start(lines)
        if start is None:
            question_text = " ".join(lines)
            answer_lines: list[str] = []
            report(DiagnosticKind.MISSING_MARKER, "No option lines found")
        else:
            question_text = " ".join(lines[:start])
            answer_lines = lines[start:find_answer_end(lines, start)]

        answers, orphans = reconstruct_answers(answer_lines)
        for orphan in orphans:
            report(
                DiagnosticKind.MALFORMED_OPTION,
                f"Line outside any option dropped: {orphan!r}",
            )
        self._check_option_lines(answer_lines, report)

        community_answer, community_score = parse_community_answer(lines)
        proposed_answer = parse_proposed_answer(lines)

        if _find_marker_line(lines, COMMUNITY_MARKER) is None:
            report(
                DiagnosticKind.MISSING_MARKER,
                f"No '{COMMUNITY_MARKER}' line",
            )
        if _find_marker_line(lines, PROPOSED_MARKER) is None:
            report(
                DiagnosticKind.MISSING_MARKER,
                f"No '{PROPOSED_MARKER}' line",
            )

        logger.debug(
            f"Question {number}: {len(answers)} options, "
            f"proposed={proposed_answer}, community={community_answer}"
        )

        question = Question(
            question_number=number,
            question_text=question_text.strip(),
            answers=answers,
            community_answer=community_answer,
            community_answer_score=community_score,
            proposed_answer=proposed_answer,
        )
        return question, diagnostics

    @staticmethod
    def _check_option_lines(answer_lines: list[str], report):
        seen: set[str] = set()
        for line in answer_lines:
            match = OPTION_PATTERN.match(line)
            if match:
                label = match.group(1)
                if label in seen:
                    report(
                        DiagnosticKind.MALFORMED_OPTION,
                        f"Option {label} appears more than once",
                    )
                seen.add(label)
            elif LOOSE_OPTION_PATTERN.match(line):
                report(
                    DiagnosticKind.MALFORMED_OPTION,
                    f"Option-like line treated as continuation: {line!r}",
                )


def extract_questions(text: str) -> dict[QuestionNumber, Question]:
    """Best-effort extraction of every question in ``text``."""
    return QuestionExtractor().extract(text).questions


def extract_with_diagnostics(text: str) -> ExtractionResult:
    """Lenient extraction that also returns structural diagnostics."""
    return QuestionExtractor().extract(text)
