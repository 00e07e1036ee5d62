"""
Validation Engine
=================
Answer grading and post-extraction bank validation.

Grading compares two answer-label sets by projecting each onto an
indicator vector over LABELS; the verdict is exact set equality
(order-independent, duplicate-independent, no partial credit).

The bank report covers:
    - Total / usable questions
    - Missing question numbers (gaps in sequence, wide gaps summarised)
    - Questions without options or without a proposed answer
    - Answer labels that reference no option
    - Labels outside LABELS (ignored by grading)
    - Community answers that disagree with the proposed answer

Never raises.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .models import NumberGap, Question, QuestionNumber, ValidationReport

logger = logging.getLogger(__name__)

# Grading universe. Labels outside it have no indicator bit and are ignored.
LABELS: tuple[str, ...] = ("A", "B", "C", "D", "E")

_LABEL_INDEX = {label: index for index, label in enumerate(LABELS)}

# Wider runs of absent numbers are summarised as a NumberGap
MAX_LISTED_GAP = 10_000


# ─── Grading ──────────────────────────────────────────────────────────────────


def to_indicator(labels: Iterable[str]) -> tuple[int, ...]:
    """0/1 vector over LABELS marking which labels are present."""
    vector = [0] * len(LABELS)
    for label in labels:
        index = _LABEL_INDEX.get(label)
        if index is not None:
            vector[index] = 1
    return tuple(vector)


def validate_answer(
    correct_labels: Iterable[str],
    proposed_labels: Iterable[str],
) -> bool:
    """True iff both label sets select exactly the same options."""
    return to_indicator(correct_labels) == to_indicator(proposed_labels)


def out_of_universe(labels: Iterable[str]) -> list[str]:
    """Labels that grading would silently ignore, in first-seen order."""
    found: list[str] = []
    for label in labels:
        if label not in _LABEL_INDEX and label not in found:
            found.append(label)
    return found


# ─── Bank Validation ──────────────────────────────────────────────────────────


class ValidationEngine:
    """
    Validates an extracted question bank and produces a report.
    """

    def validate(
        self,
        questions: dict[QuestionNumber, Question],
    ) -> ValidationReport:
        """
        Run full validation on a question map.

        Args:
            questions: Question number -> Question, in source order.

        Returns:
            ValidationReport with all detected issues.
        """
        report = ValidationReport()

        if not questions:
            logger.warning("No questions to validate")
            return report

        report.total_questions = len(questions)

        self._find_missing_numbers(questions, report)

        usable = 0
        for number, q in questions.items():
            if q.is_usable:
                usable += 1

            if not q.answers:
                report.questions_without_options.append(number)

            if not q.proposed_answer:
                report.questions_without_proposed_answer.append(number)

            referenced = q.community_answer + q.proposed_answer
            dangling = [
                label for label in dict.fromkeys(referenced)
                if q.answers and label not in q.answers
            ]
            if dangling:
                report.dangling_labels[number] = dangling

            foreign = out_of_universe([*q.answers, *referenced])
            if foreign:
                report.out_of_universe_labels[number] = foreign
                logger.warning(
                    f"Question {number} uses labels outside "
                    f"{'/'.join(LABELS)}: {', '.join(foreign)}; "
                    f"grading ignores them"
                )

            if q.community_answer and not validate_answer(
                q.proposed_answer, q.community_answer
            ):
                report.community_disagreements.append(number)

        report.usable_questions = usable

        # Log summary
        logger.info("=" * 60)
        logger.info("VALIDATION REPORT")
        logger.info("=" * 60)
        logger.info(f"Total Questions: {report.total_questions}")
        logger.info(
            f"Usable Questions: {report.usable_questions} "
            f"({report.success_rate}%)"
        )
        logger.info(
            f"Missing Question Numbers: "
            f"{len(report.missing_question_numbers)}"
        )
        if report.large_number_gaps:
            logger.info(
                f"Large Number Gaps: {len(report.large_number_gaps)}"
            )
        logger.info(
            f"Questions Without Options: "
            f"{len(report.questions_without_options)}"
        )
        logger.info(
            f"Questions Without Proposed Answer: "
            f"{len(report.questions_without_proposed_answer)}"
        )
        logger.info(f"Dangling Labels: {len(report.dangling_labels)}")
        logger.info(
            f"Out-of-universe Labels: {len(report.out_of_universe_labels)}"
        )
        logger.info(
            f"Community Disagreements: "
            f"{len(report.community_disagreements)}"
        )
        logger.info("=" * 60)

        return report

    @staticmethod
    def _find_missing_numbers(
        questions: dict[QuestionNumber, Question],
        report: ValidationReport,
    ):
        """
        Absent numbers between consecutive present ones.

        Gaps wider than MAX_LISTED_GAP are summarised instead of listed.
        Keys too long for ``int()`` take no part in gap detection.
        """
        present: dict[int, str] = {}
        for key in questions:
            try:
                present.setdefault(int(key), key)
            except ValueError:
                logger.warning(
                    f"Question number too long to compare ({len(key)} digits)"
                )

        ordered = sorted(present)
        for low, high in zip(ordered, ordered[1:]):
            missing = high - low - 1
            if missing == 0:
                continue
            if missing <= MAX_LISTED_GAP:
                report.missing_question_numbers.extend(range(low + 1, high))
            else:
                report.large_number_gaps.append(NumberGap(
                    after=present[low],
                    before=present[high],
                    missing_count=missing,
                ))
