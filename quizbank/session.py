"""
Quiz Session
============
In-memory practice over a question bank: question ordering, navigation,
answer grading and final statistics. Nothing is persisted.
"""

from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .errors import QuizSessionError
from .models import Question, QuestionNumber
from .validator import validate_answer

logger = logging.getLogger(__name__)

# (minimum percentage, message), checked top-down
PERFORMANCE_MESSAGES = (
    (90, "Excellent!"),
    (75, "Great job!"),
    (60, "Good effort!"),
    (0, "Keep practicing!"),
)


@dataclass
class QuizSettings:
    """Which questions a session covers and in what order."""
    randomize: bool = False
    start: Optional[int] = None  # 1-based position in source order
    end: Optional[int] = None  # inclusive
    limit: Optional[int] = None
    seed: Optional[int] = None
    include_unusable: bool = False


@dataclass
class QuizStats:
    total_questions: int
    correct_answers: int
    wrong_answers: int  # includes unanswered
    unanswered: int
    elapsed_seconds: Optional[int] = None

    @property
    def percentage(self) -> int:
        if self.total_questions == 0:
            return 0
        return math.floor(self.correct_answers / self.total_questions * 100 + 0.5)

    @property
    def performance_message(self) -> str:
        for threshold, message in PERFORMANCE_MESSAGES:
            if self.percentage >= threshold:
                return message
        return PERFORMANCE_MESSAGES[-1][1]


class QuizSession:
    """
    A single practice run.

    Positions are 1-based. Navigation past either end is ignored, as is a
    jump to a position outside the session.
    """

    def __init__(
        self,
        questions: dict[QuestionNumber, Question],
        settings: Optional[QuizSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.questions = questions
        self.settings = settings or QuizSettings()
        self._clock = clock

        self.order = self._build_order()
        if not self.order:
            raise QuizSessionError("No questions available for this session")

        self.position = 1
        self._responses: dict[QuestionNumber, list[str]] = {}
        self._verdicts: dict[QuestionNumber, bool] = {}
        self._started_at = self._clock()

        logger.info(
            f"Quiz session started with {len(self.order)} questions "
            f"(randomize={self.settings.randomize})"
        )

    def _build_order(self) -> list[QuestionNumber]:
        s = self.settings
        numbers = [
            number for number, q in self.questions.items()
            if s.include_unusable or q.is_usable
        ]

        start = max(1, s.start or 1)
        end = s.end if s.end is not None else len(numbers)
        numbers = numbers[start - 1:end]

        if s.randomize:
            random.Random(s.seed).shuffle(numbers)

        if s.limit is not None:
            numbers = numbers[:max(0, s.limit)]

        return numbers

    # ─── Navigation ───────────────────────────────────────────────────────

    @property
    def total(self) -> int:
        return len(self.order)

    @property
    def current_number(self) -> QuestionNumber:
        return self.order[self.position - 1]

    @property
    def current(self) -> Question:
        return self.questions[self.current_number]

    def next(self) -> Question:
        if self.position < self.total:
            self.position += 1
        return self.current

    def previous(self) -> Question:
        if self.position > 1:
            self.position -= 1
        return self.current

    def goto(self, position: int) -> bool:
        """Jump to a 1-based position; returns False if out of range."""
        if 1 <= position <= self.total:
            self.position = position
            return True
        return False

    # ─── Answering ────────────────────────────────────────────────────────

    def answer(
        self,
        selection: Iterable[str],
        number: Optional[QuestionNumber] = None,
    ) -> bool:
        """
        Grade a selection for the current (or given) question.

        Raises:
            QuizSessionError: Unknown question, unknown option label, or
                more labels than the question allows.
        """
        if number is None:
            number = self.current_number
        if number not in self.order:
            raise QuizSessionError(f"Question {number} is not in this session")

        question = self.questions[number]
        labels = list(dict.fromkeys(label.strip().upper() for label in selection))

        unknown = [label for label in labels if label not in question.answers]
        if unknown:
            raise QuizSessionError(
                f"Question {number} has no option(s) {', '.join(unknown)}"
            )
        if len(labels) > question.max_selectable:
            raise QuizSessionError(
                f"Question {number} allows at most "
                f"{question.max_selectable} selection(s), got {len(labels)}"
            )

        verdict = validate_answer(question.proposed_answer, labels)
        self._responses[number] = labels
        self._verdicts[number] = verdict
        logger.debug(f"Question {number}: {labels} -> {verdict}")
        return verdict

    def response(self, number: Optional[QuestionNumber] = None) -> Optional[list[str]]:
        if number is None:
            number = self.current_number
        return self._responses.get(number)

    def is_correct(self, number: Optional[QuestionNumber] = None) -> Optional[bool]:
        if number is None:
            number = self.current_number
        return self._verdicts.get(number)

    # ─── Results ──────────────────────────────────────────────────────────

    def results(self) -> QuizStats:
        correct = sum(1 for verdict in self._verdicts.values() if verdict)
        answered = len(self._verdicts)
        unanswered = self.total - answered
        return QuizStats(
            total_questions=self.total,
            correct_answers=correct,
            wrong_answers=(answered - correct) + unanswered,
            unanswered=unanswered,
            elapsed_seconds=int(self._clock() - self._started_at),
        )

    def restart(self):
        """Clear all responses and start over (reshuffling if randomized)."""
        if self.settings.randomize and self.settings.seed is None:
            self.order = self._build_order()
        self.position = 1
        self._responses.clear()
        self._verdicts.clear()
        self._started_at = self._clock()
