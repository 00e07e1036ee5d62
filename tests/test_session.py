"""
Quiz Session Tests
==================
Ordering, navigation, grading and statistics of practice sessions.
"""

from __future__ import annotations

import pytest

from quizbank.errors import QuizSessionError
from quizbank.models import Question
from quizbank.session import QuizSession, QuizSettings, QuizStats


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _bank(count: int) -> dict[str, Question]:
    return {
        str(n): Question(
            question_number=str(n),
            question_text=f"Q{n}",
            answers={"A": "a", "B": "b", "C": "c"},
            community_answer=[],
            community_answer_score="",
            proposed_answer=["A", "C"] if n % 2 == 0 else ["B"],
        )
        for n in range(1, count + 1)
    }


# ═══════════════════════════════════════════════════════════════════════════════
# ORDERING TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestOrdering:

    def test_source_order_by_default(self):
        session = QuizSession(_bank(5))
        assert session.order == ["1", "2", "3", "4", "5"]
        assert session.current_number == "1"

    def test_range_and_limit(self):
        session = QuizSession(_bank(10), QuizSettings(start=3, end=8, limit=4))
        assert session.order == ["3", "4", "5", "6"]

    def test_randomize_is_reproducible_with_seed(self):
        settings = QuizSettings(randomize=True, seed=42)
        first = QuizSession(_bank(20), settings).order
        second = QuizSession(_bank(20), settings).order
        assert first == second
        assert sorted(first, key=int) == [str(n) for n in range(1, 21)]

    def test_unusable_questions_skipped(self):
        bank = _bank(2)
        bank["3"] = Question(
            question_number="3",
            question_text="No options",
            answers={},
            community_answer=[],
            community_answer_score="",
            proposed_answer=[],
        )
        assert QuizSession(bank).order == ["1", "2"]
        everything = QuizSession(bank, QuizSettings(include_unusable=True))
        assert everything.order == ["1", "2", "3"]

    def test_empty_session_rejected(self):
        with pytest.raises(QuizSessionError):
            QuizSession({})
        with pytest.raises(QuizSessionError):
            QuizSession(_bank(3), QuizSettings(start=5))


# ═══════════════════════════════════════════════════════════════════════════════
# NAVIGATION TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestNavigation:

    def test_next_and_previous_clamp(self):
        session = QuizSession(_bank(2))
        session.previous()
        assert session.position == 1
        session.next()
        session.next()
        assert session.position == 2
        assert session.current.question_text == "Q2"

    def test_goto(self):
        session = QuizSession(_bank(3))
        assert session.goto(3) is True
        assert session.current_number == "3"
        assert session.goto(0) is False
        assert session.goto(4) is False
        assert session.position == 3


# ═══════════════════════════════════════════════════════════════════════════════
# ANSWERING / RESULTS TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestAnswering:

    def test_grading(self):
        session = QuizSession(_bank(2))
        assert session.answer(["B"]) is True
        assert session.answer(["c", "a"], number="2") is True
        assert session.response("2") == ["C", "A"]
        assert session.is_correct("1") is True

    def test_wrong_answer(self):
        session = QuizSession(_bank(2))
        session.goto(2)
        assert session.answer(["A"]) is False
        assert session.is_correct() is False

    def test_too_many_selections(self):
        session = QuizSession(_bank(1))
        with pytest.raises(QuizSessionError, match="at most 1"):
            session.answer(["A", "B"])

    def test_duplicates_count_once(self):
        session = QuizSession(_bank(1))
        assert session.answer(["B", "B"]) is True

    def test_unknown_option(self):
        session = QuizSession(_bank(1))
        with pytest.raises(QuizSessionError, match="no option"):
            session.answer(["E"])

    def test_question_not_in_session(self):
        session = QuizSession(_bank(3), QuizSettings(limit=1))
        with pytest.raises(QuizSessionError):
            session.answer(["B"], number="3")

    def test_results(self):
        clock = FakeClock()
        session = QuizSession(_bank(4), clock=clock)
        session.answer(["B"], number="1")
        session.answer(["A"], number="2")
        session.answer(["B"], number="3")
        clock.now += 125

        stats = session.results()
        assert stats.total_questions == 4
        assert stats.correct_answers == 2
        assert stats.unanswered == 1
        assert stats.wrong_answers == 2
        assert stats.elapsed_seconds == 125
        assert stats.percentage == 50
        assert stats.performance_message == "Keep practicing!"

    def test_restart_clears_responses(self):
        session = QuizSession(_bank(2))
        session.answer(["B"])
        session.next()
        session.restart()
        assert session.position == 1
        assert session.response() is None
        assert session.results().unanswered == 2


class TestQuizStats:

    @pytest.mark.parametrize("correct,message", [
        (10, "Excellent!"),
        (9, "Excellent!"),
        (8, "Great job!"),
        (6, "Good effort!"),
        (5, "Keep practicing!"),
    ])
    def test_performance_message(self, correct, message):
        stats = QuizStats(
            total_questions=10,
            correct_answers=correct,
            wrong_answers=10 - correct,
            unanswered=0,
        )
        assert stats.performance_message == message

    def test_percentage_rounds_half_up(self):
        stats = QuizStats(
            total_questions=8, correct_answers=1, wrong_answers=7, unanswered=0,
        )
        assert stats.percentage == 13  # 12.5

    def test_empty(self):
        stats = QuizStats(0, 0, 0, 0)
        assert stats.percentage == 0
