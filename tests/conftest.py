"""
Shared fixtures for the quiz bank test suite.
"""

from __future__ import annotations

import logging

import pytest

from quizbank.models import Question


SAMPLE_TEXT = """Practice Exam - Geography and Maths
Question 1
What is the capital
of France?
A. Paris
B. London
Answer by the community: B (85%)
Answer proposed: B
Question 2
Which of these numbers are prime? (Choose two.)
A. 2
B. 4
C. 3
which is odd
D. 9
Answer by the community: AC (67%)
Answer proposed: A, C
"""


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_TEXT


@pytest.fixture
def sample_questions() -> dict[str, Question]:
    return {
        "1": Question(
            question_number="1",
            question_text="What is the capital of France?",
            answers={"A": "Paris", "B": "London"},
            community_answer=["B"],
            community_answer_score="85%",
            proposed_answer=["B"],
        ),
        "2": Question(
            question_number="2",
            question_text="Which of these numbers are prime? (Choose two.)",
            answers={"A": "2", "B": "4", "C": "3 which is odd", "D": "9"},
            community_answer=["A", "C"],
            community_answer_score="67%",
            proposed_answer=["A", "C"],
        ),
    }


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by configure_logging between tests."""
    yield
    package_logger = logging.getLogger("quizbank")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
