"""
Storage Tests
=============
JSON interchange export / import.
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from quizbank.errors import ImportFormatError
from quizbank.extractor import extract_questions
from quizbank.storage import (
    bank_id_for,
    dumps_questions,
    load_questions,
    loads_questions,
    questions_from_dict,
    questions_to_dict,
    save_questions,
)


class TestInterchangeFormat:

    def test_export_shape(self, sample_questions):
        data = questions_to_dict(sample_questions)
        assert list(data) == ["1", "2"]
        assert data["1"] == {
            "question": "What is the capital of France?",
            "answers": {"A": "Paris", "B": "London"},
            "community_answer": ["B"],
            "community_answer_score": "85%",
            "proposed_answer": ["B"],
        }

    def test_round_trip(self, sample_text):
        questions = extract_questions(sample_text)
        restored = loads_questions(dumps_questions(questions))
        assert restored == questions
        assert list(restored) == list(questions)
        assert [list(q.answers) for q in restored.values()] == [
            list(q.answers) for q in questions.values()
        ]

    def test_file_round_trip(self, tmp_path, sample_questions):
        path = save_questions(sample_questions, tmp_path / "bank" / "q.json")
        assert path.exists()
        assert load_questions(path) == sample_questions

    def test_import_sets_question_number(self):
        questions = questions_from_dict({
            "12": {
                "question": "Q",
                "answers": {"A": "x"},
                "community_answer": [],
                "proposed_answer": ["A"],
                "community_answer_score": "",
            },
        })
        assert questions["12"].question_number == "12"
        assert questions["12"].max_selectable == 1

    def test_questions_are_immutable(self, sample_questions):
        with pytest.raises(ValidationError):
            sample_questions["1"].question_text = "changed"

    def test_nested_fields_are_read_only(self, sample_questions):
        question = sample_questions["1"]
        with pytest.raises(TypeError):
            question.answers["F"] = "extra"
        with pytest.raises(AttributeError):
            question.proposed_answer.append("A")
        assert question.to_interchange()["answers"] == {"A": "Paris", "B": "London"}

    def test_keys_survive_round_trip_verbatim(self):
        raw = json.dumps({
            "007": {
                "question": "Q",
                "answers": {"A": "x"},
                "community_answer": [],
                "proposed_answer": ["A"],
                "community_answer_score": "",
            },
            "7": {
                "question": "R",
                "answers": {"A": "y"},
                "community_answer": ["A"],
                "proposed_answer": ["A"],
                "community_answer_score": "100%",
            },
        })
        questions = loads_questions(raw)
        assert list(questions) == ["007", "7"]
        assert json.loads(dumps_questions(questions)) == json.loads(raw)


class TestImportErrors:

    def _valid(self) -> dict:
        return {
            "question": "Q",
            "answers": {"A": "x"},
            "community_answer": [],
            "proposed_answer": ["A"],
            "community_answer_score": "",
        }

    def test_not_an_object(self):
        with pytest.raises(ImportFormatError):
            questions_from_dict([self._valid()])

    def test_non_numeric_key(self):
        with pytest.raises(ImportFormatError, match="Invalid question number"):
            questions_from_dict({"abc": self._valid()})

    def test_missing_field(self):
        value = self._valid()
        del value["community_answer_score"]
        with pytest.raises(ImportFormatError, match="Question 1"):
            questions_from_dict({"1": value})

    def test_wrong_field_type(self):
        value = self._valid()
        value["proposed_answer"] = "A"
        with pytest.raises(ImportFormatError):
            questions_from_dict({"1": value})

    def test_value_not_an_object(self):
        with pytest.raises(ImportFormatError):
            questions_from_dict({"1": "text"})

    def test_invalid_json(self):
        with pytest.raises(ImportFormatError, match="Invalid JSON"):
            loads_questions("{not json")

    def test_file_too_large(self):
        raw = json.dumps({"1": self._valid()})
        with pytest.raises(ImportFormatError, match="too large"):
            loads_questions(raw, max_bytes=10)


def test_bank_id_for():
    assert bank_id_for("AWS SAA-C03 (v2)") == "AWS_SAA-C03__v2_"
    assert bank_id_for("") == "bank"
