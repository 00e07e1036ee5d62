"""
Engine Tests
============
End-to-end pipeline: text/file parsing, bank import, output files and
configuration.
"""

from __future__ import annotations

import json

import pytest

from quizbank.engine import QuizBankConfig, QuizBankEngine
from quizbank.errors import ExtractionError, ImportFormatError
from quizbank.text_source import PdfTextSource, RemoteTextSource


@pytest.fixture
def engine(tmp_path) -> QuizBankEngine:
    return QuizBankEngine(QuizBankConfig(
        output_dir=str(tmp_path / "output"),
        log_level="WARNING",
    ))


class TestQuizBankConfig:

    def test_defaults(self):
        config = QuizBankConfig()
        assert config.output_dir == "output"
        assert config.strict is False
        assert config.text_service_url is None
        assert config.max_import_bytes == 10 * 1024 * 1024

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("QUIZBANK_TEXT_SERVICE_URL", "http://svc/extract")
        monkeypatch.setenv("QUIZBANK_LOG_LEVEL", "DEBUG")
        config = QuizBankConfig.from_env(strict=True, bank_name=None)
        assert config.text_service_url == "http://svc/extract"
        assert config.log_level == "DEBUG"
        assert config.strict is True
        assert config.bank_name == ""

    def test_text_source_selection(self):
        assert isinstance(
            QuizBankEngine(QuizBankConfig(log_level="WARNING")).text_source,
            PdfTextSource,
        )
        remote = QuizBankEngine(QuizBankConfig(
            text_service_url="http://svc", log_level="WARNING",
        ))
        assert isinstance(remote.text_source, RemoteTextSource)


class TestQuizBankEngine:

    def test_parse_text(self, engine, sample_text, sample_questions):
        result = engine.parse_text(sample_text, source_name="exam.txt")
        assert result.questions == sample_questions
        assert result.bank.name == "exam"
        assert result.validation.usable_questions == 2
        assert result.diagnostics == []

    def test_parse_file_and_save(self, engine, tmp_path, sample_text):
        source = tmp_path / "practice exam.txt"
        source.write_text(sample_text, encoding="utf-8")

        result = engine.parse_file(source)
        assert result.bank.source_file == "practice exam.txt"
        assert len(result.bank.file_hash) == 64
        assert result.bank.file_size_bytes == source.stat().st_size

        questions_file = engine.save(result)
        assert questions_file.name == "practice_exam_questions.json"
        data = json.loads(questions_file.read_text(encoding="utf-8"))
        assert list(data) == ["1", "2"]
        assert data["2"]["proposed_answer"] == ["A", "C"]

        report_file = questions_file.parent / "practice_exam_validation.json"
        report = json.loads(report_file.read_text(encoding="utf-8"))
        assert report["total_questions"] == 2
        assert report["success_rate"] == 100.0

    def test_parse_missing_file(self, engine, tmp_path):
        with pytest.raises(FileNotFoundError):
            engine.parse_file(tmp_path / "missing.pdf")

    def test_strict_engine(self, tmp_path):
        engine = QuizBankEngine(QuizBankConfig(
            output_dir=str(tmp_path), strict=True, log_level="WARNING",
        ))
        with pytest.raises(ExtractionError):
            engine.parse_text("Question 1\nNo options at all")

    def test_load_bank_round_trip(self, engine, sample_text):
        result = engine.parse_text(sample_text, source_name="exam.txt")
        questions_file = engine.save(result)

        loaded = engine.load_bank(questions_file)
        assert loaded.questions == result.questions
        assert loaded.validation == result.validation

    def test_load_bank_rejects_bad_file(self, engine, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"1": {"question": 3}}', encoding="utf-8")
        with pytest.raises(ImportFormatError):
            engine.load_bank(path)

    def test_result_to_dict(self, engine, sample_text):
        data = engine.parse_text(sample_text).to_dict()
        assert set(data) == {"bank", "questions", "diagnostics", "validation"}
        assert data["questions"]["1"]["question"] == (
            "What is the capital of France?"
        )
        assert "question_number" not in data["questions"]["1"]

    def test_far_apart_question_numbers(self, engine):
        text = (
            "Question 1\nFirst?\nA. a\nAnswer proposed: A\n"
            "Question 1000000000000\nLast?\nA. b\nAnswer proposed: A\n"
        )
        result = engine.parse_text(text)
        assert list(result.questions) == ["1", "1000000000000"]
        assert result.validation.missing_question_numbers == []
        gap = result.validation.large_number_gaps[0]
        assert (gap.after, gap.before) == ("1", "1000000000000")
        assert gap.missing_count == 10**12 - 2
