"""
Quiz Bank Engine
================
Orchestrates text acquisition, question extraction, validation and
output into a single pipeline.

Usage:
    engine = QuizBankEngine(config)
    result = engine.parse_pdf("path/to/exam.pdf")
    engine.save(result)

Architecture:
    PDF → TextSource → raw text → QuestionExtractor →
    {number: Question} → ValidationEngine → ParseResult (JSON)
"""

from __future__ import annotations

import hashlib
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from . import __version__
from . import storage
from .extractor import QuestionExtractor
from .models import BankMetadata, ParseResult
from .text_source import read_source_text, text_source_for
from .validator import ValidationEngine

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class QuizBankConfig:
    """Configuration for the quiz bank engine."""

    # Output settings
    output_dir: str = "output"
    bank_name: str = ""

    # Extraction
    strict: bool = False

    # PDF-to-text service (None = local PyMuPDF extraction)
    text_service_url: Optional[str] = None
    text_service_timeout: float = 60.0

    # Import
    max_import_bytes: int = storage.MAX_IMPORT_BYTES

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, **overrides) -> "QuizBankConfig":
        """Defaults from QUIZBANK_* environment variables, then overrides."""
        config = cls(
            text_service_url=os.environ.get("QUIZBANK_TEXT_SERVICE_URL") or None,
            log_level=os.environ.get("QUIZBANK_LOG_LEVEL", "INFO"),
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config


def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Configure the ``quizbank`` package logger."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    package_logger = logging.getLogger("quizbank")
    package_logger.setLevel(log_level)

    # Console handler
    if not package_logger.handlers:
        console = logging.StreamHandler()
        console.setLevel(log_level)
        console.setFormatter(
            logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        )
        package_logger.addHandler(console)
    else:
        for handler in package_logger.handlers:
            handler.setLevel(log_level)

    # File handler
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        )
        package_logger.addHandler(file_handler)


class QuizBankEngine:
    """
    Main question bank pipeline.

    Stateless between calls; one engine can serve many documents.
    """

    def __init__(self, config: Optional[QuizBankConfig] = None):
        self.config = config or QuizBankConfig()
        configure_logging(self.config.log_level, self.config.log_file)
        self.text_source = text_source_for(
            self.config.text_service_url,
            timeout=self.config.text_service_timeout,
        )

    def parse_text(self, text: str, source_name: str = "") -> ParseResult:
        """
        Extract and validate questions from raw text.

        Raises:
            ExtractionError: In strict mode, if diagnostics were produced.
        """
        start_time = time.time()

        logger.info("Phase 1: Question extraction")
        extraction = QuestionExtractor(strict=self.config.strict).extract(text)

        logger.info("Phase 2: Validation")
        validation = ValidationEngine().validate(extraction.questions)

        result = ParseResult(
            bank=BankMetadata(
                name=self.config.bank_name or Path(source_name).stem,
                source_file=os.path.basename(source_name),
                parser_version=__version__,
            ),
            questions=extraction.questions,
            diagnostics=extraction.diagnostics,
            validation=validation,
        )

        elapsed = time.time() - start_time
        logger.info(
            f"Parse complete in {elapsed:.2f}s, "
            f"{len(result.questions)} questions extracted"
        )
        return result

    def parse_file(self, path: Union[str, Path]) -> ParseResult:
        """
        Parse a ``.pdf`` (via the configured text source) or ``.txt`` file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            TextSourceError: If PDF text extraction fails.
        """
        path = Path(path).absolute()
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        logger.info(f"Starting parse of: {path}")
        text = read_source_text(path, source=self.text_source)

        result = self.parse_text(text, source_name=str(path))
        result.bank.file_hash = self._compute_file_hash(path)
        result.bank.file_size_bytes = path.stat().st_size
        return result

    parse_pdf = parse_file

    def load_bank(self, json_path: Union[str, Path]) -> ParseResult:
        """
        Import a bank in interchange format and validate it.

        Raises:
            ImportFormatError: If the file is not a valid question bank.
        """
        path = Path(json_path)
        questions = storage.load_questions(
            path, max_bytes=self.config.max_import_bytes
        )
        return ParseResult(
            bank=BankMetadata(
                name=self.config.bank_name or path.stem,
                source_file=path.name,
                file_hash=self._compute_file_hash(path),
                file_size_bytes=path.stat().st_size,
                parser_version=__version__,
            ),
            questions=questions,
            validation=ValidationEngine().validate(questions),
        )

    def save(self, result: ParseResult) -> Path:
        """Write questions and validation report; return the questions file."""
        output_dir = Path(self.config.output_dir)
        bank_id = storage.bank_id_for(result.bank.name)

        questions_file = storage.save_questions(
            result.questions, output_dir / f"{bank_id}_questions.json"
        )
        storage.save_json_dict(
            result.validation.model_dump(mode="json"),
            output_dir / f"{bank_id}_validation.json",
        )

        logger.info(f"Output saved to: {output_dir}")
        return questions_file

    def _compute_file_hash(self, filepath: Path) -> str:
        """Compute SHA-256 hash of a file."""
        sha256 = hashlib.sha256()
        with open(filepath, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
        return sha256.hexdigest()
