"""
Exceptions
==========
Boundary errors. The extractor and the answer validator never raise;
these are reserved for file import, text extraction, strict mode and
quiz session misuse.
"""

from __future__ import annotations


class QuizBankError(Exception):
    """Base class for all quiz bank errors."""


class ExtractionError(QuizBankError):
    """Strict-mode extraction found structural problems."""

    def __init__(self, diagnostics: list):
        self.diagnostics = diagnostics
        super().__init__(
            f"Extraction produced {len(diagnostics)} diagnostic(s)"
        )


class ImportFormatError(QuizBankError):
    """A JSON question bank could not be imported."""


class TextSourceError(QuizBankError):
    """PDF-to-text extraction failed."""


class QuizSessionError(QuizBankError):
    """Invalid operation on a quiz session."""
