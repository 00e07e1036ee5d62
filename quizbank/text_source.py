"""
Text Sources
============
Obtain raw text from a PDF before question extraction.

    RemoteTextSource  POSTs {file_content, filename} (base64 PDF) to a
                      PDF-to-text service and reads {text} back.
    PdfTextSource     Extracts page text locally with PyMuPDF (fitz).
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Optional, Union

import fitz  # PyMuPDF
import requests

from .errors import TextSourceError

logger = logging.getLogger(__name__)


class RemoteTextSource:
    """Client for an HTTP PDF-to-text service."""

    def __init__(
        self,
        url: str,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def extract_text(self, pdf_bytes: bytes, filename: str = "file.pdf") -> str:
        """
        Send a PDF to the service and return its text.

        Raises:
            TextSourceError: On connection/HTTP errors or a malformed reply.
        """
        payload = {
            "file_content": base64.b64encode(pdf_bytes).decode("ascii"),
            "filename": filename,
        }
        logger.info(
            f"Requesting text for {filename} ({len(pdf_bytes)} bytes) "
            f"from {self.url}"
        )

        try:
            resp = self.session.post(
                self.url, json=payload, timeout=self.timeout
            )
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise TextSourceError(f"Text service request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise TextSourceError("Text service returned invalid JSON") from e

        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise TextSourceError("Text service response has no 'text' field")

        logger.info(f"Received {len(text)} characters of text")
        return text


class PdfTextSource:
    """Local text extraction with PyMuPDF."""

    def __init__(self, page_range: Optional[tuple[int, int]] = None):
        self.page_range = page_range

    def extract_text(self, pdf_bytes: bytes, filename: str = "file.pdf") -> str:
        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            raise TextSourceError(f"Cannot open PDF {filename}: {e}") from e

        with doc:
            total_pages = doc.page_count
            start_page, end_page = 1, total_pages
            if self.page_range:
                start_page = max(1, self.page_range[0])
                end_page = min(total_pages, self.page_range[1])

            logger.info(
                f"Extracting text from {filename} "
                f"(pages {start_page} to {end_page})"
            )
            pages = [
                doc[page_idx].get_text("text")
                for page_idx in range(start_page - 1, end_page)
            ]

        return "\n".join(pages)


def text_source_for(url: Optional[str], timeout: float = 60.0):
    """Remote source when a service URL is configured, else local PyMuPDF."""
    if url:
        return RemoteTextSource(url, timeout=timeout)
    return PdfTextSource()


def read_source_text(
    path: Union[str, Path],
    source=None,
) -> str:
    """
    Text of a source file: ``.txt`` files are read as-is, anything else is
    treated as a PDF and passed through ``source``.
    """
    path = Path(path)
    if path.suffix.lower() == ".txt":
        return path.read_text(encoding="utf-8", errors="replace")

    source = source or PdfTextSource()
    return source.extract_text(path.read_bytes(), filename=path.name)
