"""
HTTP Service
============
Flask microservice exposing extraction, import and grading to a quiz UI.

Endpoints:
    GET  /api/health
    GET  /api/info
    POST /api/pdf2text    {file_content, filename} -> {text}
    POST /api/extract     {text} or multipart file -> questions + report
    POST /api/import      interchange JSON -> normalised questions + report
    POST /api/grade       {correct, proposed} -> {correct: bool}
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import __version__
from . import storage
from .errors import ExtractionError, ImportFormatError, TextSourceError
from .extractor import QuestionExtractor
from .text_source import text_source_for
from .validator import LABELS, ValidationEngine, validate_answer

logger = logging.getLogger(__name__)

app = Flask(__name__)
# Question and option order is significant
app.json.sort_keys = False
CORS(app)


def create_app(config: dict = None) -> Flask:
    """Create and configure the Flask app."""
    if config:
        app.config.update(config)

    app.config.setdefault("TEXT_SERVICE_URL", None)
    app.config.setdefault("TEXT_SERVICE_TIMEOUT", 60.0)
    app.config.setdefault("MAX_IMPORT_BYTES", storage.MAX_IMPORT_BYTES)
    app.config.setdefault("MAX_CONTENT_LENGTH", 100 * 1024 * 1024)  # 100MB

    return app


def _text_source():
    return text_source_for(
        app.config.get("TEXT_SERVICE_URL"),
        timeout=app.config.get("TEXT_SERVICE_TIMEOUT", 60.0),
    )


def _extraction_payload(text: str, strict: bool) -> dict:
    extraction = QuestionExtractor(strict=strict).extract(text)
    validation = ValidationEngine().validate(extraction.questions)
    return {
        "questions": storage.questions_to_dict(extraction.questions),
        "diagnostics": [
            d.model_dump(mode="json") for d in extraction.diagnostics
        ],
        "validation": validation.model_dump(mode="json"),
    }


# ─── Health Check ─────────────────────────────────────────────────────────────


@app.route("/api/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "quizbank",
        "version": __version__,
    })


@app.route("/api/info", methods=["GET"])
def info():
    """Version and capability info."""
    return jsonify({
        "version": __version__,
        "text_source": "remote" if app.config.get("TEXT_SERVICE_URL") else "PyMuPDF",
        "labels": list(LABELS),
        "capabilities": [
            "pdf_to_text",
            "question_extraction",
            "strict_diagnostics",
            "bank_import",
            "answer_grading",
        ],
        "supported_formats": ["pdf", "txt", "json"],
    })


# ─── PDF to Text ──────────────────────────────────────────────────────────────


@app.route("/api/pdf2text", methods=["POST"])
def pdf2text():
    """Convert a base64-encoded PDF to text via the configured text source."""
    data = request.get_json(silent=True) or {}
    file_content = data.get("file_content")
    filename = data.get("filename") or "file.pdf"

    if not isinstance(file_content, str) or not file_content:
        return jsonify({"error": "file_content is required"}), 400

    try:
        pdf_bytes = base64.b64decode(file_content, validate=True)
    except (binascii.Error, ValueError):
        return jsonify({"error": "file_content is not valid base64"}), 400

    try:
        text = _text_source().extract_text(pdf_bytes, filename=filename)
    except TextSourceError as e:
        logger.error(f"Text extraction failed for {filename}: {e}")
        return jsonify({"error": str(e)}), 502

    return jsonify({"text": text})


# ─── Extraction ───────────────────────────────────────────────────────────────


@app.route("/api/extract", methods=["POST"])
def extract():
    """
    Extract questions from raw text or an uploaded file.

    Accepts either:
        - A JSON body {"text": "...", "strict": false}
        - A file upload (multipart/form-data), .pdf or .txt
    """
    if "file" in request.files:
        file = request.files["file"]
        if not file.filename:
            return jsonify({"error": "No file selected"}), 400

        strict = request.form.get("strict", "").lower() in ("1", "true", "yes")
        raw = file.read()
        if Path(file.filename).suffix.lower() == ".txt":
            text = raw.decode("utf-8", errors="replace")
        else:
            try:
                text = _text_source().extract_text(raw, filename=file.filename)
            except TextSourceError as e:
                logger.error(f"Text extraction failed for {file.filename}: {e}")
                return jsonify({"error": str(e)}), 502

    elif request.is_json:
        data = request.get_json(silent=True) or {}
        text = data.get("text")
        strict = bool(data.get("strict", False))
        if not isinstance(text, str):
            return jsonify({"error": "text must be a string"}), 400
    else:
        return jsonify({
            "error": "Provide a file upload or JSON with text"
        }), 400

    try:
        return jsonify(_extraction_payload(text, strict)), 200
    except ExtractionError as e:
        return jsonify({
            "error": str(e),
            "diagnostics": [d.model_dump(mode="json") for d in e.diagnostics],
        }), 422


# ─── Import ───────────────────────────────────────────────────────────────────


@app.route("/api/import", methods=["POST"])
def import_bank():
    """Validate and normalise a question bank in interchange format."""
    try:
        questions = storage.loads_questions(
            request.get_data(),
            max_bytes=app.config.get("MAX_IMPORT_BYTES", storage.MAX_IMPORT_BYTES),
        )
    except ImportFormatError as e:
        return jsonify({"error": str(e)}), 400

    validation = ValidationEngine().validate(questions)
    return jsonify({
        "questions": storage.questions_to_dict(questions),
        "validation": validation.model_dump(mode="json"),
    }), 200


# ─── Grading ──────────────────────────────────────────────────────────────────


@app.route("/api/grade", methods=["POST"])
def grade():
    """Exact-match grading of a selection against the correct labels."""
    data = request.get_json(silent=True) or {}
    correct = data.get("correct")
    proposed = data.get("proposed")

    if not isinstance(correct, list) or not isinstance(proposed, list):
        return jsonify({"error": "correct and proposed must be lists"}), 400
    if not all(isinstance(label, str) for label in correct + proposed):
        return jsonify({"error": "labels must be strings"}), 400

    return jsonify({"correct": validate_answer(correct, proposed)})


# ─── Run Server ──────────────────────────────────────────────────────────────


def run_server(
    host: str = "0.0.0.0",
    port: int = 5000,
    debug: bool = False,
    config: dict = None,
):
    """Start the microservice server."""
    create_app(config)
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
