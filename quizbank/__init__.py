"""
Quiz Bank
=========
Turns exam-style PDF text into a structured bank of multiple-choice
questions and grades practice attempts against it.

Architecture:
    - Text Source: Obtains raw text from a PDF (remote service or PyMuPDF)
    - Extractor: Segments raw text into structured Question records
    - Validator: Exact answer-set grading and bank validation reports
    - Storage: JSON interchange format (export / re-import)
    - Session: In-memory quiz practice with navigation and scoring

Version: 1.0.0
"""

__version__ = "1.0.0"
