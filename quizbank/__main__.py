"""
Module entry point for: python -m quizbank

Allows running the tool directly as a module:
    python -m quizbank extract <file> [options]
    python -m quizbank quiz <bank.json> [options]
    python -m quizbank serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
