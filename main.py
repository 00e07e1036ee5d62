"""
Quiz Bank Service — Main Entry Point
====================================
Starts the Flask-based extraction and grading microservice.

Usage:
    python main.py                    # Default: 0.0.0.0:5000
    python main.py --port 8000        # Custom port
    python main.py --debug            # Debug mode
"""

import argparse
import logging

from quizbank.engine import QuizBankConfig
from quizbank.server import create_app, app

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Quiz Bank Service")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=5000, help="Bind port")
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    args = parser.parse_args()

    config = QuizBankConfig.from_env()
    create_app({
        "TEXT_SERVICE_URL": config.text_service_url,
        "TEXT_SERVICE_TIMEOUT": config.text_service_timeout,
    })

    logger.info(
        f"Text source: {config.text_service_url or 'local PyMuPDF'}"
    )
    logger.info(f"Starting server on {args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
