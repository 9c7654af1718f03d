#!/usr/bin/env python3
"""CLI for asking questions about a PDF."""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from docqa.config import (
    CHUNK_WORD_LENGTH,
    DEFAULT_NEIGHBORS,
    DEFAULT_START_PAGE,
    LOG_FILE,
    LOG_LEVEL,
    OPENAI_API_KEY,
    ensure_directories,
    validate_config,
)
from docqa.errors import DocQAError


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Ask a question about a PDF")
    parser.add_argument("question", type=str, help="Question to answer")

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", type=str, help="URL of the PDF")
    source.add_argument("--file", type=str, help="Path to a local PDF")

    parser.add_argument(
        "--start-page", type=int, default=DEFAULT_START_PAGE, help="First page to index"
    )
    parser.add_argument("--end-page", type=int, default=None, help="Last page to index")
    parser.add_argument(
        "--word-length", type=int, default=CHUNK_WORD_LENGTH, help="Words per chunk"
    )
    parser.add_argument(
        "-n", "--neighbors", type=int, default=DEFAULT_NEIGHBORS, help="Chunks per answer"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    ensure_directories()

    log_level = logging.DEBUG if args.debug else getattr(logging, LOG_LEVEL)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(LOG_FILE),
        ],
    )
    logger = logging.getLogger(__name__)

    issues = validate_config()
    if issues:
        logger.warning("Configuration issues:")
        for issue in issues:
            logger.warning(f"  - {issue}")

    from docqa.query.engine import QuestionAnswerer

    answerer = QuestionAnswerer(
        api_key=OPENAI_API_KEY,
        word_length=args.word_length,
        n_neighbors=args.neighbors,
        show_progress=True,
    )

    try:
        answer = answerer.ask(
            args.question,
            url=args.url,
            file=args.file,
            start_page=args.start_page,
            end_page=args.end_page,
        )
    except DocQAError as e:
        print(f"[ERROR]: {e}")
        sys.exit(1)

    print(answer)


if __name__ == "__main__":
    main()
