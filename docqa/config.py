"""Configuration loaded from the environment and an optional .env file."""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent

load_dotenv(PROJECT_ROOT / ".env")

# Paths
DATA_DIR = Path(os.getenv("DOCQA_DATA_DIR", str(PROJECT_ROOT / "data")))
DOWNLOAD_PATH = Path(os.getenv("DOCQA_DOWNLOAD_PATH", str(DATA_DIR / "corpus.pdf")))
LOG_DIR = Path(os.getenv("DOCQA_LOG_DIR", str(PROJECT_ROOT / "logs")))
LOG_FILE = LOG_DIR / "docqa.log"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")

EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
EMBEDDING_DIMENSIONS = int(os.getenv("EMBEDDING_DIMENSIONS", "512"))
EMBEDDING_BATCH_SIZE = int(os.getenv("EMBEDDING_BATCH_SIZE", "1000"))
EMBEDDING_MAX_ATTEMPTS = int(os.getenv("EMBEDDING_MAX_ATTEMPTS", "3"))

COMPLETION_MODEL = os.getenv("COMPLETION_MODEL", "gpt-4o-mini")
COMPLETION_MAX_TOKENS = int(os.getenv("COMPLETION_MAX_TOKENS", "512"))
COMPLETION_TEMPERATURE = float(os.getenv("COMPLETION_TEMPERATURE", "0.7"))

# Retrieval
CHUNK_WORD_LENGTH = int(os.getenv("CHUNK_WORD_LENGTH", "150"))
DEFAULT_START_PAGE = int(os.getenv("DEFAULT_START_PAGE", "1"))
DEFAULT_NEIGHBORS = int(os.getenv("DEFAULT_NEIGHBORS", "5"))

# Seconds
DOWNLOAD_TIMEOUT = float(os.getenv("DOWNLOAD_TIMEOUT", "60"))


def ensure_directories() -> None:
    """Create the data and log directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    DOWNLOAD_PATH.parent.mkdir(parents=True, exist_ok=True)
    LOG_DIR.mkdir(parents=True, exist_ok=True)


def validate_config() -> list[str]:
    """Check the loaded configuration.

    Returns:
        List of human-readable issues. Empty if the configuration is usable.
    """
    issues = []

    if not OPENAI_API_KEY:
        issues.append("OPENAI_API_KEY is not set")
    if EMBEDDING_BATCH_SIZE <= 0:
        issues.append(f"EMBEDDING_BATCH_SIZE must be positive, got {EMBEDDING_BATCH_SIZE}")
    if EMBEDDING_MAX_ATTEMPTS <= 0:
        issues.append(f"EMBEDDING_MAX_ATTEMPTS must be positive, got {EMBEDDING_MAX_ATTEMPTS}")
    if CHUNK_WORD_LENGTH <= 0:
        issues.append(f"CHUNK_WORD_LENGTH must be positive, got {CHUNK_WORD_LENGTH}")
    if DEFAULT_NEIGHBORS < 1:
        issues.append(f"DEFAULT_NEIGHBORS must be at least 1, got {DEFAULT_NEIGHBORS}")
    if DEFAULT_START_PAGE < 1:
        issues.append(f"DEFAULT_START_PAGE must be at least 1, got {DEFAULT_START_PAGE}")
    if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        issues.append(f"LOG_LEVEL '{LOG_LEVEL}' is not a valid logging level")

    return issues
