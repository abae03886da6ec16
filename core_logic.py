import os
import logging
import threading
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import HTTPException, status

from config import config
from corpus import default_corpus
from errors import OptimusError
from primes import MAX_INT
from seed import CorpusProvider, SeedGenerator, SeedResult

# --- LOGGING SETUP ---

def setup_logging() -> logging.Logger:
    """Configure structured logging with rotation"""
    logger = logging.getLogger("optimus_ids")
    logger.setLevel(logging.INFO)

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)

        log_dir = os.path.join(os.path.dirname(__file__), "logs")
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "app.log"),
            maxBytes=10_485_760,
            backupCount=5
        )
        file_handler.setLevel(logging.INFO)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )
        console_handler.setFormatter(formatter)
        file_handler.setFormatter(formatter)

        logger.addHandler(console_handler)
        logger.addHandler(file_handler)

    return logger

logger = setup_logging()

# --- HTTP EXCEPTIONS ---

class ValidationException(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class CodecUnavailableException(HTTPException):
    def __init__(self, detail: str = "No seed configured"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


def validate_id(n: int) -> int:
    if not 0 <= n <= MAX_INT:
        raise ValidationException(f"Id must be between 0 and {MAX_INT}")
    return n

# --- SEED GENERATION ---

def build_seed_generator(provider: Optional[CorpusProvider] = None) -> SeedGenerator:
    """Seed generator wired to the configured corpus and corpus layout."""
    return SeedGenerator(
        provider or default_corpus(config),
        shard_count=config.CORPUS_SHARD_COUNT,
        header_size=config.CORPUS_HEADER_SIZE,
        window_radius=config.CORPUS_WINDOW_RADIUS,
        rounds=config.MILLER_RABIN_ROUNDS,
    )


def run_seed_generation(
    generator: Optional[SeedGenerator] = None,
    cancel: Optional[threading.Event] = None,
) -> SeedResult:
    """Runs seed generation once and logs the outcome. Errors are re-raised."""
    generator = generator or build_seed_generator()
    logger.warning(
        "Generating a seed from a public prime list. Double check the selected prime "
        "with an independent source before relying on it."
    )
    try:
        result = generator.generate(cancel)
    except OptimusError as e:
        logger.error(f"Seed generation failed at step '{e.step}' using shard {e.shard}: {e.message}")
        raise
    logger.info(f"Seed generated using corpus shard {result.shard}")
    return result
