import os

from primes import MAX_INT

# ============================================================================
# CONFIGURATION CLASS
# ============================================================================


def _int_env(name: str, default: int | None = None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw.strip())


class Config:
    """Centralized configuration with validation"""

    # Stored seed for the default codec. Keep these secret.
    OPTIMUS_PRIME: int | None = _int_env("OPTIMUS_PRIME")
    OPTIMUS_MOD_INVERSE: int | None = _int_env("OPTIMUS_MOD_INVERSE")
    OPTIMUS_RANDOM: int | None = _int_env("OPTIMUS_RANDOM")

    # Certification
    MILLER_RABIN_ROUNDS: int = _int_env("MILLER_RABIN_ROUNDS", 20)

    # Prime corpus: the first 50 million primes split evenly over 50 zip files.
    CORPUS_URL_TEMPLATE: str = os.getenv(
        "CORPUS_URL_TEMPLATE", "http://primes.utm.edu/lists/small/millions/primes{shard}.zip"
    )
    CORPUS_DIRECTORY: str | None = os.getenv("CORPUS_DIRECTORY")
    CORPUS_SHARD_COUNT: int = 50

    # Layout of each corpus file: a label header, then whitespace separated primes.
    CORPUS_HEADER_SIZE: int = _int_env("CORPUS_HEADER_SIZE", 67)
    CORPUS_WINDOW_RADIUS: int = _int_env("CORPUS_WINDOW_RADIUS", 9)

    # Timeouts
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "30.0"))

    # Rate limiting
    RATE_LIMIT_SEED: str = os.getenv("RATE_LIMIT_SEED", "2/minute")
    RATE_LIMIT_CODEC: str = os.getenv("RATE_LIMIT_CODEC", "120/minute")

    @classmethod
    def validate(cls):
        """Validate configuration on startup"""
        if cls.MILLER_RABIN_ROUNDS < 1:
            raise ValueError("MILLER_RABIN_ROUNDS must be at least 1")
        if "{shard}" not in cls.CORPUS_URL_TEMPLATE:
            raise ValueError("CORPUS_URL_TEMPLATE must contain a {shard} placeholder")
        if cls.CORPUS_SHARD_COUNT < 1:
            raise ValueError("CORPUS_SHARD_COUNT must be positive")
        if cls.CORPUS_HEADER_SIZE < 0:
            raise ValueError("CORPUS_HEADER_SIZE cannot be negative")
        if cls.CORPUS_WINDOW_RADIUS < 1:
            raise ValueError("CORPUS_WINDOW_RADIUS must be at least 1")
        for name in ("OPTIMUS_PRIME", "OPTIMUS_MOD_INVERSE", "OPTIMUS_RANDOM"):
            value = getattr(cls, name)
            if value is not None and not 0 <= value <= MAX_INT:
                raise ValueError(f"{name} must be between 0 and {MAX_INT}")
        if cls.OPTIMUS_PRIME is not None and cls.OPTIMUS_RANDOM is None:
            raise ValueError("OPTIMUS_RANDOM must be set together with OPTIMUS_PRIME")
        if cls.OPTIMUS_PRIME is None and cls.OPTIMUS_MOD_INVERSE is not None:
            raise ValueError("OPTIMUS_MOD_INVERSE requires OPTIMUS_PRIME")

    @classmethod
    def has_seed(cls) -> bool:
        return cls.OPTIMUS_PRIME is not None and cls.OPTIMUS_RANDOM is not None


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

config = Config()

# --- Expose class attributes as module constants for convenience ---
for attr in [a for a in dir(config) if not a.startswith('__') and not callable(getattr(config, a))]:
    globals()[attr] = getattr(config, attr)
