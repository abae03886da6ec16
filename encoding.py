"""
Handles the encoding and decoding of database ids with the process-wide codec
built from the stored seed in the configuration.
"""
from functools import lru_cache

from config import config
from obfuscation import Codec, new_derived, new_direct


class CodecNotConfigured(RuntimeError):
    """Raised when no seed has been stored in the configuration."""


@lru_cache()
def get_codec() -> Codec:
    """
    Returns a cached, singleton Codec built from the configured seed.
    Call `get_codec.cache_clear()` after changing the configuration.
    """
    if not config.has_seed():
        raise CodecNotConfigured("OPTIMUS_PRIME and OPTIMUS_RANDOM must be set")
    if config.OPTIMUS_MOD_INVERSE is None:
        return new_derived(config.OPTIMUS_PRIME, config.OPTIMUS_RANDOM, config.MILLER_RABIN_ROUNDS)
    return new_direct(
        config.OPTIMUS_PRIME, config.OPTIMUS_MOD_INVERSE, config.OPTIMUS_RANDOM, config.MILLER_RABIN_ROUNDS
    )


def encode_id(n: int) -> int:
    """Encodes a single integer id into a non-sequential one."""
    return get_codec().encode(n)


def decode_id(n: int) -> int:
    """Decodes an obfuscated id back into the original integer id."""
    return get_codec().decode(n)
