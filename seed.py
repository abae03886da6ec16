"""
Seed generation: derive a fresh (prime, mod_inverse, random) triple from an
external corpus of known primes.

The corpus is split into numbered shards, each a text file with a label
header followed by whitespace separated primes. A shard is picked at random,
a short window is cut out of it at a random position, and one of the numbers
in the window becomes the prime. The modular inverse is calculated and the
XOR mask is drawn from a cryptographically secure source.

Nothing here performs network I/O or logging. Reading the shard is delegated
to an injected corpus provider, see corpus.py.
"""
import secrets
import threading
from typing import Callable, NamedTuple, Optional, Protocol

from errors import EmptyCandidatePoolError, OptimusError, SourceUnavailableError
from obfuscation import Codec
from primes import MAX_INT, MILLER_RABIN, mod_inverse

SHARD_COUNT = 50
# Each corpus file has an introductory header which is not relevant until the 67th character.
HEADER_SIZE = 67
WINDOW_RADIUS = 9

# provider(shard, cancel) -> decompressed shard contents
CorpusProvider = Callable[[int, Optional[threading.Event]], bytes]


class RandomSource(Protocol):
    def randint(self, low: int, high: int) -> int:
        """Uniform integer in the inclusive range [low, high]."""
        ...


class SecureRandom:
    """RandomSource backed by the operating system's CSPRNG."""

    def randint(self, low: int, high: int) -> int:
        if high < low:
            raise ValueError(f"Empty range [{low}, {high}]")
        return low + secrets.randbelow(high - low + 1)


class SeedResult(NamedTuple):
    codec: Codec
    shard: int


def extract_window(content: bytes, offset: int, header_size: int = HEADER_SIZE, radius: int = WINDOW_RADIUS) -> bytes:
    """Cuts the bytes within `radius` of `offset`, clamped to the region after the header."""
    low = max(offset - radius, header_size)
    high = min(offset + radius, len(content))
    return content[low:high]


def parse_candidates(window: bytes) -> list[int]:
    """
    Splits the window on whitespace and returns every token that is a decimal
    64-bit unsigned integer, in order of appearance. Anything else is noise
    and is dropped.
    """
    candidates = []
    for token in window.split():
        if not token.isdigit():
            continue
        value = int(token)
        if value <= MAX_INT:
            candidates.append(value)
    return candidates


def select_prime(candidates: list[int], rng: RandomSource) -> int:
    """
    Picks one candidate.

    With two or fewer candidates the largest wins. Otherwise the middle one
    by position is used. For an even count a coin flip chooses between the
    two middle positions.
    """
    if not candidates:
        raise EmptyCandidatePoolError()

    length = len(candidates)
    if length <= 2:
        return max(candidates)
    if length % 2 == 1:
        return candidates[length // 2]
    if rng.randint(0, 1) == 0:
        return candidates[length // 2]
    return candidates[length // 2 - 1]


class SeedGenerator:
    """
    Generates a Codec from a randomly chosen prime in the corpus.

    This is an operator action: run it once, store the resulting triple and
    build codecs from it with `new_direct` afterwards. Failures are raised
    with the step and shard attached; there are no retries.
    """

    def __init__(
        self,
        provider: CorpusProvider,
        rng: Optional[RandomSource] = None,
        shard_count: int = SHARD_COUNT,
        header_size: int = HEADER_SIZE,
        window_radius: int = WINDOW_RADIUS,
        rounds: int = MILLER_RABIN,
    ):
        self.provider = provider
        self.rng = rng or SecureRandom()
        self.shard_count = shard_count
        self.header_size = header_size
        self.window_radius = window_radius
        self.rounds = rounds

    def fetch(self, shard: int, cancel: Optional[threading.Event] = None) -> bytes:
        try:
            content = self.provider(shard, cancel)
        except OptimusError as e:
            raise e.annotate(shard, "fetch")
        except Exception as e:
            raise SourceUnavailableError(e, shard=shard, step="fetch") from e

        if cancel is not None and cancel.is_set():
            raise SourceUnavailableError(RuntimeError("seed generation cancelled"), shard=shard, step="fetch")
        return content

    def sample(self, content: bytes) -> bytes:
        """Returns the window around a random position past the header."""
        if len(content) <= self.header_size:
            raise EmptyCandidatePoolError(step="sample")
        offset = self.rng.randint(self.header_size, len(content) - 1)
        return extract_window(content, offset, self.header_size, self.window_radius)

    def generate(self, cancel: Optional[threading.Event] = None) -> SeedResult:
        shard = self.rng.randint(1, self.shard_count)
        content = self.fetch(shard, cancel)

        try:
            window = self.sample(content)
        except OptimusError as e:
            raise e.annotate(shard, "sample")

        candidates = parse_candidates(window)
        if not candidates:
            raise EmptyCandidatePoolError(window, shard=shard, step="parse")
        prime = select_prime(candidates, self.rng)

        try:
            inverse = mod_inverse(prime, self.rounds)
        except OptimusError as e:
            raise e.annotate(shard, "certify")

        # mask is never 0
        random = self.rng.randint(1, MAX_INT - 1)
        return SeedResult(Codec(prime, inverse, random), shard)


def generate_seed(provider: CorpusProvider, cancel: Optional[threading.Event] = None, **kwargs) -> SeedResult:
    """Shortcut for SeedGenerator(provider, **kwargs).generate(cancel)."""
    return SeedGenerator(provider, **kwargs).generate(cancel)
