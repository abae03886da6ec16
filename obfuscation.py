"""
A reversible integer obfuscation module to prevent sequential scraping of ids.

This uses Knuth's multiplicative hashing: a prime multiplication masked to the
64-bit space, followed by an XOR with a random mask. Decoding multiplies by
the prime's modular inverse. It is a simple bijection, not encryption: it
makes database ids appear random and non-sequential, nothing more.

The prime and its inverse must be kept private. Anyone who learns either of
them (or a few encode/decode pairs) can reverse the mapping.
"""
from primes import MAX_INT, MILLER_RABIN, certify, mod_inverse


def _check_range(name: str, value: int) -> int:
    if not 0 <= value <= MAX_INT:
        raise ValueError(f"{name} must be between 0 and {MAX_INT}, got {value}")
    return value


class Codec:
    """
    Immutable (prime, mod_inverse, random) triple.

    Build instances with `new_direct` or `new_derived`; the constructor trusts
    its arguments and performs no certification.
    """

    __slots__ = ("_prime", "_mod_inverse", "_random")

    def __init__(self, prime: int, mod_inverse: int, random: int):
        object.__setattr__(self, "_prime", prime)
        object.__setattr__(self, "_mod_inverse", mod_inverse)
        object.__setattr__(self, "_random", random)

    def __setattr__(self, name, value):
        raise AttributeError("Codec is immutable")

    def __delattr__(self, name):
        raise AttributeError("Codec is immutable")

    def encode(self, n: int) -> int:
        """Scrambles a sequential id to make it appear random."""
        return ((n * self._prime) & MAX_INT) ^ self._random

    def decode(self, n: int) -> int:
        """
        Reverses `encode`. Only correct for values encoded with the same
        prime, mod_inverse and random.
        """
        return ((n ^ self._random) * self._mod_inverse) & MAX_INT

    # Do not divulge these values.
    @property
    def prime(self) -> int:
        return self._prime

    @property
    def mod_inverse(self) -> int:
        return self._mod_inverse

    @property
    def random(self) -> int:
        return self._random

    def as_tuple(self) -> tuple[int, int, int]:
        return self._prime, self._mod_inverse, self._random

    def __eq__(self, other):
        if not isinstance(other, Codec):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def __hash__(self):
        return hash(self.as_tuple())

    def __repr__(self):
        return "Codec(prime=<hidden>, mod_inverse=<hidden>, random=<hidden>)"


def new_direct(prime: int, mod_inverse: int, random: int, rounds: int = MILLER_RABIN) -> Codec:
    """
    Returns a Codec from a stored triple.

    Raises NotPrimeError if `prime` fails certification. `mod_inverse` is not
    checked against `prime`; supplying the right one is the caller's job.
    """
    for name, value in (("prime", prime), ("mod_inverse", mod_inverse), ("random", random)):
        _check_range(name, value)
    certify(prime, rounds)
    return Codec(prime, mod_inverse, random)


def new_derived(prime: int, random: int, rounds: int = MILLER_RABIN) -> Codec:
    """Returns a Codec, calculating the modular inverse of `prime`."""
    _check_range("prime", prime)
    _check_range("random", random)
    return Codec(prime, mod_inverse(prime, rounds), random)


def is_inverse_pair(prime: int, mod_inverse: int) -> bool:
    """True when (prime * mod_inverse) mod 2**64 == 1."""
    return (prime * mod_inverse) & MAX_INT == 1
