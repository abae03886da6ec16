"""
Primality certification and modular inverses over the 64-bit id space.
"""
import random
from typing import Optional

from errors import InvalidModulusError, NotPrimeError

# Largest value an id may take. All transform arithmetic is masked to it.
MAX_INT = 2**64 - 1
MODULUS = MAX_INT + 1

MILLER_RABIN = 20

_SMALL_PRIMES = (3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47)


def confidence_bound(rounds: int = MILLER_RABIN) -> float:
    """Lower bound on the probability that a number passing `rounds` tests is prime."""
    return 1.0 - 1.0 / 4.0**rounds


def is_prime(n: int, rounds: int = MILLER_RABIN, rng: Optional[random.Random] = None) -> bool:
    """
    Miller-Rabin probable prime test.

    Witnesses are drawn from `rng`, which defaults to a generator seeded with
    `n`, so the same input always gets the same answer.
    """
    if n < 2:
        return False
    if n == 2:
        return True
    if n % 2 == 0:
        return False
    for p in _SMALL_PRIMES:
        if n == p:
            return True
        if n % p == 0:
            return False

    r, d = 0, n - 1
    while d % 2 == 0:
        r += 1
        d //= 2

    rng = rng or random.Random(n)
    for _ in range(rounds):
        a = rng.randrange(2, n - 1)
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(r - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def certify(n: int, rounds: int = MILLER_RABIN) -> int:
    """Returns `n` unchanged, or raises NotPrimeError."""
    if not is_prime(n, rounds):
        raise NotPrimeError(n, rounds, confidence_bound(rounds))
    return n


def extended_gcd(a: int, b: int) -> tuple[int, int, int]:
    """Finds (g, x, y) such that a*x + b*y == g == gcd(a, b)."""
    x0, x1, y0, y1 = 1, 0, 0, 1
    while b:
        q, a, b = a // b, b, a % b
        x0, x1 = x1, x0 - q * x1
        y0, y1 = y1, y0 - q * y1
    return a, x0, y0


def mod_inverse(prime: int, rounds: int = MILLER_RABIN) -> int:
    """
    Calculates the modular inverse of a prime such that
    (prime * inverse) & MAX_INT == 1.

    Raises NotPrimeError if `prime` fails certification and
    InvalidModulusError if no inverse exists (2 is the only prime without one,
    as the modulus is a power of two).
    """
    certify(prime, rounds)
    g, x, _ = extended_gcd(prime, MODULUS)
    if g != 1:
        raise InvalidModulusError(prime, MODULUS)
    return x % MODULUS & MAX_INT
