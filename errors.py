"""
Exception hierarchy for the obfuscation core.

Every failure is raised as a typed, catchable exception so host applications
decide on retry and alerting. The core itself never logs and never exits.
"""
from typing import Optional


class OptimusError(Exception):
    """Base class for all codec and seed generation failures."""

    def __init__(self, message: str, shard: Optional[int] = None, step: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.shard = shard
        self.step = step

    def annotate(self, shard: int, step: str) -> "OptimusError":
        """Records where in seed generation the failure happened."""
        self.shard = shard
        self.step = step
        return self

    def __str__(self) -> str:
        if self.step is None:
            return self.message
        return f"{self.message} (step={self.step}, shard={self.shard})"


class NotPrimeError(OptimusError):
    def __init__(self, value: int, rounds: int, confidence: float, **kwargs):
        super().__init__(
            f"Number is not prime: n={value}. {rounds} Miller-Rabin tests done. Accuracy: {confidence:f}",
            **kwargs,
        )
        self.value = value
        self.rounds = rounds
        self.confidence = confidence


class InvalidModulusError(OptimusError):
    def __init__(self, value: int, modulus: int, **kwargs):
        super().__init__(f"{value} has no inverse modulo {modulus}", **kwargs)
        self.value = value
        self.modulus = modulus


class SourceUnavailableError(OptimusError):
    """The prime corpus could not be read. ``cause`` is the collaborator's error."""

    def __init__(self, cause: BaseException, **kwargs):
        super().__init__(f"Prime corpus unavailable: {cause}", **kwargs)
        self.cause = cause


class EmptyCandidatePoolError(OptimusError):
    """The sampled window held no usable integers. Retrying draws a new window."""

    def __init__(self, window: bytes = b"", **kwargs):
        super().__init__(f"No candidate primes in window {window!r}", **kwargs)
        self.window = window
