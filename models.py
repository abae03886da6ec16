from typing import Optional
from pydantic import BaseModel, Field

from primes import MAX_INT


class CodecResponse(BaseModel):
    """Response model for an encode or decode call."""
    input: int
    output: int


class SeedResponse(BaseModel):
    """A freshly generated seed. Store it; it will not be shown again."""
    prime: int
    mod_inverse: int
    random: int
    shard: int


class TriplePayload(BaseModel):
    """Request model for checking a stored seed."""
    prime: int = Field(..., ge=0, le=MAX_INT)
    mod_inverse: int = Field(..., ge=0, le=MAX_INT)
    random: int = Field(..., ge=0, le=MAX_INT)


class VerifyResponse(BaseModel):
    prime_certified: bool
    inverse_valid: bool
    rounds: int
    confidence: float


class ErrorResponse(BaseModel):
    detail: str
    step: Optional[str] = None
    shard: Optional[int] = None
