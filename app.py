from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Depends, Path, status, APIRouter
from fastapi.responses import JSONResponse

from slowapi import Limiter, _rate_limit_exceeded_handler, errors
from slowapi.util import get_remote_address

# Import core modules
import config
from encoding import CodecNotConfigured, get_codec
from errors import (
    OptimusError, NotPrimeError, InvalidModulusError,
    SourceUnavailableError, EmptyCandidatePoolError,
)
from models import CodecResponse, SeedResponse, TriplePayload, VerifyResponse, ErrorResponse
from obfuscation import Codec, is_inverse_pair
from primes import MAX_INT, confidence_bound, is_prime
from seed import SeedGenerator

from core_logic import (
    logger, build_seed_generator, run_seed_generation,
    validate_id, CodecUnavailableException,
)

# --- GLOBAL INSTANCES ---
limiter = Limiter(key_func=get_remote_address)

# --- LIFESPAN AND APP SETUP ---

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    config.config.validate()
    if config.config.has_seed():
        logger.info("Application started with a configured seed")
    else:
        logger.warning("No seed configured: encode/decode endpoints will return 503")
    yield
    logger.info("Application shutdown complete")

# Main app instance
app = FastAPI(
    title="Optimus IDs",
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(errors.RateLimitExceeded, _rate_limit_exceeded_handler)

# --- ERROR MAPPING ---

ERROR_STATUS = {
    NotPrimeError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidModulusError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    SourceUnavailableError: status.HTTP_502_BAD_GATEWAY,
    EmptyCandidatePoolError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

@app.exception_handler(OptimusError)
async def optimus_error_handler(request: Request, exc: OptimusError):
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = ErrorResponse(detail=exc.message, step=exc.step, shard=exc.shard)
    return JSONResponse(status_code=status_code, content=body.model_dump())

# --- DEPENDENCIES ---

def get_default_codec() -> Codec:
    try:
        return get_codec()
    except CodecNotConfigured as e:
        raise CodecUnavailableException(str(e))
    except OptimusError as e:
        logger.error(f"Configured seed is invalid: {e}")
        raise CodecUnavailableException("Configured seed is invalid")

def get_seed_generator() -> SeedGenerator:
    return build_seed_generator()

# --- ROUTERS DEFINITION (API) ---

api_router = APIRouter(prefix="/api/v1", tags=["API"])

@api_router.get("/ids/{n}/encode", response_model=CodecResponse)
@limiter.limit(config.RATE_LIMIT_CODEC)
async def api_encode(
    request: Request,
    n: int = Path(..., description="Internal id"),
    codec: Codec = Depends(get_default_codec),
):
    """Obfuscate an internal id"""
    validate_id(n)
    return CodecResponse(input=n, output=codec.encode(n))

@api_router.get("/ids/{n}/decode", response_model=CodecResponse)
@limiter.limit(config.RATE_LIMIT_CODEC)
async def api_decode(
    request: Request,
    n: int = Path(..., description="Obfuscated id"),
    codec: Codec = Depends(get_default_codec),
):
    """Recover an internal id from its obfuscated form"""
    validate_id(n)
    return CodecResponse(input=n, output=codec.decode(n))

@api_router.post("/seeds", response_model=SeedResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(config.RATE_LIMIT_SEED)
def api_generate_seed(
    request: Request,
    generator: SeedGenerator = Depends(get_seed_generator),
):
    """Generate a new seed from the prime corpus (operator action)"""
    result = run_seed_generation(generator)
    prime, mod_inverse, random = result.codec.as_tuple()
    return SeedResponse(prime=prime, mod_inverse=mod_inverse, random=random, shard=result.shard)

@api_router.post("/codecs/verify", response_model=VerifyResponse)
@limiter.limit(config.RATE_LIMIT_CODEC)
async def api_verify_triple(request: Request, payload: TriplePayload):
    """Check a stored seed: is the prime certified and is the inverse correct?"""
    rounds = config.config.MILLER_RABIN_ROUNDS
    return VerifyResponse(
        prime_certified=is_prime(payload.prime, rounds),
        inverse_valid=is_inverse_pair(payload.prime, payload.mod_inverse),
        rounds=rounds,
        confidence=confidence_bound(rounds),
    )

# --- ROUTERS DEFINITION (SERVICE) ---

web_router = APIRouter()

@web_router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "seed_configured": config.config.has_seed(),
        "max_id": MAX_INT,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

app.include_router(api_router)
app.include_router(web_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, log_level="info")
