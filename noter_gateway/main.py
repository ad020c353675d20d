"""FastAPI application exposing the transcription, summarization and liveness endpoints."""

import math
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from .body_limit import BodyLimit, BodySizeLimitMiddleware
from .config import configure_logging, load_settings
from .errors import GatewayError, InvalidUpload, RateLimited, ValidationError
from .rate_limit import RateLimiter
from .summarize_service import SummarizeService
from .transcribe_service import TranscribeService
from .uploads import TemporaryUploadStore, admit_upload, keep_parts_in_memory, upload_filename

settings = load_settings()
logger = configure_logging(settings.log_level)

transcribe_service = TranscribeService(settings.groq_api_key, timeout=settings.upstream_timeout)
summarize_service = SummarizeService(
    settings.groq_api_key,
    language=settings.summary_language,
    timeout=settings.upstream_timeout,
)

LIVENESS_MESSAGE = "AI Noter server is up and secure."

# Room for multipart boundaries and part headers around the audio file
MULTIPART_OVERHEAD = 64 * 1024

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'; object-src 'none'",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SummarizeRequest(BaseModel):
    text: str | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.groq_api_key:
        logger.warning("GROQ_API_KEY is not set, upstream calls will be rejected")
    yield


app = FastAPI(lifespan=lifespan)
app.state.rate_limiter = RateLimiter(settings.rate_limit, settings.rate_window_seconds)
app.state.upload_store = TemporaryUploadStore(settings.upload_dir)

upload_body_limit = settings.max_upload_bytes + MULTIPART_OVERHEAD
keep_parts_in_memory(upload_body_limit)


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return _error(400, "invalid request body")


# Middleware listed innermost first: body limit, unexpected errors, CORS,
# rate limit, security headers.
app.add_middleware(
    BodySizeLimitMiddleware,
    limits={
        "/transcribe": BodyLimit(upload_body_limit, "audio file too large"),
        "/summarize": BodyLimit(settings.max_json_bytes, "request body too large"),
    },
)


@app.middleware("http")
async def unexpected_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s", request.url.path)
        return _error(500, "internal server error")


app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.allowed_origins),
    allow_methods=["POST"],
)


@app.middleware("http")
async def rate_limit(request: Request, call_next):
    """Count the request against its client address before any handler runs."""
    limiter: RateLimiter = request.app.state.rate_limiter
    address = request.client.host if request.client else "unknown"
    try:
        status = limiter.hit(address)
    except RateLimited as exc:
        logger.info("Rate limit exceeded for %s", address)
        retry_after = str(math.ceil(exc.retry_after))
        return _error(
            exc.status_code,
            exc.message,
            headers={
                "RateLimit-Limit": str(limiter.limit),
                "RateLimit-Remaining": "0",
                "RateLimit-Reset": retry_after,
                "Retry-After": retry_after,
            },
        )

    response = await call_next(request)
    response.headers["RateLimit-Limit"] = str(status.limit)
    response.headers["RateLimit-Remaining"] = str(status.remaining)
    response.headers["RateLimit-Reset"] = str(math.ceil(status.reset_after))
    return response


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


@app.get("/")
async def liveness() -> PlainTextResponse:
    """Report that the server is running."""
    return PlainTextResponse(LIVENESS_MESSAGE)


@app.post("/transcribe")
async def transcribe(request: Request, audio: UploadFile | None = File(None)) -> dict:
    """Check the uploaded audio, store it temporarily and relay it for transcription."""
    if audio is None:
        raise InvalidUpload("no file was sent")
    admit_upload(audio, settings.max_upload_bytes, settings.allowed_audio_types)

    filename = upload_filename(audio)
    logger.info("Transcribing %s", filename)
    store: TemporaryUploadStore = request.app.state.upload_store
    async with store.persist(audio) as tmp_path:
        text = await transcribe_service.transcribe(tmp_path, filename, audio.content_type)

    logger.info("Transcription complete for %s", filename)
    return {"text": text}


@app.post("/summarize")
async def summarize(body: SummarizeRequest) -> dict:
    """Relay the text to the language model and return a short summary."""
    if not body.text:
        raise ValidationError("text is required")
    if len(body.text) > settings.max_summary_chars:
        raise ValidationError("text is too long")

    summary = await summarize_service.summarize(body.text)
    logger.info("Summary generated")
    return {"summary": summary}
