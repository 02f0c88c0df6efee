"""Classification of raw provider errors into typed generation failures.

Every provider error lands in exactly one bucket, checked in order:
prompt rejection, rate limit, then credential/transport failure.
"""

from collections.abc import Callable

from bulk_image_generator.domain.errors import (
    CredentialOrTransportFailure,
    GenerationFailure,
    PromptRejectionFailure,
    RateLimitFailure,
)

Classifier = Callable[[Exception], GenerationFailure]

_RATE_LIMIT_STATUS_CODE = 429
_RATE_LIMIT_STATUSES = {"RESOURCE_EXHAUSTED"}
_RATE_LIMIT_PHRASES = (
    "quota",
    "rate limit",
    "rate_limit",
    "resource exhausted",
    "resource_exhausted",
    "too many requests",
)

GEMINI_REJECTION_PHRASES = (
    "safety filter",
    "safety setting",
    "responsible ai",
    "sensitive words",
    "prompt could not be submitted",
    "blocked by safety",
    "violates our policies",
)
OPENAI_REJECTION_PHRASES = (
    "safety system",
    "content policy",
    "content_policy_violation",
    "moderation_blocked",
)
OPENAI_REJECTION_CODES = {"content_policy_violation", "moderation_blocked"}

_UNKNOWN_ERROR = "An unknown error occurred."


def classify_failure(
    exc: Exception,
    *,
    rejection_phrases: tuple[str, ...] = (),
    rejection_codes: set[str] | None = None,
) -> GenerationFailure:
    """Place a raw error into one failure bucket."""
    if isinstance(exc, GenerationFailure):
        return exc
    message = error_message(exc)
    lowered = message.lower()
    code = getattr(exc, "code", None)
    if (isinstance(code, str) and code in (rejection_codes or set())) or any(
        phrase in lowered for phrase in rejection_phrases
    ):
        return PromptRejectionFailure(message)
    if _is_rate_limited(exc, lowered):
        return RateLimitFailure(message)
    return CredentialOrTransportFailure(message)


def classify_gemini_error(exc: Exception) -> GenerationFailure:
    """Classify errors raised by the google-genai SDK."""
    return classify_failure(exc, rejection_phrases=GEMINI_REJECTION_PHRASES)


def classify_openai_error(exc: Exception) -> GenerationFailure:
    """Classify errors raised by the OpenAI SDK."""
    return classify_failure(
        exc,
        rejection_phrases=OPENAI_REJECTION_PHRASES,
        rejection_codes=OPENAI_REJECTION_CODES,
    )


def error_message(exc: Exception) -> str:
    """Extract a readable message from SDK and transport errors."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message.strip():
        return message.strip()
    text = str(exc).strip()
    return text or _UNKNOWN_ERROR


def status_code_from_exception(exc: Exception) -> int | None:
    """Extract an HTTP status code from an exception, if available."""
    for candidate in (
        getattr(exc, "status_code", None),
        getattr(exc, "code", None),
        getattr(getattr(exc, "response", None), "status_code", None),
    ):
        if isinstance(candidate, int) and not isinstance(candidate, bool):
            return candidate
    return None


def _is_rate_limited(exc: Exception, lowered_message: str) -> bool:
    if status_code_from_exception(exc) == _RATE_LIMIT_STATUS_CODE:
        return True
    status = getattr(exc, "status", None)
    if isinstance(status, str) and status.upper() in _RATE_LIMIT_STATUSES:
        return True
    return any(phrase in lowered_message for phrase in _RATE_LIMIT_PHRASES)
