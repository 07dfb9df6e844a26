import logging
import secrets
import string
import time

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

_ERROR_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_error_id() -> str:
    """Correlation id handed to the driver for support triage, e.g. ERR-1718000000000-4FJ2Q."""
    suffix = "".join(secrets.choice(_ERROR_ID_ALPHABET) for _ in range(5))
    return f"ERR-{int(time.time() * 1000)}-{suffix}"


def internal_error(context: str, user_message: str, exc: Exception, **details) -> HTTPException:
    """Log an unexpected failure with its context and build the 500 response for it."""
    error_id = generate_error_id()
    logger.error(
        "%s failed [%s]: %s | %s",
        context,
        error_id,
        exc,
        ", ".join(f"{key}={value}" for key, value in details.items()),
        exc_info=exc,
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": user_message, "error_id": error_id},
    )
