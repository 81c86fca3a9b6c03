import logging
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def as_http_500(e: Exception) -> HTTPException:
    """Log exception and return a generic 500 HTTPException (no internal details leaked).
    Why available: Upload handling failures (disk full, permission errors) surface as a plain 500 while the traceback goes to the log."""
    logger.error("Unhandled error: %s", e, exc_info=e)
    return HTTPException(status_code=500, detail="Internal server error")
