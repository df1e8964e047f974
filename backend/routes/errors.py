"""Maps domain exceptions onto HTTP responses"""
from fastapi import HTTPException
import logging

from exceptions import InvalidTransitionError, NotFoundError, OnboardingError, ValidationError

logger = logging.getLogger(__name__)


def to_http_exception(e: Exception, context: str) -> HTTPException:
    """
    HTTPException for an error raised while handling a request.
    Unknown errors are logged and surface as 500.
    """
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, ValidationError):
        detail = {"message": str(e), "fields": e.fields} if e.fields else str(e)
        return HTTPException(status_code=400, detail=detail)
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, OnboardingError):
        return HTTPException(status_code=400, detail=str(e))

    logger.error(f"Error {context}: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=f"Error {context}: {str(e)}")
