"""Translate engine errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from ..errors import ItineraryError, NotFoundError, PersistenceError, ValidationError


def to_http_exception(exc: ItineraryError) -> HTTPException:
    if isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, PersistenceError):
        status_code = status.HTTP_502_BAD_GATEWAY
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(
        status_code=status_code,
        detail={"message": exc.message, "code": exc.code.value, "user_message": exc.user_message},
    )
