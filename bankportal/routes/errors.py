"""
Translation of service-layer errors into HTTP responses.

Every error body has the shape {"error": <code>, "details": <message>}.
"""

import logging

from fastapi import HTTPException, status
from postgrest.exceptions import APIError

from bankportal.utils.errors import NotFoundError, PartiallyAppliedError

logger = logging.getLogger(__name__)


def http_error(e: Exception, action: str) -> HTTPException:
    """
    Map an exception raised while performing `action` to an HTTPException.

    - NotFoundError -> 404
    - PreconditionError / ValueError -> 400
    - PartiallyAppliedError -> 409 (body includes applied_steps)
    - postgrest APIError -> 500 database_error
    - anything else -> 500 internal_error
    """
    if isinstance(e, HTTPException):
        return e

    if isinstance(e, NotFoundError):
        logger.warning(f"{action}: {e}")
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": str(e)}
        )

    if isinstance(e, ValueError):
        logger.warning(f"{action}: {e}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": str(e)}
        )

    if isinstance(e, PartiallyAppliedError):
        logger.error(f"{action}: {e}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "partially_applied",
                "details": str(e),
                "applied_steps": len(e.completed),
            }
        )

    if isinstance(e, APIError):
        logger.error(f"{action}: database error {e.code}: {e.message}")
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "database_error", "details": action}
        )

    logger.error(f"{action}: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "internal_error", "details": action}
    )
