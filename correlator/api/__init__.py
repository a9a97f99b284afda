"""HTTP API routers."""

from fastapi import HTTPException

from correlator.errors import InvalidTransitionError, NotFoundError
from correlator.utils.logging import get_logger

logger = get_logger(__name__)


def to_http_exception(error: Exception, action: str) -> HTTPException:
    """
    Map a service error to an HTTP error.

    NotFoundError -> 404, InvalidTransitionError -> 409, anything else -> 500
    with a generic detail.
    """
    if isinstance(error, NotFoundError):
        logger.warning(f"{action}: {error}")
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidTransitionError):
        logger.warning(f"{action}: {error}")
        return HTTPException(status_code=409, detail=str(error))

    logger.error(f"Error while trying to {action}: {error}", exc_info=error)
    return HTTPException(status_code=500, detail="Internal server error")
