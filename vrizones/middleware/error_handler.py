"""
Middleware turning raised errors into JSON error responses.
"""
import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable

from vrizones.domain.errors import (
    CellAlreadyZoned,
    DuplicateZoneName,
    RateKeyNotFound,
    UnknownCell,
    VRIZoneError,
    ZoneChainError,
    ZoneNotFound,
)
from vrizones.infrastructure.backend_client import BackendAPIError


logger = logging.getLogger(__name__)

NOT_FOUND_ERRORS = (ZoneNotFound, UnknownCell, RateKeyNotFound)
CONFLICT_ERRORS = (CellAlreadyZoned, DuplicateZoneName)


def _request_info(request: Request) -> dict:
    return {"path": request.url.path, "method": request.method}


def _status_for(error: VRIZoneError) -> int:
    if isinstance(error, NOT_FOUND_ERRORS):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, CONFLICT_ERRORS):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def _error_body(error: VRIZoneError) -> dict:
    """JSON body of a domain error, with the details a client needs to react."""
    body = {
        "error": error.__class__.__name__,
        "detail": str(error),
    }
    if isinstance(error, CellAlreadyZoned):
        body["conflicts"] = {str(cell_id): zone for cell_id, zone in error.conflicts.items()}
        body["selected"] = [str(cell_id) for cell_id in error.selected]
    elif isinstance(error, RateKeyNotFound):
        body["missing_keys"] = error.missing_keys
    elif isinstance(error, ZoneChainError):
        body["zone_index"] = error.zone_index
    return body


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Maps exceptions escaping the routers to status codes.

    Domain errors become 404 (unknown zone, cell or rate key), 409 (cell
    already zoned, duplicate name) or 400. Backend failures keep the
    backend's status code.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        try:
            return await call_next(request)

        except BackendAPIError as e:
            logger.error(
                f"Irrigation backend failed: {e.message}",
                extra={**_request_info(request), "status_code": e.status_code},
            )
            # Pass through the original status code from the backend
            return JSONResponse(
                status_code=e.status_code,
                content={"error": "Backend API error", "detail": e.message},
            )

        except VRIZoneError as e:
            status_code = _status_for(e)
            log = logger.warning if status_code == status.HTTP_400_BAD_REQUEST else logger.info
            log(f"{e.__class__.__name__}: {e}", extra=_request_info(request))
            return JSONResponse(status_code=status_code, content=_error_body(e))

        except ValueError as e:
            logger.warning(f"Rejected request: {e}", extra=_request_info(request))
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "Invalid request", "detail": str(e)},
            )

        except Exception as e:
            logger.exception(f"Unhandled exception: {e}", extra=_request_info(request))
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Internal server error", "detail": "An unexpected error occurred"},
            )
