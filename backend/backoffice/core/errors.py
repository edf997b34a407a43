"""Translation of service-layer failures into HTTP errors."""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from backoffice.schemas.common import DataProviderError
from backoffice.services.data_provider import NOT_FOUND
from backoffice.services.functions import EdgeFunctionError

logger = logging.getLogger(__name__)

# Failure codes caused by the request itself rather than the remote project
CLIENT_ERROR_CODES = {"invalid_state", "invalid_amount", "missing_email"}


def to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, DataProviderError):
        if exc.code == NOT_FOUND:
            return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
        if exc.code in CLIENT_ERROR_CODES:
            return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    if isinstance(exc, EdgeFunctionError):
        if exc.is_client_error:
            return HTTPException(status_code=exc.status_code, detail=exc.message)
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


async def service_error_handler(request: Request, exc: Exception) -> JSONResponse:
    http_exc = to_http_exception(exc)
    if http_exc.status_code >= 500:
        logger.warning(f"[API] {request.method} {request.url.path} failed: {http_exc.detail}")
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})
