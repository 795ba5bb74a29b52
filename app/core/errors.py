import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Базовая ошибка домена с HTTP-статусом"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class AccessDenied(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidRequest(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class UpstreamFailure(DomainError):
    """Сбой внешнего компонента (рендерер экспорта, суммаризатор)

    Сообщение уходит клиенту, внутренняя причина только в логах.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Upstream service failed"


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("Invalid request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": InvalidRequest.default_message},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": DomainError.default_message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
