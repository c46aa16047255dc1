"""Error kinds raised by the service and their HTTP translation."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError, TimeoutError as PoolTimeoutError

logger = logging.getLogger('messagely')


class MessagelyError(Exception):
    status_code = 500

    def __init__(self, message: str = 'Internal server error'):
        super().__init__(message)
        self.message = message


class ValidationError(MessagelyError):
    status_code = 400


class UnauthorizedError(MessagelyError):
    status_code = 401

    def __init__(self, message: str = 'Unauthorized'):
        super().__init__(message)


class ForbiddenError(MessagelyError):
    status_code = 403

    def __init__(self, message: str = 'Forbidden'):
        super().__init__(message)


class NotFoundError(MessagelyError):
    status_code = 404


class ConflictError(MessagelyError):
    status_code = 409


class StorageUnavailableError(MessagelyError):
    status_code = 503

    def __init__(self, message: str = 'Storage unavailable'):
        super().__init__(message)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={'error': {'message': message, 'status': status_code}},
    )


def _summarize(errors) -> str:
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get('loc', ()) if p != 'body']
        field = '.'.join(loc) or 'body'
        parts.append(f"{field}: {err.get('msg', 'invalid')}")
    return '; '.join(parts) or 'Invalid request'


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(MessagelyError)
    async def messagely_error_handler(request: Request, exc: MessagelyError):
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(ValidationError.status_code, _summarize(exc.errors()))

    @app.exception_handler(SQLAlchemyError)
    async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(
            {'msg': 'storage_error', 'path': request.url.path, 'error': type(exc).__name__},
            exc_info=exc,
        )
        if isinstance(exc, (OperationalError, PoolTimeoutError)):
            unavailable = StorageUnavailableError()
            return error_response(unavailable.status_code, unavailable.message)
        return error_response(500, 'Internal server error')
