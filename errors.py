import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Domain failure that is converted to a documented status + {"message"} at the boundary."""
    status_code = 400
    default_message = "Bad request."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input."


class DuplicateEmail(AppError):
    status_code = 409
    default_message = "Email already in use."


class InvalidCredentials(AppError):
    # Same message for unknown email and wrong password (no account enumeration)
    status_code = 401
    default_message = "Invalid email or password."


class MissingToken(AppError):
    status_code = 401
    default_message = "Unauthorized: missing token"


class InvalidToken(AppError):
    status_code = 401
    default_message = "Unauthorized: invalid token"


class NotFound(AppError):
    # Also used when the caller lacks rights on an existing task
    status_code = 404
    default_message = "Task not found."


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid input."
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location)
    msg = first.get("msg", "invalid value")
    return f"{field}: {msg}" if field else msg


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message}, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _describe_validation_error(exc)})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error."})
