"""
Error taxonomy and the terminal handlers that turn failures into the JSON
error envelope: {"success": false, "error": <category>, "message": <text>}.

Handlers raise the ApiError subclasses below where they know which resource is
involved. Everything else (body validation, duplicate keys, token errors,
unexpected exceptions) is mapped here by failure type.
"""
import logging
import traceback
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings
from security import ExpiredToken, TokenError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class ApiError(Exception):
    status_code = 500
    error = "Internal Server Error"
    message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None,
                 headers: Optional[Dict[str, str]] = None):
        self.message = message or self.message
        self.error = error or self.error
        self.headers = headers
        super().__init__(self.message)


class MissingFields(ApiError):
    status_code = 400
    error = "Missing required fields"


class ValidationFailed(ApiError):
    status_code = 400
    error = "Validation error"

    def __init__(self, messages: Iterable[str], error: Optional[str] = None):
        self.messages = list(messages)
        super().__init__(", ".join(self.messages), error=error)


class MalformedIdentifier(ApiError):
    status_code = 404

    def __init__(self, resource: str):
        super().__init__(
            f"Please provide a valid {resource} ID",
            error=f"Invalid {resource} ID format",
        )


class NotFound(ApiError):
    status_code = 404

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource.capitalize()} with ID {identifier} does not exist",
            error=f"{resource.capitalize()} not found",
        )


class Unauthenticated(ApiError):
    status_code = 401
    error = "Not authorized to access this route"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message, error=error, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(ApiError):
    status_code = 403
    error = "Not authorized"


class DuplicateIdentity(ApiError):
    status_code = 400
    error = "User already exists"


class InvalidCredentials(ApiError):
    status_code = 401
    error = "Invalid credentials"
    message = "Invalid email or password"


# Validation helpers

def format_validation_errors(errors: Iterable[Mapping[str, Any]]) -> List[str]:
    messages = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        msg = err.get("msg", "Invalid value")
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return messages


def validate_model(model: Type[M], data: Any) -> M:
    """Build `model` from `data`, reporting every field violation at once."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e.errors()))


# Envelope

def error_response(status_code: int, error: str, message: str,
                   headers: Optional[Dict[str, str]] = None,
                   stack: Optional[str] = None) -> JSONResponse:
    content = {"success": False, "error": error, "message": message}
    if stack is not None:
        content["stack"] = stack
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_error_handlers(app: FastAPI, settings: Settings) -> None:

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.error, exc.message, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        failure = ValidationFailed(format_validation_errors(exc.errors()))
        return error_response(failure.status_code, failure.error, failure.message)

    @app.exception_handler(DuplicateKeyError)
    async def handle_duplicate_key(request: Request, exc: DuplicateKeyError):
        details = exc.details or {}
        fields = ", ".join((details.get("keyValue") or details.get("keyPattern") or {}).keys())
        logger.warning("Duplicate key on %s %s: %s", request.method, request.url.path, fields)
        return error_response(400, DuplicateIdentity.error,
                              f"Duplicate field value entered: {fields or 'unknown'}")

    @app.exception_handler(TokenError)
    async def handle_token_error(request: Request, exc: TokenError):
        message = "Token expired" if isinstance(exc, ExpiredToken) else "Invalid token"
        return error_response(401, Unauthenticated.error, message,
                              headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), str(exc.detail),
                              headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        stack = None
        message = ApiError.message
        if not settings.is_production:
            message = str(exc) or ApiError.message
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return error_response(500, ApiError.error, message, stack=stack)
