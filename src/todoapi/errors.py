"""Exception → HTTP response mapping.

Learn: Domain exceptions are raised where the problem is detected
(credential store, auth gateway, todo store) and translated to HTTP
here, once, so route handlers stay thin. Bodies follow the
problem-details shape: {"title", "status", "errors": {field: [msg]}}.

Unexpected exceptions are not handled here; RequestLoggingMiddleware
catches them at the outer boundary, logs them and returns a generic 500.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from todoapi.auth.credentials import DuplicateEmailError
from todoapi.auth.gateway import InvalidCredentialsError, WeakPasswordError
from todoapi.services.todo_service import UnauthenticatedError

VALIDATION_TITLE = "One or more validation errors occurred."
UNEXPECTED_TITLE = "An unexpected error occurred"


def problem(
    status: int,
    title: str,
    errors: dict[str, list[str]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict = {"title": title, "status": status}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status, content=body, headers=headers)


def _field_name(loc: tuple) -> str:
    # ("body", "name") → "name"; ("path", "todo_id") → "todo_id"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or str(loc[0] if loc else "request")


def validation_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        message = err.get("msg", "Invalid value")
        # pydantic prefixes custom validator messages with "Value error, "
        message = message.removeprefix("Value error, ")
        errors.setdefault(_field_name(tuple(err.get("loc", ()))), []).append(message)
    return errors


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return problem(400, VALIDATION_TITLE, validation_errors(exc))


async def duplicate_email_handler(request: Request, exc: DuplicateEmailError):
    return problem(400, VALIDATION_TITLE, {"email": [str(exc)]})


async def weak_password_handler(request: Request, exc: WeakPasswordError):
    return problem(400, VALIDATION_TITLE, {"password": exc.errors})


async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
    return JSONResponse(status_code=401, content={"detail": "Invalid credentials"})


async def unauthenticated_handler(request: Request, exc: UnauthenticatedError):
    return JSONResponse(
        status_code=401,
        content={"detail": "Authentication required"},
        headers={"WWW-Authenticate": "Bearer"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(DuplicateEmailError, duplicate_email_handler)
    app.add_exception_handler(WeakPasswordError, weak_password_handler)
    app.add_exception_handler(InvalidCredentialsError, invalid_credentials_handler)
    app.add_exception_handler(UnauthenticatedError, unauthenticated_handler)
