from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette import status
import logging

logger = logging.getLogger("app.errors")


class ConverterError(Exception):
    """Base class for domain failures surfaced to the requester.

    ``code`` is the machine-readable error key; ``message`` is the
    human-readable reason shown to the user.
    """

    code = "converter_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# Startup / storage -------------------------------------------------
class ConfigLoadError(ConverterError):
    code = "config_load_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PersistenceWriteError(ConverterError):
    code = "save_failed"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# User input validation ---------------------------------------------
class UnknownCurrencyError(ConverterError):
    code = "unknown_currency"


class InvalidAmountError(ConverterError):
    code = "invalid_amount"


class InvalidRateError(ConverterError):
    code = "invalid_rate"


class DuplicateCurrencyError(ConverterError):
    code = "duplicate_currency"
    status_code = status.HTTP_409_CONFLICT


class ProtectedCurrencyError(ConverterError):
    code = "protected_currency"


# Accounts ------------------------------------------------------------
class DuplicateUsernameError(ConverterError):
    code = "duplicate_username"
    status_code = status.HTTP_409_CONFLICT


class AuthenticationError(ConverterError):
    code = "not_authenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class RegistrationError(ConverterError):
    code = "registration_error"


class AccountNotFoundError(AuthenticationError):
    code = "account_not_found"


def converter_error_handler(request: Request, exc: ConverterError):  # type: ignore
    if isinstance(exc, PersistenceWriteError):
        logger.error("request rejected: %s", exc.message)
    else:
        logger.info("request rejected (%s): %s", exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


def http_error_handler(request: Request, exc):  # type: ignore
    if exc.status_code != status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "http_error", "detail": exc.detail},
        )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "not_found",
            "detail": f"No route for {request.method} {request.url.path}",
        },
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "detail": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic v2 puts the raised exception object under ctx["error"]
    errors = []
    for err in exc.errors():
        err = dict(err)
        ctx = err.get("ctx")
        if ctx:
            err["ctx"] = {k: str(v) for k, v in ctx.items()}
        errors.append(err)
    return errors


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
