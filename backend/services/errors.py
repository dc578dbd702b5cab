"""The small, stable set of errors the services raise.

Each kind has a code and an HTTP status, the API renders them as
``{"detail": ..., "code": ...}`` whatever the store behind them.
"""

import functools
import logging

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger("tapin.errors")


class ServiceError(Exception):
    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(ServiceError, ValueError):
    code = "BAD_REQUEST"
    status_code = 400
    default_message = "Bad request"


class Forbidden(ServiceError, PermissionError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Not authorized"


class NotFound(ServiceError, LookupError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class InvalidState(ServiceError, ValueError):
    code = "INVALID_STATE"
    status_code = 409
    default_message = "Action not valid in the current state"


class TooManyRequests(ServiceError):
    """Part of the shared taxonomy, no service raises it yet"""

    code = "TOO_MANY_REQUESTS"
    status_code = 429
    default_message = "Too many requests"


class InternalError(ServiceError):
    pass


def store_errors(func):
    """Turn store failures escaping a service call into InternalError.

    The raw store message is logged, never returned to the caller.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.exception(f"Store error in {func.__name__}: {e}")
            session = kwargs.get("session") or (args[0] if args else None)
            rollback = getattr(session, "rollback", None)
            if rollback is not None:
                rollback()
            raise InternalError() from e

    return wrapper
