"""Error taxonomy for the UniNest API.

Every error is a werkzeug ``HTTPException`` so the JSON handlers registered by
the application factory render it with its status code and message.
"""

from werkzeug.exceptions import (
    BadGateway,
    BadRequest,
    Conflict,
    Forbidden,
    InternalServerError,
    NotFound,
    Unauthorized,
)


class ValidationError(BadRequest):
    """Missing or malformed input."""

    name = "ValidationError"


class ConflictError(Conflict):
    """An account already exists for the given email."""

    name = "ConflictError"
    description = "User with this email already exists"


class NotFoundError(NotFound):
    """No account exists for the requested identity."""

    name = "NotFoundError"
    description = "User not found"


class InvalidCredentialsError(Unauthorized):
    """Unknown email or wrong password; the two cases are indistinguishable."""

    name = "InvalidCredentialsError"
    description = "Invalid email or password"


class UnverifiedAccountError(Forbidden):
    name = "UnverifiedAccountError"
    description = "Please verify your email before logging in"


class InvalidCodeError(BadRequest):
    name = "InvalidCodeError"
    description = "Invalid verification code"


class ExpiredCodeError(BadRequest):
    name = "ExpiredCodeError"
    description = "Verification code has expired"


class UnauthenticatedError(Unauthorized):
    name = "UnauthenticatedError"
    description = "No token provided"


class InvalidTokenError(Unauthorized):
    name = "InvalidTokenError"
    description = "Invalid or expired token"


class UpstreamError(BadGateway):
    """A remote collaborator (e.g. the language model API) failed."""

    name = "UpstreamError"
    description = "The assistant is unavailable right now"


class InternalError(InternalServerError):
    name = "InternalError"
    description = "Internal server error"
