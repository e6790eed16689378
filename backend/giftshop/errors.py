# Overview: Domain error taxonomy shared by services, routes, and the socket layer.

"""
Each error carries the HTTP status it is surfaced as. Routes catch these
explicitly; anything else is logged and reported as a generic 500.
"""


class ShopError(Exception):
    """Base class for expected, user-reportable failures."""
    status_code = 500


class ValidationError(ShopError, ValueError):
    """400-level input problem (missing or malformed required field)."""
    status_code = 400


class NotFoundError(ShopError, LookupError):
    """Referenced order, product, or tracking code does not exist."""
    status_code = 404


class ConflictError(ShopError):
    """
    Unique-constraint violation, notably a tracking-code collision.

    Surfaced as a server error: this layer does not regenerate the code, the
    caller retries the whole request.
    """
    status_code = 500


class AuthError(ShopError):
    """Missing, malformed, expired, or revoked admin credentials."""
    status_code = 401


class StoreError(ShopError):
    """Any other persistence failure."""
    status_code = 500
