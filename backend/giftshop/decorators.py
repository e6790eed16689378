# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import AuthError
from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip()


def require_admin(f):
    """
    Require a valid admin bearer token.

    Sets the following Flask g attributes:
    - g.current_admin: The authenticated Admin
    - g.admin_session: The AdminSession backing the token

    SECURITY: Returns 401 if:
    - No Authorization header
    - Malformed, unknown, revoked, or expired token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Access denied"}), 401

        try:
            session = session_service.require_session(token)
        except AuthError as e:
            return jsonify({"error": str(e)}), e.status_code

        g.current_admin = session.admin
        g.admin_session = session

        return f(*args, **kwargs)

    return decorated_function
