# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .services import session_service, store_service
from .validation import LedgerError, error_response, parse_optional_int


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_auth(f):
    """
    Require a valid Bearer session token.

    Sets g.current_user. Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        user = session_service.validate_session(token)

        if not user:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = user
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def _requested_store_id(kwargs) -> int | None:
    """store_id from the URL, then the JSON body, then the query string."""
    if kwargs.get("store_id") is not None:
        return kwargs["store_id"]
    body = request.get_json(silent=True)
    if isinstance(body, dict) and body.get("store_id") is not None:
        return parse_optional_int(body.get("store_id"), field="store_id")
    return parse_optional_int(request.args.get("store_id"), field="store_id")


def require_store_permission(permission_code: str):
    """
    Require permission_code in the store the request targets.

    Sets g.store (and g.store_id). Returns 400 without a store_id, 404 for an
    unknown store and 403 when the user lacks the permission there.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                store_id = _requested_store_id(kwargs)
                if store_id is None:
                    return jsonify({"error": "store_id is required"}), 400
                store = store_service.get_store(store_id)
            except LedgerError as e:
                return error_response(e)

            user = g.current_user
            if not store_service.has_permission(store, user, permission_code):
                current_app.logger.info(
                    "Permission denied: user=%s store=%s permission=%s path=%s",
                    user.id, store.id, permission_code, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                }), 403

            g.store = store
            g.store_id = store.id
            return f(*args, **kwargs)

        return decorated_function
    return decorator
