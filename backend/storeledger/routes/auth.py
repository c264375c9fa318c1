# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- Session management with token-based auth
- Tokens are returned once at login and revoked at logout
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import auth_service, session_service, store_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Request body: {"email": "...", "password": "..."}
    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            current_app.logger.info("Failed login for %s from %s", email, request.remote_addr)
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "expires_at": session.to_dict()["expires_at"],
        })
    except Exception:
        current_app.logger.exception("Failed to log in")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the session token used for this request."""
    try:
        session_service.revoke_session(g.session_token)
        return jsonify({"message": "Logged out"})
    except Exception:
        current_app.logger.exception("Failed to log out")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user and the stores they can reach, with their permission codes."""
    try:
        user = g.current_user
        stores = []
        for store in store_service.list_user_stores(user):
            data = store.to_dict()
            data["permissions"] = sorted(store_service.user_permission_codes(store, user))
            stores.append(data)
        return jsonify({"user": user.to_dict(), "stores": stores})
    except Exception:
        current_app.logger.exception("Failed to load current user")
        return jsonify({"error": "Internal server error"}), 500
