# Overview: Flask API routes for stores and store membership; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_store_permission
from ..services import auth_service, store_service
from ..validation import LedgerError, NotFoundError, ValidationError, error_response


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@require_auth
def list_stores_route():
    try:
        stores = store_service.list_user_stores(g.current_user)
        return jsonify({"stores": [s.to_dict() for s in stores]})
    except Exception:
        current_app.logger.exception("Failed to list stores")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.post("")
@require_auth
def create_store_route():
    """Create a store; the caller becomes its owner with every permission."""
    try:
        data = request.get_json(silent=True) or {}
        store = store_service.create_store(
            data.get("name"),
            g.current_user,
            description=data.get("description"),
        )
        return jsonify({"store": store.to_dict()}), 201
    except LedgerError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.post("/<int:store_id>/members")
@require_auth
@require_store_permission("stores.manage_users")
def add_member_route(store_id: int):
    """
    Add a user (by email) to the store with a list of permission codes.

    Request body: {"email": "...", "permissions": ["expenses.view", ...]}
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.get_user_by_email(data.get("email") or "")
        if user is None:
            raise NotFoundError("User not found")
        permissions = data.get("permissions") or []
        if not isinstance(permissions, list):
            raise ValidationError("permissions must be a list of codes")

        codes = store_service.add_member(g.store, user, permissions)
        return jsonify({"store_id": store_id, "user_id": user.id, "permissions": codes}), 201
    except LedgerError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add store member")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.get("/<int:store_id>/permissions")
@require_auth
def my_permissions_route(store_id: int):
    """Effective permission codes of the caller in the store."""
    try:
        store = store_service.get_store(store_id)
        user = g.current_user
        if not store_service.is_member(store, user) and not user.is_admin:
            return jsonify({"error": "Permission denied"}), 403
        return jsonify({
            "store_id": store.id,
            "permissions": sorted(store_service.user_permission_codes(store, user)),
        })
    except LedgerError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load store permissions")
        return jsonify({"error": "Internal server error"}), 500
