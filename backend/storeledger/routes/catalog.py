# Overview: Flask API routes for finance categories, vendors and clients; parses input and returns JSON responses.

"""
Catalog Routes

- /api/finance-categories/<income|expense>        GET, POST
- /api/finance-categories/<income|expense>/<id>   PUT, DELETE
- /api/vendors, /api/clients                      GET, POST, PUT /<id>

All routes are scoped to the store given by store_id.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_store_permission
from ..services import catalog_service
from ..validation import LedgerError, error_response


finance_categories_bp = Blueprint("finance_categories", __name__, url_prefix="/api/finance-categories")
vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/vendors")
clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@finance_categories_bp.get("/<category_type>")
@require_auth
@require_store_permission("finance_categories.manage")
def list_categories_route(category_type: str):
    try:
        categories = catalog_service.list_categories(category_type, g.store_id)
        return jsonify({"categories": [c.to_dict() for c in categories]})
    except LedgerError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return jsonify({"error": "Internal server error"}), 500


@finance_categories_bp.post("/<category_type>")
@require_auth
@require_store_permission("finance_categories.manage")
def create_category_route(category_type: str):
    """Request body: {"store_id": 1, "name": "Rent", "description": "...", "color": "#ff0000"}"""
    try:
        category = catalog_service.create_category(category_type, g.store_id, request.get_json(silent=True))
        return jsonify({"category": category.to_dict()}), 201
    except LedgerError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500


@finance_categories_bp.put("/<category_type>/<int:category_id>")
@require_auth
@require_store_permission("finance_categories.manage")
def update_category_route(category_type: str, category_id: int):
    try:
        category = catalog_service.update_category(
            category_type, category_id, g.store_id, request.get_json(silent=True)
        )
        return jsonify({"category": category.to_dict()})
    except LedgerError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update category")
        return jsonify({"error": "Internal server error"}), 500


@finance_categories_bp.delete("/<category_type>/<int:category_id>")
@require_auth
@require_store_permission("finance_categories.manage")
def delete_category_route(category_type: str, category_id: int):
    try:
        catalog_service.delete_category(category_type, category_id, g.store_id)
        return jsonify({"message": "Category deleted"})
    except LedgerError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return jsonify({"error": "Internal server error"}), 500


def _register_contact_routes(bp: Blueprint, contact_type: str, permission_code: str) -> None:
    plural = f"{contact_type}s"

    @bp.get("")
    @require_auth
    @require_store_permission(permission_code)
    def list_contacts_route():
        """Query parameters: store_id (required), search (name or phone)."""
        try:
            contacts = catalog_service.list_contacts(contact_type, g.store_id, request.args.get("search"))
            return jsonify({plural: [c.to_dict() for c in contacts]})
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to list %s", plural)
            return jsonify({"error": "Internal server error"}), 500

    @bp.post("")
    @require_auth
    @require_store_permission(permission_code)
    def create_contact_route():
        try:
            contact = catalog_service.create_contact(contact_type, g.store_id, request.get_json(silent=True))
            return jsonify({contact_type: contact.to_dict()}), 201
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to create %s", contact_type)
            return jsonify({"error": "Internal server error"}), 500

    @bp.put("/<int:contact_id>")
    @require_auth
    @require_store_permission(permission_code)
    def update_contact_route(contact_id: int):
        try:
            contact = catalog_service.update_contact(
                contact_type, contact_id, g.store_id, request.get_json(silent=True)
            )
            return jsonify({contact_type: contact.to_dict()})
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to update %s", contact_type)
            return jsonify({"error": "Internal server error"}), 500


_register_contact_routes(vendors_bp, "vendor", "vendors.manage")
_register_contact_routes(clients_bp, "client", "clients.manage")
