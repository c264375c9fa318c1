# Overview: Flask API routes shared by every ledger record kind; parses input and returns JSON responses.

"""
Ledger Record Routes

Each kind (expenses, purchases, sales, receivables) gets the same surface:
- POST   /api/<kinds>                   create (next document number)
- GET    /api/<kinds>                   list
- GET    /api/<kinds>/<id>              read
- PUT    /api/<kinds>/<id>              edit fields and/or status
- POST   /api/<kinds>/<id>/status       change status
- GET    /api/<kinds>/<id>/logs         audit trail

Kinds with payments add /<id>/payments and /pending-total; kinds created
"completed" add /<id>/cancel and /<id>/refund.

SECURITY: All routes require authentication and a permission in the target
store (store_id in the body for writes, in the query string for reads).
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_store_permission
from ..kinds import RecordKind, get_binding
from ..services import audit_service, record_service, settlement_service, status_service
from ..time_utils import parse_iso_date
from ..validation import LedgerError, ValidationError, error_response, parse_amount_cents, parse_currency, parse_optional_int

# Sales have no separate edit permission; changing one is cancelling or refunding it
_EDIT_PERMISSIONS = {RecordKind.SALE: "sales.cancel"}

_NOTES_MAX_LENGTH = 1000


def _pagination() -> tuple[int, int]:
    default_limit = current_app.config.get("DEFAULT_PAGE_SIZE", 50)
    max_limit = current_app.config.get("MAX_PAGE_SIZE", 500)
    limit = request.args.get("limit", default_limit, type=int)
    offset = request.args.get("offset", 0, type=int)

    # Clamp limit
    if limit < 1:
        limit = 1
    if limit > max_limit:
        limit = max_limit
    if offset < 0:
        offset = 0
    return limit, offset


def _date_arg(name: str):
    try:
        return parse_iso_date(request.args.get(name))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date (YYYY-MM-DD)")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def build_record_blueprint(kind: RecordKind) -> Blueprint:
    binding = get_binding(kind)
    singular = binding.kind.value
    collection = binding.collection
    view_code = f"{binding.permission_module}.view"
    create_code = f"{binding.permission_module}.create"
    edit_code = _EDIT_PERMISSIONS.get(binding.kind, f"{binding.permission_module}.edit")

    bp = Blueprint(collection, __name__, url_prefix=f"/api/{collection}")

    @bp.post("")
    @require_auth
    @require_store_permission(create_code)
    def create_route():
        """
        Request body: {"store_id": 1, "amount": "100.00", "currency": "USD", ...}

        Expenses and receivables also accept "initial_payment":
        {"amount": "25.00", "notes": "..."}, recorded with the record.
        """
        try:
            record = record_service.create(binding.kind, g.store_id, g.current_user.id, _json_body())
            return jsonify({singular: record}), 201
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to create %s", singular)
            return jsonify({"error": "Internal server error"}), 500

    @bp.get("")
    @require_auth
    @require_store_permission(view_code)
    def list_route():
        """
        Query parameters: store_id (required), status, category_id,
        vendor_id / client_id, date_from, date_to, limit, offset.
        """
        try:
            limit, offset = _pagination()
            references = {
                key: parse_optional_int(request.args.get(key), field=key)
                for key in binding.reference_fields
                if request.args.get(key) not in (None, "")
            }
            rows, total = record_service.list_records(
                binding.kind,
                g.store_id,
                status=request.args.get("status") or None,
                references=references,
                date_from=_date_arg("date_from"),
                date_to=_date_arg("date_to"),
                limit=limit,
                offset=offset,
            )
            return jsonify({collection: rows, "count": total, "limit": limit, "offset": offset})
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to list %s", collection)
            return jsonify({"error": "Internal server error"}), 500

    @bp.get("/<int:record_id>")
    @require_auth
    @require_store_permission(view_code)
    def get_route(record_id: int):
        try:
            return jsonify({singular: record_service.get(binding.kind, record_id, g.store_id)})
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to load %s", singular)
            return jsonify({"error": "Internal server error"}), 500

    @bp.put("/<int:record_id>")
    @require_auth
    @require_store_permission(edit_code)
    def update_route(record_id: int):
        try:
            record = record_service.update(binding.kind, record_id, g.store_id, g.current_user.id, _json_body())
            return jsonify({singular: record})
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to update %s", singular)
            return jsonify({"error": "Internal server error"}), 500

    @bp.post("/<int:record_id>/status")
    @require_auth
    @require_store_permission(edit_code)
    def change_status_route(record_id: int):
        """Request body: {"store_id": 1, "status": "<target>"}"""
        try:
            data = _json_body()
            if "status" not in data:
                raise ValidationError("status is required")
            status_service.change_status(binding.kind, record_id, g.store_id, data["status"], g.current_user.id)
            return jsonify({singular: record_service.get(binding.kind, record_id, g.store_id)})
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to change %s status", singular)
            return jsonify({"error": "Internal server error"}), 500

    @bp.get("/<int:record_id>/logs")
    @require_auth
    @require_store_permission(view_code)
    def logs_route(record_id: int):
        try:
            return jsonify({"logs": audit_service.list_audit_entries(binding.kind, record_id, g.store_id)})
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to load %s logs", singular)
            return jsonify({"error": "Internal server error"}), 500

    if binding.accepts_payments:
        _add_payment_routes(bp, binding, view_code, edit_code)
    else:
        _add_shortcut_routes(bp, binding, edit_code)

    return bp


def _add_payment_routes(bp: Blueprint, binding, view_code: str, edit_code: str) -> None:
    singular = binding.kind.value

    @bp.post("/<int:record_id>/payments")
    @require_auth
    @require_store_permission(edit_code)
    def add_payment_route(record_id: int):
        """
        Record a partial payment.

        Request body: {"store_id": 1, "amount": "25.50", "currency": "USD", "notes": "..."}
        currency defaults to the record's and must match it. Does not change
        the record's status.
        """
        try:
            data = _json_body()
            amount_cents = parse_amount_cents(data.get("amount"), allow_zero=False)
            # Omitted currency means the record's own
            currency = parse_currency(data["currency"]) if data.get("currency") else None
            notes = data.get("notes")
            if notes is not None:
                notes = str(notes).strip() or None
                if notes and len(notes) > _NOTES_MAX_LENGTH:
                    raise ValidationError(f"notes exceeds max length {_NOTES_MAX_LENGTH}")

            payment = settlement_service.record_payment(
                binding.kind,
                record_id,
                g.store_id,
                amount_cents=amount_cents,
                currency=currency,
                notes=notes,
                actor_id=g.current_user.id,
            )
            return jsonify({
                "payment": payment.to_dict(),
                singular: record_service.get(binding.kind, record_id, g.store_id),
            }), 201
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to record %s payment", singular)
            return jsonify({"error": "Internal server error"}), 500

    @bp.get("/<int:record_id>/payments")
    @require_auth
    @require_store_permission(view_code)
    def list_payments_route(record_id: int):
        try:
            payments = settlement_service.list_payments(binding.kind, record_id, g.store_id)
            record = record_service.get(binding.kind, record_id, g.store_id)
            return jsonify({
                "payments": payments,
                "total_paid_cents": record["total_paid_cents"],
                "outstanding_cents": record["outstanding_cents"],
            })
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to list %s payments", singular)
            return jsonify({"error": "Internal server error"}), 500

    @bp.get("/pending-total")
    @require_auth
    @require_store_permission(view_code)
    def pending_total_route():
        """Outstanding amount of pending records, one row per currency."""
        try:
            return jsonify({
                "store_id": g.store_id,
                "totals": settlement_service.pending_totals_by_currency(binding.kind, g.store_id),
            })
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to compute pending %s total", singular)
            return jsonify({"error": "Internal server error"}), 500


def _add_shortcut_routes(bp: Blueprint, binding, edit_code: str) -> None:
    singular = binding.kind.value

    def _transition(record_id: int, target: str):
        try:
            status_service.change_status(binding.kind, record_id, g.store_id, target, g.current_user.id)
            return jsonify({singular: record_service.get(binding.kind, record_id, g.store_id)})
        except LedgerError as e:
            return error_response(e)
        except Exception:
            current_app.logger.exception("Failed to mark %s %s", singular, target)
            return jsonify({"error": "Internal server error"}), 500

    @bp.post("/<int:record_id>/cancel")
    @require_auth
    @require_store_permission(edit_code)
    def cancel_route(record_id: int):
        return _transition(record_id, "cancelled")

    @bp.post("/<int:record_id>/refund")
    @require_auth
    @require_store_permission(edit_code)
    def refund_route(record_id: int):
        return _transition(record_id, "refunded")
