# Overview: Flask API routes for financial reports; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_store_permission
from ..services import reporting_service
from ..time_utils import parse_iso_date
from ..validation import LedgerError, ValidationError, error_response


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
@require_auth
@require_store_permission("reports.view")
def summary_route():
    """
    Per-currency summary of a store.

    Query parameters: store_id (required), date_from, date_to (YYYY-MM-DD, inclusive).
    """
    try:
        try:
            date_from = parse_iso_date(request.args.get("date_from"))
            date_to = parse_iso_date(request.args.get("date_to"))
        except ValueError:
            raise ValidationError("date_from and date_to must be ISO-8601 dates (YYYY-MM-DD)")

        return jsonify(reporting_service.financial_summary(g.store_id, date_from, date_to))
    except LedgerError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to build financial summary")
        return jsonify({"error": "Internal server error"}), 500
