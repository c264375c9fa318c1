# backend/storeledger/routes/system.py
"""
System health endpoint.

Checks database connectivity and that the permission catalog is seeded.
"""

import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db
from ..models import Permission
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        permission_count = db.session.query(Permission).count()
        elapsed_ms = (time.time() - start_time) * 1000

        status = "healthy" if permission_count > 0 else "degraded"
        result = {
            "status": status,
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "dialect": db.engine.dialect.name,
                "permissions_initialized": permission_count > 0,
            },
        }
        if status == "degraded":
            result["warning"] = "Permission catalog is empty (run: flask system init-permissions)"
        return result
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/api/health")
def health_route():
    database = check_database_health()
    code = 503 if database["status"] == "unhealthy" else 200
    return jsonify({
        "status": database["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }), code
