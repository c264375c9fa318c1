# Overview: Flask API routes for purchases; see records.py for the shared surface.

from ..kinds import RecordKind
from .records import build_record_blueprint

purchases_bp = build_record_blueprint(RecordKind.PURCHASE)
