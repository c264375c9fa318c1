# Overview: Flask API routes for sales; see records.py for the shared surface.

from ..kinds import RecordKind
from .records import build_record_blueprint

sales_bp = build_record_blueprint(RecordKind.SALE)
