# Overview: Flask API routes for expenses; see records.py for the shared surface.

from ..kinds import RecordKind
from .records import build_record_blueprint

expenses_bp = build_record_blueprint(RecordKind.EXPENSE)
