# Overview: Flask API routes for receivables; see records.py for the shared surface.

from ..kinds import RecordKind
from .records import build_record_blueprint

receivables_bp = build_record_blueprint(RecordKind.RECEIVABLE)
