from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from storeledger.time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from flask import jsonify
from sqlalchemy import JSON, Boolean, Date, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum amount: 99,999,999.99 (9,999,999,999 cents)
# This prevents database overflow issues and nonsensical amounts
MAX_AMOUNT_CENTS = 9_999_999_999

CURRENCIES = ("USD", "EUR", "VES")
DEFAULT_CURRENCY = "USD"


class LedgerError(Exception):
    """Base class for errors that map to a client-visible response."""
    status_code = 400


class ValidationError(LedgerError, ValueError):
    """400-level input problem."""
    status_code = 400


class AuthorizationError(LedgerError):
    """403-level: actor may not act on this store."""
    status_code = 403


class NotFoundError(LedgerError):
    """404-level: record does not exist in the given store."""
    status_code = 404


class ConflictError(LedgerError, ValueError):
    """409-level business rule conflict (e.g., duplicate number, illegal transition)."""
    status_code = 409


class TransientError(LedgerError):
    """503-level: lock timeout, deadlock or lost connection. Safe for the caller to retry."""
    status_code = 503


def error_response(exc: LedgerError):
    return jsonify({"error": str(exc)}), exc.status_code


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            # Reject scientific notation (e.g., "1e15", "1E10")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            # Reject decimal points (e.g., "12.5")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        # Reject floats explicitly
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        # Other types
        raise ValidationError(f"{col.key} must be an integer")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Dates ("YYYY-MM-DD")
    if isinstance(coltype, Date):
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
        raise ValidationError(f"{col.key} must be a date")

    # Structured JSON (line items)
    if isinstance(coltype, JSON):
        if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
            raise ValidationError(f"{col.key} must be a list of objects")
        return value

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)

    Blank optional strings are stored as NULL.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable:
                raise ValidationError(f"{k} cannot be blank")
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def parse_amount_cents(value: Any, *, field: str = "amount", allow_zero: bool = True) -> int:
    """
    Convert a client decimal amount (number or numeric string) to integer cents.

    Rounds half-up to 2 decimal places. Rejects booleans, NaN/Infinity,
    negatives, and zero when allow_zero is False.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")

    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if allow_zero and cents < 0:
        raise ValidationError(f"{field} must be >= 0")
    if not allow_zero and cents <= 0:
        raise ValidationError(f"{field} must be > 0")
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {format_cents(MAX_AMOUNT_CENTS)}")
    return cents


def parse_currency(value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_CURRENCY
    currency = str(value).strip().upper()
    if currency not in CURRENCIES:
        raise ValidationError(f"currency must be one of {', '.join(CURRENCIES)}")
    return currency


def parse_optional_int(value: Any, *, field: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def format_cents(cents: int | None) -> str | None:
    """Render integer cents as a 2-decimal string ("-20.00")."""
    if cents is None:
        return None
    return str((Decimal(cents) / 100).quantize(Decimal("0.01")))
