from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError


# Maximum price: R$ 9.999.999,99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_WHATSAPP_DIGITS = 10

# Largest value a database INTEGER column holds
MAX_DB_INT = 2**63 - 1

# Per line item on one order
MAX_QUANTITY = 10_000


def only_digits(value: str | None) -> str:
    return re.sub(r"\D", "", value or "")


def normalize_slug(value: str | None) -> str:
    s = (value or "").strip().lower()
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"[^a-z0-9-]", "", s)
    s = re.sub(r"-+", "-", s)
    return s.strip("-")


def is_valid_slug(value: str) -> bool:
    return len(value) >= 2 and bool(SLUG_RE.match(value))


def require_slug(raw: str | None, *, fallback: str | None = None) -> str:
    """Normalize a slug (or derive it from fallback) and validate it."""
    slug = normalize_slug(raw or fallback)
    if not is_valid_slug(slug):
        raise ValidationError(
            "Invalid slug. Use letters, numbers and hyphens (e.g. acme-tires).",
            details={"slug": slug},
        )
    return slug


def require_text(field: str, value: Any, *, min_length: int = 1, max_length: int | None = None) -> str:
    text = str(value or "").strip()
    if len(text) < min_length:
        if min_length <= 1:
            raise ValidationError(f"{field} is required")
        raise ValidationError(f"{field} must have at least {min_length} characters")
    if max_length and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def optional_text(value: Any) -> str | None:
    text = str(value or "").strip()
    return text or None


def parse_price_cents(value: Any, field: str = "price") -> int:
    """
    Convert a decimal amount ("10.00", 10, 10.5) into integer cents.

    Rounds half-up to the cent. Rejects negatives, non-finite values and
    amounts above MAX_PRICE_CENTS.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{field} must be a finite number")
    try:
        amount = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")

    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents < 0:
        raise ValidationError(f"{field} must be >= 0")
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")
    return cents


def _to_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{field} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    raise ValidationError(f"{field} must be an integer")


def parse_int(value: Any, field: str) -> int:
    """
    Strict integer parsing: rejects bools, floats with fractions and
    scientific notation. Values outside the database INTEGER range are
    rejected too.
    """
    number = _to_int(value, field)
    if not -MAX_DB_INT <= number <= MAX_DB_INT:
        raise ValidationError(f"{field} is out of range", details={"field": field})
    return number


def parse_quantity(value: Any) -> int:
    qty = parse_int(value, "quantity")
    if qty <= 0:
        raise ValidationError("quantity must be greater than zero")
    if qty > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}", details={"max_quantity": MAX_QUANTITY})
    return qty


def normalize_email(value: Any) -> str:
    email = str(value or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("A valid email is required")
    return email


def normalize_whatsapp(value: Any) -> str:
    digits = only_digits(str(value or ""))
    if len(digits) < MIN_WHATSAPP_DIGITS:
        raise ValidationError("Invalid WhatsApp number. Include the area code (digits only).")
    return digits


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = frozenset()  # type: ignore[assignment]


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return parse_int(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

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

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch
