from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError


# Smallest accepted order total, in the smallest currency unit
MIN_ORDER_TOTAL = 1
# Largest accepted order total or item price (fits a 32-bit INTEGER column)
MAX_ORDER_TOTAL = 999_999_999

SENDER_ROLES = {"customer", "admin"}


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST (present and non-blank)
    - ignore_unknown: drop keys outside writable_fields instead of rejecting
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    ignore_unknown: bool = False


CHECKOUT_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_name", "customer_email", "customer_phone",
        "address_line1", "address_line2", "landmark",
        "city", "state", "zip_code", "country",
        "delivery_instructions", "total",
    },
    required_on_create={
        "customer_name", "customer_email", "customer_phone",
        "address_line1", "city", "state", "zip_code",
    },
    # Storefront clients send extra keys (payment_method, items, ...)
    ignore_unknown=True,
)

CONTACT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "message"},
    required_on_create={"name", "email", "message"},
    ignore_unknown=True,
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def coerce_integer(key: str, value: Any) -> int:
    """Strict integer coercion: rejects floats, bools, and scientific notation."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be a whole number of the smallest currency unit")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_integer(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
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

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if _is_blank(payload.get(f)))
        if missing:
            raise ValidationError(f"Please fill all required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    patch: dict = {}
    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            if policy.ignore_unknown:
                continue
            raise ValidationError(f"Field not allowed: {k}")

        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_order_total(patch: dict) -> None:
    """Orders below the smallest currency unit are rejected."""
    if "total" not in patch or patch["total"] is None:
        raise ValidationError("total is required")
    if patch["total"] < MIN_ORDER_TOTAL:
        raise ValidationError(f"Order amount must be at least {MIN_ORDER_TOTAL}")
    if patch["total"] > MAX_ORDER_TOTAL:
        raise ValidationError(f"Order amount cannot exceed {MAX_ORDER_TOTAL}")


def normalize_items(items: Any) -> list[dict]:
    """
    Snapshot the cart as submitted.

    Each entry keeps whatever the client sent (id, name, price, quantity,
    category, image, ...) so the order never depends on live product rows.
    """
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    snapshot = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        entry = dict(item)
        if "quantity" in entry:
            entry["quantity"] = coerce_integer(f"items[{idx}].quantity", entry["quantity"])
        if "price" in entry and entry["price"] is not None:
            entry["price"] = coerce_integer(f"items[{idx}].price", entry["price"])
            if entry["price"] > MAX_ORDER_TOTAL:
                raise ValidationError(f"items[{idx}].price cannot exceed {MAX_ORDER_TOTAL}")
        snapshot.append(entry)
    return snapshot


def validate_sender_role(role: Any) -> str:
    normalized = (role or "").strip().lower() if isinstance(role, str) else ""
    if normalized not in SENDER_ROLES:
        raise ValidationError("senderType must be customer or admin")
    return normalized
