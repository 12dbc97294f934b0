"""
Record normalizer.

One explicit table maps every canonical (camelCase) field to its storage name
in each backend style plus the legacy aliases still found in older documents.
Drivers hand raw rows or JSON objects to ``normalize`` and store what
``denormalize`` returns; callers only ever see the canonical shape.

    normalize(kind, denormalize(kind, normalize(kind, raw), style)) == normalize(kind, raw)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

SQL = "sql"
DOCUMENT = "document"

PLACEHOLDER_IMAGE = "https://via.placeholder.com/300x300?text=Product"
CENTS = Decimal("0.01")
# Largest value a Numeric(10, 2) column holds.
MAX_AMOUNT = Decimal("99999999.99")


@dataclass(frozen=True)
class Field:
    name: str
    sql: str
    document: str
    kind: str = "text"
    aliases: tuple[str, ...] = ()
    default: Any = None

    def sources(self) -> tuple[str, ...]:
        seen: list[str] = []
        for key in (self.name, self.sql, self.document, *self.aliases):
            if key not in seen:
                seen.append(key)
        return tuple(seen)

    def storage_name(self, style: str) -> str:
        return self.sql if style == SQL else self.document


def _field(name: str, sql: str | None = None, document: str | None = None, **kw) -> Field:
    return Field(name=name, sql=sql or name, document=document or name, **kw)


FIELDS: dict[str, tuple[Field, ...]] = {
    "user": (
        _field("id", kind="id"),
        _field("username", default=""),
        _field("password", "password_hash", "password", kind="secret", aliases=("passwordHash",)),
        _field("isAdmin", "is_admin", "isAdmin", kind="flag", aliases=("admin", "is_admin", "isadmin")),
        _field("createdAt", "created_at", "createdAt", kind="time"),
        _field("lastLogin", "last_login", "lastLogin", kind="time"),
    ),
    "product": (
        _field("id", kind="id"),
        _field("name", default=""),
        _field("price", kind="money"),
        _field("description", default=""),
        _field("imageUrl", "image_url", "imageUrl", aliases=("image",), default=PLACEHOLDER_IMAGE),
        _field("createdAt", "created_at", "createdAt", kind="time"),
    ),
    "order": (
        _field("id", kind="id"),
        _field("orderNumber", "order_number", "orderNumber", default=""),
        _field("userId", "user_id", "userId", kind="ref", default=""),
        _field("productId", "product_id", "productId", kind="ref", default=""),
        _field("productName", "product_name", "productName", default=""),
        _field("productPrice", "product_price", "productPrice", kind="money"),
        _field("totalAmount", "total_amount", "totalAmount", kind="money"),
        _field("paymentMethod", "payment_method", "paymentMethod", default="tng"),
        _field("status", default="pending"),
        _field("createdAt", "created_at", "createdAt", kind="time"),
        _field("updatedAt", "updated_at", "updatedAt", kind="time"),
    ),
    "settings": (
        _field("storeName", "store_name", "storeName"),
        _field("kuaishouLink", "kuaishou_link", "kuaishouLink"),
        _field("contactInfo", "contact_info", "contactInfo"),
        _field("welcomeMessage", "welcome_message", "welcomeMessage"),
    ),
}


def fields_for(kind: str) -> tuple[Field, ...]:
    try:
        return FIELDS[kind]
    except KeyError:
        raise ValueError(f"unknown record kind: {kind}") from None


def canonical_names(kind: str) -> tuple[str, ...]:
    return tuple(f.name for f in fields_for(kind))


# -------------------------- value coercion --------------------------
def parse_money(value: Any) -> Decimal:
    """Parse a price/amount into a 2-decimal Decimal; ValueError when not numeric."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a numeric amount")
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, TypeError):
        raise ValueError(f"not a numeric amount: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"not a finite amount: {value!r}")
    try:
        return amount.quantize(CENTS)
    except InvalidOperation:
        raise ValueError(f"amount out of range: {value!r}") from None


def _money(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(parse_money(value))
    except ValueError:
        return 0.0


def _time(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Older documents stored epoch milliseconds.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
    return str(value)


def _parse_time(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _id(value: Any) -> Any:
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return value


def _flag(raw: dict, field: Field) -> bool:
    return any(_truthy(raw.get(key)) for key in field.sources())


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _first(raw: dict, keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


# -------------------------- mapping --------------------------
def row_to_dict(row: Any, kind: str) -> dict:
    """Read ORM attributes named after the SQL column names."""
    return {f.sql: getattr(row, f.sql, None) for f in fields_for(kind)}


def normalize(kind: str, raw: Any, *, include_password: bool = False) -> dict | None:
    """Map a raw backend record (ORM row or JSON object) to the canonical shape."""
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raw = row_to_dict(raw, kind)
    record: dict[str, Any] = {}
    for field in fields_for(kind):
        if field.kind == "flag":
            record[field.name] = _flag(raw, field)
            continue
        if field.kind == "secret" and not include_password:
            continue
        value = _first(raw, field.sources())
        if field.kind == "money":
            record[field.name] = _money(value)
        elif field.kind == "time":
            record[field.name] = _time(value)
        elif field.kind == "id":
            record[field.name] = _id(value)
        elif field.kind == "ref":
            record[field.name] = field.default if value is None else str(value)
        else:
            missing = value is None or (value == "" and bool(field.default))
            record[field.name] = field.default if missing else value
    return record


def denormalize(kind: str, record: dict, style: str) -> dict:
    """Map canonical (or partially canonical) input to storage names for ``style``.

    Only fields present in ``record`` are emitted so the result can drive
    partial updates. SQL output carries Decimal and datetime values; document
    output stays JSON-serializable.
    """
    out: dict[str, Any] = {}
    for field in fields_for(kind):
        if field.name not in record:
            continue
        value = record[field.name]
        if field.kind == "money":
            amount = parse_money(value if value not in (None, "") else 0)
            value = amount if style == SQL else float(amount)
        elif field.kind == "time":
            value = _parse_time(value) if style == SQL else _time(value)
        elif field.kind == "flag":
            value = _truthy(value)
        out[field.storage_name(style)] = value
    return out


def strip_password(record: dict | None) -> dict | None:
    if record is None:
        return None
    return {k: v for k, v in record.items() if k != "password"}
