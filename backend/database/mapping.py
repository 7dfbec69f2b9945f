"""
Shared field mapping between the logical entity shape and each storage engine.

Callers of the adapter layer only ever see the logical shape: camelCase keys,
a string ``id`` and parsed nested objects. Every adapter converts to and from
its native record through the single table below, so the column names and
encodings cannot drift between backends.
"""
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from database.errors import InvalidRecordError, StorageError
from models.order import ORDER_STATUSES
from models.product import PRODUCT_CATEGORIES
from models.users import USER_ROLES

ENTITIES = ("user", "product", "order", "cart")


@dataclass(frozen=True)
class StorageProfile:
    """How an engine represents names and values natively."""
    name: str
    snake_case: bool = True
    native_json: bool = True
    native_bool: bool = True
    native_datetime: bool = True


# SQLAlchemy column types take care of JSON and booleans for every dialect.
RELATIONAL = StorageProfile("relational")
# Raw SQLite/LibSQL: JSON as text, booleans as 0/1, datetimes as ISO text.
TEXT_SQL = StorageProfile("text-sql", native_json=False, native_bool=False, native_datetime=False)
# Document store keeps the logical names.
DOCUMENT = StorageProfile("document", snake_case=False)


@dataclass(frozen=True)
class Field:
    name: str
    column: str
    kind: str = "str"
    writable: bool = True
    required: bool = False
    choices: Tuple[str, ...] = ()

    def native_name(self, profile: StorageProfile) -> str:
        return self.column if profile.snake_case else self.name


_TIMESTAMPS = (
    Field("createdAt", "created_at", "datetime", writable=False),
    Field("updatedAt", "updated_at", "datetime", writable=False),
)

ENTITY_FIELDS: Dict[str, Tuple[Field, ...]] = {
    "user": (
        Field("username", "username", required=True),
        Field("email", "email", required=True),
        Field("password", "password", required=True),
        Field("role", "role", required=True, choices=USER_ROLES),
        Field("profile", "profile", "json"),
        Field("isActive", "is_active", "bool"),
    ) + _TIMESTAMPS,
    "product": (
        Field("name", "name", required=True),
        Field("category", "category", choices=PRODUCT_CATEGORIES),
        Field("price", "price", "float", required=True),
        Field("sku", "sku", required=True),
        Field("farmerId", "farmer_id", "ref", required=True),
        Field("stock", "stock", "int"),
        Field("description", "description"),
        Field("images", "images", "json"),
        Field("isActive", "is_active", "bool"),
    ) + _TIMESTAMPS,
    "order": (
        Field("customerId", "customer_id", "ref", required=True),
        Field("items", "items", "json", required=True),
        Field("totalAmount", "total_amount", "float", required=True),
        Field("status", "status", choices=ORDER_STATUSES),
        Field("shippingAddress", "shipping_address", "json"),
        Field("orderDate", "order_date", "datetime"),
        Field("deliveryDate", "delivery_date", "datetime"),
    ) + _TIMESTAMPS,
    "cart": (
        Field("customerId", "customer_id", "ref", required=True),
        Field("items", "items", "json"),
    ) + _TIMESTAMPS,
}

# Values filled in on create when the caller leaves them out.
DEFAULTS: Dict[str, Dict[str, Any]] = {
    "user": {"profile": dict, "isActive": True},
    "product": {"category": "other", "stock": 0, "images": list, "isActive": True},
    "order": {"status": "pending", "shippingAddress": dict},
    "cart": {"items": list},
}

# Filter keys accepted by the find_* operations (besides the special ones
# handled by each adapter, like ``inStock``).
FILTERS: Dict[str, Tuple[str, ...]] = {
    "user": ("role", "email", "username", "isActive"),
    "product": ("farmerId", "category", "isActive", "sku"),
    "order": ("customerId", "status"),
    "cart": ("customerId",),
}


def fields(entity: str) -> Tuple[Field, ...]:
    try:
        return ENTITY_FIELDS[entity]
    except KeyError:
        raise StorageError(f"Unknown entity: {entity}") from None


def _field_map(entity: str) -> Dict[str, Field]:
    return {f.name: f for f in fields(entity)}


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise InvalidRecordError(f"Invalid datetime value: {value!r}") from None
    raise InvalidRecordError(f"Invalid datetime value: {value!r}")


def as_utc(moment: datetime) -> datetime:
    """Naive values are taken as UTC, aware ones converted to it."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _encode(field: Field, value: Any, profile: StorageProfile) -> Any:
    if value is None:
        return None
    if field.choices and value not in field.choices:
        raise InvalidRecordError(
            f"{field.name} must be one of {', '.join(field.choices)}, got {value!r}"
        )
    kind = field.kind
    try:
        if kind == "ref":
            return str(value)
        if kind == "int":
            return int(value)
        if kind == "float":
            return float(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(f"Invalid value for {field.name}: {value!r}") from None
    if kind == "json":
        return value if profile.native_json else json.dumps(value)
    if kind == "bool":
        flag = bool(value)
        return flag if profile.native_bool else int(flag)
    if kind == "datetime":
        moment = as_utc(parse_datetime(value))
        # Naive UTC text, the layout CURRENT_TIMESTAMP writes
        return moment if profile.native_datetime else moment.replace(tzinfo=None).isoformat(sep=" ")
    return value


def _decode(field: Field, value: Any, profile: StorageProfile) -> Any:
    if value is None:
        return None
    kind = field.kind
    if kind == "ref":
        return str(value)
    if kind == "json":
        if profile.native_json or not isinstance(value, (str, bytes)):
            return value
        try:
            return json.loads(value)
        except ValueError as e:
            raise StorageError(f"Malformed JSON in stored {field.column}: {e}") from e
    if kind == "bool":
        return bool(value)
    if kind == "datetime":
        return as_utc(parse_datetime(value))
    if kind == "float":
        return float(value)
    return value


def _number(name: str, value: Any, cast) -> Any:
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(f"Invalid value for {name}: {value!r}") from None


def _check_invariants(entity: str, data: Mapping[str, Any]) -> None:
    if entity == "product" and data.get("stock") is not None and _number("stock", data["stock"], int) < 0:
        raise InvalidRecordError("stock must not be negative")
    if entity == "order":
        if "items" in data and not data["items"]:
            raise InvalidRecordError("Order must contain at least one item")
        if "totalAmount" in data and (
            data["totalAmount"] is None or _number("totalAmount", data["totalAmount"], float) <= 0
        ):
            raise InvalidRecordError("totalAmount must be greater than zero")


def prepare_create(entity: str, data: Mapping[str, Any]) -> Dict[str, Any]:
    """Fill defaults and check required fields for a new logical record.

    Keys left as ``None`` are dropped so engine defaults (timestamps,
    ``orderDate``) apply.
    """
    writable = {f.name for f in fields(entity) if f.writable}
    record = {k: v for k, v in data.items() if k in writable and v is not None}
    for name, default in DEFAULTS.get(entity, {}).items():
        if record.get(name) is None:
            record[name] = default() if callable(default) else default
    missing = [f.name for f in fields(entity) if f.required and record.get(f.name) in (None, "")]
    if missing:
        raise InvalidRecordError(f"Missing required {entity} fields: {', '.join(missing)}")
    _check_invariants(entity, record)
    return record


def to_storage(entity: str, data: Mapping[str, Any], profile: StorageProfile) -> Dict[str, Any]:
    """Translate the writable logical fields present in ``data`` to native names.

    Unknown keys, ids and engine-managed timestamps are dropped silently.
    Required fields cannot be cleared.
    """
    out: Dict[str, Any] = {}
    for field in fields(entity):
        if not field.writable or field.name not in data:
            continue
        if field.required and data[field.name] is None:
            raise InvalidRecordError(f"{entity} {field.name} cannot be null")
        out[field.native_name(profile)] = _encode(field, data[field.name], profile)
    if entity in ("product", "order"):
        _check_invariants(entity, {k: data[k] for k in ("stock", "items", "totalAmount") if k in data})
    return out


def from_storage(
    entity: str,
    row: Optional[Mapping[str, Any]],
    profile: StorageProfile,
    id_key: str = "id",
) -> Optional[Dict[str, Any]]:
    """Build the logical record from a native row or document."""
    if row is None:
        return None
    out: Dict[str, Any] = {"id": str(row[id_key])}
    for field in fields(entity):
        native = field.native_name(profile)
        out[field.name] = _decode(field, row.get(native), profile)
    return out


def filter_columns(entity: str, filter: Optional[Mapping[str, Any]], profile: StorageProfile) -> Dict[str, Any]:
    """Native equality conditions for the supported filter keys."""
    if not filter:
        return {}
    by_name = _field_map(entity)
    conditions: Dict[str, Any] = {}
    for key in FILTERS[entity]:
        value = filter.get(key)
        if value is None:
            continue
        field = by_name[key]
        conditions[field.native_name(profile)] = _encode(field, value, profile)
    return conditions


def columns(entity: str, profile: StorageProfile) -> Iterable[str]:
    return [f.native_name(profile) for f in fields(entity)]
