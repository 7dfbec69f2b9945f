from datetime import datetime, timedelta, timezone

import pytest

from database import InvalidRecordError, StorageError
from database import mapping
from database.mapping import DOCUMENT, RELATIONAL, TEXT_SQL


def test_to_storage_uses_snake_case_for_sql_and_camel_case_for_documents():
    data = {"farmerId": "f1", "isActive": True, "name": "Kale"}

    assert mapping.to_storage("product", data, RELATIONAL) == {"farmer_id": "f1", "is_active": True, "name": "Kale"}
    assert mapping.to_storage("product", data, DOCUMENT) == data


def test_to_storage_drops_unknown_ids_and_timestamps():
    data = {"id": "7", "name": "Kale", "createdAt": "2024-01-01", "stockQuantity": 4}

    assert mapping.to_storage("product", data, RELATIONAL) == {"name": "Kale"}


def test_text_profile_encodes_json_and_flags():
    out = mapping.to_storage("product", {"images": ["a.jpg"], "isActive": False}, TEXT_SQL)

    assert out == {"images": '["a.jpg"]', "is_active": 0}


def test_text_profile_encodes_datetimes_as_naive_utc_text():
    moment = datetime(2024, 5, 1, 14, 30, tzinfo=timezone(timedelta(hours=2)))

    out = mapping.to_storage("order", {"deliveryDate": moment}, TEXT_SQL)

    assert out == {"delivery_date": "2024-05-01 12:30:00"}


def test_from_storage_decodes_text_row():
    row = {
        "id": 3,
        "customer_id": "c1",
        "items": '[{"productId": "p1", "quantity": 1, "price": 2.5, "name": "Eggs"}]',
        "total_amount": 2.5,
        "status": "pending",
        "shipping_address": '"Barn 4"',
        "order_date": "2024-05-01 08:00:00",
        "delivery_date": None,
        "created_at": "2024-05-01 08:00:00",
        "updated_at": "2024-05-01 08:00:00",
    }

    record = mapping.from_storage("order", row, TEXT_SQL)

    assert record["id"] == "3"
    assert record["items"][0]["productId"] == "p1"
    assert record["shippingAddress"] == "Barn 4"
    assert record["orderDate"] == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
    assert record["orderDate"].utcoffset() == timedelta(0)
    assert record["deliveryDate"] is None


def test_from_storage_reads_document_id():
    record = mapping.from_storage("cart", {"_id": "abc", "customerId": "c1", "items": []}, DOCUMENT, id_key="_id")

    assert record["id"] == "abc"
    assert record["items"] == []
    assert record["createdAt"] is None


def test_from_storage_none_passes_through():
    assert mapping.from_storage("user", None, RELATIONAL) is None


def test_malformed_json_text_raises_storage_error():
    with pytest.raises(StorageError):
        mapping.from_storage("cart", {"id": 1, "customer_id": "c1", "items": "[oops"}, TEXT_SQL)


def test_prepare_create_fills_defaults():
    record = mapping.prepare_create("product", {"name": "Tomatoes", "price": 4.99, "sku": "TOM-001", "farmerId": "f1"})

    assert record["category"] == "other"
    assert record["stock"] == 0
    assert record["images"] == []
    assert record["isActive"] is True


def test_prepare_create_defaults_are_not_shared():
    first = mapping.prepare_create("cart", {"customerId": "c1"})
    first["items"].append({"productId": "p1"})

    assert mapping.prepare_create("cart", {"customerId": "c2"})["items"] == []


def test_prepare_create_reports_missing_fields():
    with pytest.raises(InvalidRecordError) as excinfo:
        mapping.prepare_create("user", {"username": "bob"})

    assert "email" in str(excinfo.value)
    assert "password" in str(excinfo.value)


@pytest.mark.parametrize("entity,data", [
    ("user", {"role": "superuser"}),
    ("product", {"category": "meat"}),
    ("order", {"status": "lost"}),
])
def test_enum_values_are_enforced(entity, data):
    with pytest.raises(InvalidRecordError):
        mapping.to_storage(entity, data, RELATIONAL)


def test_parse_datetime_accepts_zulu_suffix():
    assert mapping.parse_datetime("2024-05-01T08:00:00Z") == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

    with pytest.raises(InvalidRecordError):
        mapping.parse_datetime("yesterday")


def test_filter_columns_skips_unknown_and_none():
    conditions = mapping.filter_columns(
        "product", {"farmerId": "f1", "category": None, "color": "red", "isActive": False}, TEXT_SQL
    )

    assert conditions == {"farmer_id": "f1", "is_active": 0}


@pytest.mark.parametrize("value,expected", [
    (datetime(2025, 6, 1, 10, 0, tzinfo=timezone(timedelta(hours=2))), datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)),
    (datetime(2025, 6, 1, 8, 0), datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)),
    ("2025-06-01T03:00:00-05:00", datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)),
])
@pytest.mark.parametrize("profile", [RELATIONAL, TEXT_SQL, DOCUMENT])
def test_datetimes_come_back_as_utc_for_every_profile(profile, value, expected):
    field = "delivery_date" if profile.snake_case else "deliveryDate"
    stored = mapping.to_storage("order", {"deliveryDate": value}, profile)[field]

    row = {"id": 1, "_id": 1, field: stored}
    decoded = mapping.from_storage("order", row, profile)["deliveryDate"]

    assert decoded == expected
    assert decoded.utcoffset() == timedelta(0)


@pytest.mark.parametrize("entity,data", [
    ("product", {"name": "Kale", "price": 2.0, "sku": "K-1", "farmerId": "f1", "stock": "lots"}),
    ("product", {"name": "Kale", "price": "cheap", "sku": "K-1", "farmerId": "f1"}),
    ("order", {"customerId": "c1", "items": [{"productId": "p1"}], "totalAmount": "plenty"}),
])
def test_prepare_create_rejects_non_numeric_values(entity, data):
    with pytest.raises(InvalidRecordError):
        mapping.to_storage(entity, mapping.prepare_create(entity, data), RELATIONAL)


@pytest.mark.parametrize("entity,field", [
    ("user", "email"),
    ("user", "role"),
    ("product", "name"),
    ("product", "price"),
    ("order", "totalAmount"),
])
def test_required_fields_cannot_be_cleared(entity, field):
    with pytest.raises(InvalidRecordError):
        mapping.to_storage(entity, {field: None}, DOCUMENT)


def test_optional_fields_can_be_cleared():
    assert mapping.to_storage("product", {"description": None}, RELATIONAL) == {"description": None}


def test_enum_values_are_owned_by_the_models():
    from models.order import ORDER_STATUSES
    from models.product import PRODUCT_CATEGORIES
    from models.users import USER_ROLES

    assert mapping.USER_ROLES is USER_ROLES
    assert mapping.PRODUCT_CATEGORIES is PRODUCT_CATEGORIES
    assert mapping.ORDER_STATUSES is ORDER_STATUSES
    assert mapping._field_map("product")["category"].choices == PRODUCT_CATEGORIES
