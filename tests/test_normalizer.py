from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from storefront.repositories import normalizer
from storefront.repositories.normalizer import DOCUMENT, SQL, denormalize, normalize


@pytest.mark.parametrize(
    "raw",
    [
        {"isAdmin": True},
        {"is_admin": 1},
        {"admin": "true"},
        {"isAdmin": False, "is_admin": True},
    ],
)
def test_admin_flag_is_or_of_every_alias(raw):
    assert normalize("user", {"username": "x", **raw})["isAdmin"] is True


@pytest.mark.parametrize("raw", [{}, {"isAdmin": None}, {"is_admin": 0}, {"admin": "no"}])
def test_admin_flag_defaults_to_false(raw):
    assert normalize("user", {"username": "x", **raw})["isAdmin"] is False


def test_snake_case_row_maps_to_canonical_names():
    row = SimpleNamespace(
        id=3,
        name="Tea",
        price=Decimal("4.50"),
        description=None,
        image_url=None,
        created_at=datetime(2024, 1, 2, 3, 4, 5),
    )
    product = normalize("product", row)
    assert product == {
        "id": 3,
        "name": "Tea",
        "price": 4.5,
        "description": "",
        "imageUrl": normalizer.PLACEHOLDER_IMAGE,
        "createdAt": "2024-01-02T03:04:05+00:00",
    }


def test_password_only_included_on_request():
    raw = {"id": 1, "username": "a", "password_hash": "argon2$abc"}
    assert "password" not in normalize("user", raw)
    assert normalize("user", raw, include_password=True)["password"] == "argon2$abc"


def test_legacy_document_keys_are_read():
    raw = {"id": "17", "order_number": "DD00000001", "total_amount": "9.999", "created_at": 1700000000000}
    order = normalize("order", raw)
    assert order["id"] == 17
    assert order["orderNumber"] == "DD00000001"
    assert order["totalAmount"] == 10.0
    assert order["createdAt"] == "2023-11-14T22:13:20+00:00"
    assert order["status"] == "pending"
    assert order["paymentMethod"] == "tng"


@pytest.mark.parametrize("style", [SQL, DOCUMENT])
@pytest.mark.parametrize(
    "kind,raw",
    [
        ("user", {"id": 1, "username": "a", "is_admin": True, "created_at": "2024-05-01T10:00:00+00:00"}),
        ("product", {"id": 2, "name": "P", "price": "1.005", "image": "http://x/y.png"}),
        ("order", {"id": 3, "orderNumber": "DD1", "productPrice": 2, "totalAmount": "4.40", "status": "paid"}),
        ("settings", {"store_name": "S", "welcomeMessage": "hi"}),
    ],
)
def test_round_trip_is_stable(kind, raw, style):
    canonical = normalize(kind, raw, include_password=True)
    again = normalize(kind, denormalize(kind, canonical, style), include_password=True)
    assert again == canonical


def test_sql_denormalize_uses_column_names_and_types():
    out = denormalize("order", {"totalAmount": 3.1, "updatedAt": "2024-05-01T10:00:00+00:00"}, SQL)
    assert out == {
        "total_amount": Decimal("3.10"),
        "updated_at": datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
    }


def test_document_denormalize_only_emits_given_fields():
    assert denormalize("user", {"isAdmin": 1}, DOCUMENT) == {"isAdmin": True}


@pytest.mark.parametrize("value", ["abc", None, True, "nan", float("inf")])
def test_parse_money_rejects_non_numbers(value):
    with pytest.raises(ValueError):
        normalizer.parse_money(value)


def test_parse_money_quantizes():
    assert normalizer.parse_money(0.1 + 0.2) == Decimal("0.30")
    assert normalizer.parse_money("19.999") == Decimal("20.00")


def test_unknown_kind():
    with pytest.raises(ValueError):
        normalize("coupon", {})


@pytest.mark.parametrize("value", ["1e30", "1e400", 10**40])
def test_parse_money_rejects_values_beyond_precision(value):
    with pytest.raises(ValueError):
        normalizer.parse_money(value)


def test_normalize_falls_back_to_zero_for_unusable_amount():
    assert normalize("product", {"id": 1, "name": "x", "price": "1e40"})["price"] == 0.0
