"""Tests for cart line items and their wire records."""

import json

import pytest

from magnetcart.models.cart import (
    PACKAGE_ITEM_TYPE,
    ItemKind,
    PackageDetails,
    PackageLineItem,
    SimpleLineItem,
    line_item_from_record,
    line_item_to_record,
)


def _package_record(urls: list[str] | None = None, **overrides) -> dict:
    urls = urls if urls is not None else [f"https://cdn.test/{i}.jpg" for i in range(6)]
    record = {
        "id": "package-6-abc",
        "name": "Custom Magnets Package (6 Custom Magnets)",
        "price": 17.0,
        "quantity": 1,
        "images": [],
        "custom_data": json.dumps(
            {
                "type": PACKAGE_ITEM_TYPE,
                "packageId": "6",
                "packageName": "6 Custom Magnets",
                "size": "5x5",
                "finish": "rigid",
                "imageUrls": urls,
                "imageCount": len(urls),
            }
        ),
    }
    record.update(overrides)
    return record


class TestPackageDetails:
    def test_to_dict_uses_wire_keys(self) -> None:
        details = PackageDetails(package_id="9", package_name="9 Custom Magnets", image_urls=["a"])

        data = details.to_dict()

        assert data["type"] == PACKAGE_ITEM_TYPE
        assert data["packageId"] == "9"
        assert data["imageUrls"] == ["a"]
        assert data["imageCount"] == 1
        assert data["size"] == "5x5"
        assert data["finish"] == "rigid"

    def test_from_dict_rejects_other_types(self) -> None:
        with pytest.raises(ValueError):
            PackageDetails.from_dict({"type": "gift_card", "packageId": "6"})

    def test_from_json(self) -> None:
        raw = PackageDetails("12", "12 Custom Magnets", finish="flexible").to_json()

        details = PackageDetails.from_json(raw)

        assert details.package_id == "12"
        assert details.finish == "flexible"

    @pytest.mark.parametrize("raw", ["{oops", "[1, 2]", "null"])
    def test_from_json_rejects_garbage(self, raw: str) -> None:
        with pytest.raises(ValueError):
            PackageDetails.from_json(raw)

    def test_from_dict_requires_package_id(self) -> None:
        with pytest.raises(ValueError):
            PackageDetails.from_dict({"type": PACKAGE_ITEM_TYPE, "imageUrls": []})


class TestLineItems:
    def test_total_price_is_derived(self) -> None:
        item = SimpleLineItem(id="mug", name="Mug", price=3.33, quantity=3)

        assert item.total_price == 9.99
        item.quantity = 1
        assert item.total_price == 3.33

    def test_kind(self) -> None:
        package = PackageLineItem(
            id="p", name="P", price=17.0, details=PackageDetails("6", "6 Custom Magnets")
        )
        simple = SimpleLineItem(id="s", name="S", price=1.0)

        assert package.kind == ItemKind.PACKAGE
        assert package.is_package is True
        assert simple.kind == ItemKind.SIMPLE
        assert simple.is_package is False


class TestFromRecord:
    def test_package_record(self) -> None:
        """A package record becomes a package item with its image URLs."""
        item = line_item_from_record(_package_record())

        assert isinstance(item, PackageLineItem)
        assert item.details.package_id == "6"
        assert item.details.image_count == 6
        assert item.images == item.details.image_urls

    def test_package_quantity_forced_to_one(self) -> None:
        item = line_item_from_record(_package_record(quantity=4))

        assert item.quantity == 1

    def test_malformed_custom_data_degrades_to_simple(self) -> None:
        """Unparseable custom_data yields a simple item without images."""
        record = {
            "id": "x",
            "name": "Broken",
            "price": 4.0,
            "quantity": 2,
            "images": ["https://cdn.test/a.jpg"],
            "custom_data": "{not json",
        }

        item = line_item_from_record(record)

        assert isinstance(item, SimpleLineItem)
        assert item.images == []
        assert item.price == 4.0
        assert item.quantity == 2

    def test_package_with_bad_urls_degrades_to_simple(self) -> None:
        record = _package_record()
        payload = json.loads(record["custom_data"])
        payload["imageUrls"] = "not-a-list"
        record["custom_data"] = json.dumps(payload)

        item = line_item_from_record(record)

        assert isinstance(item, SimpleLineItem)
        assert item.images == []

    def test_non_package_custom_data_kept(self) -> None:
        custom = json.dumps({"type": "gift_wrap", "colour": "red"})
        record = {"id": "w", "name": "Wrap", "price": 1.5, "images": ["u"], "custom_data": custom}

        item = line_item_from_record(record)

        assert isinstance(item, SimpleLineItem)
        assert item.custom_data == custom
        assert item.images == ["u"]

    def test_garbage_fields_use_defaults(self) -> None:
        item = line_item_from_record({"price": "abc", "quantity": -3, "images": "nope"})

        assert item.id == ""
        assert item.price == 0.0
        assert item.quantity == 1
        assert item.images == []

    def test_record_round_trip_keeps_package(self) -> None:
        item = line_item_from_record(_package_record())

        record = line_item_to_record(item)
        again = line_item_from_record(record)

        assert isinstance(again, PackageLineItem)
        assert again.details == item.details
        assert record["totalPrice"] == 17.0

    def test_thumbnail_never_in_record(self) -> None:
        item = SimpleLineItem(id="s", name="S", price=1.0, thumbnail=b"jpeg", thumbnail_key="k")

        record = line_item_to_record(item)

        assert "thumbnail" not in record
        assert record["thumbnailKey"] == "k"
