import pytest

from common.models.shipping_zone import ShippingZonePincode
from common.services.shipping_service import PincodeNotFoundError, ZoneNotFoundError


@pytest.fixture
def metro(shipping):
    zone = shipping.create_zone(
        name="Metro",
        rate=49.99,
        free_shipping_threshold=999,
        estimated_days="2-3 days",
        sort_order=1,
    )
    shipping.add_pincodes(
        zone["id"],
        [
            {"pincode": "400001", "city": "Mumbai", "state": "Maharashtra"},
            {"pincode": "110001", "city": "New Delhi", "state": "Delhi"},
        ],
    )
    return zone


class TestCheckPincode:
    def test_active_zone_membership(self, shipping, metro):
        result = shipping.check_pincode("400001")
        assert result == {
            "available": True,
            "zoneName": "Metro",
            "rate": 49.99,
            "freeShippingThreshold": 999.0,
            "estimatedDays": "2-3 days",
            "city": "Mumbai",
            "state": "Maharashtra",
        }

    def test_threshold_omitted_when_zone_has_none(self, shipping):
        zone = shipping.create_zone(name="Rural", rate=120)
        shipping.add_pincodes(zone["id"], [{"pincode": "785001"}])

        result = shipping.check_pincode("785001")
        assert result["available"] is True
        assert result["rate"] == 120.0
        assert "freeShippingThreshold" not in result
        assert result["city"] is None

    def test_block_list_wins_over_membership(self, shipping, metro):
        shipping.add_non_serviceable("400001", "Flooding, deliveries paused")
        assert shipping.check_pincode("400001") == {
            "available": False,
            "reason": "Flooding, deliveries paused",
        }

    def test_block_list_default_reason(self, shipping):
        shipping.add_non_serviceable("560001")
        assert shipping.check_pincode("560001") == {
            "available": False,
            "reason": "This area is not serviceable",
        }

    def test_inactive_zone(self, shipping, metro):
        shipping.update_zone(metro["id"], is_active=False)
        assert shipping.check_pincode("400001") == {"available": False}

    def test_unknown_pincode(self, shipping, metro):
        assert shipping.check_pincode("999999") == {"available": False}


class TestZones:
    def test_list_orders_by_sort_order_then_name(self, shipping):
        shipping.create_zone(name="Zeta", rate=10, sort_order=0)
        shipping.create_zone(name="Alpha", rate=10, sort_order=5)
        shipping.create_zone(name="Beta", rate=10, sort_order=0)

        assert [z["name"] for z in shipping.list_zones()] == ["Beta", "Zeta", "Alpha"]

    def test_list_includes_pincode_count(self, shipping, metro):
        zones = shipping.list_zones()
        assert zones[0]["pincode_count"] == 2

    def test_get_zone_with_pincodes(self, shipping, metro):
        zone = shipping.get_zone(metro["id"])
        assert [p["pincode"] for p in zone["pincodes"]] == ["110001", "400001"]

    def test_partial_update_keeps_other_fields(self, shipping, metro):
        updated = shipping.update_zone(metro["id"], rate=59)
        assert updated["rate"] == 59.0
        assert updated["name"] == "Metro"
        assert updated["free_shipping_threshold"] == 999.0
        assert updated["estimated_days"] == "2-3 days"

    def test_update_can_clear_optional_fields(self, shipping, metro):
        updated = shipping.update_zone(metro["id"], free_shipping_threshold=None, estimated_days=None)
        assert updated["free_shipping_threshold"] is None
        assert updated["estimated_days"] is None

    def test_update_rejects_blank_name(self, shipping, metro):
        with pytest.raises(ValueError):
            shipping.update_zone(metro["id"], name="  ")

    def test_create_rejects_blank_name(self, shipping):
        with pytest.raises(ValueError):
            shipping.create_zone(name="", rate=10)

    @pytest.mark.parametrize("fields", [{"name": 123}, {"name": "X", "is_active": "false"}])
    def test_create_rejects_wrong_field_types(self, shipping, fields):
        with pytest.raises(ValueError):
            shipping.create_zone(rate=10, **fields)
        assert shipping.list_zones() == []

    def test_update_rejects_non_bool_is_active(self, shipping, metro):
        with pytest.raises(ValueError):
            shipping.update_zone(metro["id"], is_active="false")
        assert shipping.get_zone(metro["id"])["is_active"] is True

    def test_unknown_zone_is_not_found(self, shipping):
        with pytest.raises(ZoneNotFoundError):
            shipping.get_zone("missing")
        with pytest.raises(ZoneNotFoundError):
            shipping.update_zone("missing", rate=1)
        with pytest.raises(ZoneNotFoundError):
            shipping.delete_zone("missing")

    def test_delete_zone_removes_memberships(self, shipping, session_factory, metro):
        shipping.delete_zone(metro["id"])

        assert shipping.list_zones() == []
        with session_factory() as s:
            assert s.query(ShippingZonePincode).count() == 0
        assert shipping.check_pincode("400001") == {"available": False}


class TestPincodes:
    def test_re_adding_existing_pincode_is_a_noop(self, shipping, session_factory, metro):
        result = shipping.add_pincodes(metro["id"], [{"pincode": "400001", "city": "Other"}])

        assert result == {"added": 0}
        with session_factory() as s:
            rows = s.query(ShippingZonePincode).filter_by(pincode="400001").all()
            assert len(rows) == 1
            assert rows[0].city == "Mumbai"

    def test_duplicates_within_one_request_inserted_once(self, shipping, metro):
        result = shipping.add_pincodes(metro["id"], [{"pincode": "600001"}, {"pincode": "600001"}])
        assert result == {"added": 1}

    def test_pincode_stays_in_its_first_zone(self, shipping, metro):
        other = shipping.create_zone(name="Other", rate=5)
        assert shipping.add_pincodes(other["id"], [{"pincode": "400001"}]) == {"added": 0}
        assert shipping.check_pincode("400001")["zoneName"] == "Metro"

    def test_add_to_unknown_zone(self, shipping):
        with pytest.raises(ZoneNotFoundError):
            shipping.add_pincodes("missing", [{"pincode": "400001"}])

    def test_import_drops_malformed_rows(self, shipping, session_factory):
        zone = shipping.create_zone(name="Import", rate=30)
        rows = [
            {"pincode": "500001", "city": "Hyderabad"},
            {"pincode": "50001"},
            {"pincode": "50000A"},
            {"pincode": "5000011"},
            {"pincode": "500002"},
            {"city": "no code"},
        ]

        assert shipping.import_pincodes(zone["id"], rows) == {"imported": 2}
        with session_factory() as s:
            codes = sorted(p.pincode for p in s.query(ShippingZonePincode).all())
        assert codes == ["500001", "500002"]

    def test_import_with_no_valid_rows(self, shipping):
        zone = shipping.create_zone(name="Import", rate=30)
        with pytest.raises(ValueError):
            shipping.import_pincodes(zone["id"], [{"pincode": "abc"}])

    def test_remove_single_membership(self, shipping, metro):
        membership = shipping.get_zone(metro["id"])["pincodes"][0]
        shipping.remove_pincode(membership["id"])
        assert len(shipping.get_zone(metro["id"])["pincodes"]) == 1

    def test_remove_unknown_membership(self, shipping):
        with pytest.raises(PincodeNotFoundError):
            shipping.remove_pincode("missing")

    def test_bulk_remove(self, shipping, metro):
        assert shipping.remove_pincodes(metro["id"], ["400001", "110001"]) == {"removed": 2}
        assert shipping.get_zone(metro["id"])["pincodes"] == []


class TestBlockList:
    def test_add_is_idempotent(self, shipping):
        first = shipping.add_non_serviceable("560001", "Strike")
        second = shipping.add_non_serviceable("560001", "Other reason")

        assert first == second
        assert len(shipping.list_non_serviceable()) == 1

    def test_list_is_sorted_by_pincode(self, shipping):
        shipping.add_non_serviceable("700001")
        shipping.add_non_serviceable("100001")
        assert [e["pincode"] for e in shipping.list_non_serviceable()] == ["100001", "700001"]

    def test_remove(self, shipping):
        entry = shipping.add_non_serviceable("560001")
        shipping.remove_non_serviceable(entry["id"])
        assert shipping.list_non_serviceable() == []
        with pytest.raises(PincodeNotFoundError):
            shipping.remove_non_serviceable(entry["id"])
