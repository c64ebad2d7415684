"""
InventoryActions: the transactional boundary.

Every operation returns an ActionResult; kernel exceptions become result
codes, each call commits or rolls back its own session, and the cache
hook runs only after a commit.
"""

from dataclasses import replace
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import OperationalError

from jewelry_kernel.services.inventory_service import InventoryItemService
from jewelry_kernel.services.stone_service import StoneService
from jewelry_services import ActionResult, ActorContext, InventoryActions
from jewelry_services.results import BulkStatusResult


def _create(actions, actor, **overrides):
    data = {"name": "Solitaire ring", "weight_grams": "3.450"}
    data.update(overrides)
    result = actions.create_item(actor, data)
    assert result.success, result.to_dict()
    return result.data


class TestActionResult:

    def test_success_shape(self):
        assert ActionResult.ok({"id": "x"}, "Item created").to_dict() == {
            "success": True,
            "data": {"id": "x"},
            "message": "Item created",
        }

    def test_success_flag(self):
        assert ActionResult.ok().success is True
        assert ActionResult.fail("not_found", "gone").success is False

    def test_success_without_data(self):
        assert ActionResult.ok().to_dict() == {"success": True}

    def test_failure_shape(self):
        assert ActionResult.fail("duplicate_sku", "taken").to_dict() == {
            "success": False,
            "error": "taken",
            "code": "duplicate_sku",
        }

    def test_bulk_message(self):
        assert BulkStatusResult(3, 0).message == "Updated 3 items"
        assert BulkStatusResult(2, 1, {"x": "not_found"}).message == "Updated 2 items, 1 failed"


class TestAuthorization:

    @pytest.mark.parametrize(
        "actor",
        [None, ActorContext(actor_id=None, tenant_id=uuid4()), ActorContext(uuid4(), None)],
    )
    def test_unauthorized(self, actions, actor):
        result = actions.create_item(actor, {"name": "Ring", "weight_grams": "1"})
        assert not result.success
        assert result.code == "unauthorized"

    def test_bulk_unauthorized(self, actions):
        result = actions.bulk_update_status(None, [uuid4()], "sold")
        assert result.code == "unauthorized"


class TestItemActions:

    def test_create(self, actions, actor, category, invalidations):
        result = actions.create_item(
            actor,
            {
                "name": "Solitaire ring",
                "weight_grams": "3.450",
                "purchase_price": "2450.00",
                "currency": "usd",
                "category_id": str(category.id),
            },
        )
        assert result.success
        assert result.message == "Item created"
        assert result.data["status"] == "available"
        assert result.data["version"] == 1
        assert result.data["currency"] == "USD"
        assert result.data["sku"].startswith("TIA-RIN-")
        assert invalidations == [(actor.tenant_id, UUID(result.data["id"]))]

    def test_create_validation_error(self, actions, actor, invalidations):
        result = actions.create_item(actor, {"name": "Ring", "weight_grams": "-1"})
        assert result.code == "validation_error"
        assert "weight_grams" in result.error
        assert invalidations == []

    def test_create_read_only_field(self, actions, actor):
        result = actions.create_item(actor, {"name": "Ring", "weight_grams": "1", "version": 7})
        assert result.code == "validation_error"

    def test_create_invalid_reference(self, actions, actor):
        result = actions.create_item(
            actor, {"name": "Ring", "weight_grams": "1", "metal_type_id": str(uuid4())}
        )
        assert result.code == "invalid_metal_type"

    def test_duplicate_sku(self, actions, actor):
        _create(actions, actor, sku="RING-001")
        result = actions.create_item(actor, {"name": "Copy", "weight_grams": "1", "sku": "RING-001"})
        assert result.code == "duplicate_sku"
        assert result.error == "An item with this sku already exists: RING-001"

    def test_update_and_conflict(self, actions, actor):
        item = _create(actions, actor)
        ok = actions.update_item(actor, item["id"], 1, {"name": "Renamed"})
        assert ok.success
        assert ok.data["version"] == 2

        stale = actions.update_item(actor, item["id"], 1, {"name": "Stale"})
        assert stale.code == "concurrent_modification"
        assert stale.error == "Item was modified by another user. Please refresh and try again."
        assert actions.get_item(actor, item["id"]).data["name"] == "Renamed"

    @pytest.mark.parametrize("version", [0, -1, "1", True, None])
    def test_update_bad_version(self, actions, actor, version):
        item = _create(actions, actor)
        result = actions.update_item(actor, item["id"], version, {"name": "X"})
        assert result.code == "validation_error"

    def test_update_empty_patch(self, actions, actor):
        item = _create(actions, actor)
        assert actions.update_item(actor, item["id"], 1, {}).code == "validation_error"

    def test_update_bad_item_id(self, actions, actor):
        assert actions.update_item(actor, "not-a-uuid", 1, {"name": "X"}).code == "validation_error"

    def test_sold_scenario(self, actions, actor):
        item = _create(actions, actor)
        actions.update_item(actor, item["id"], 1, {"name": "A"})
        actions.update_item(actor, item["id"], 2, {"name": "B"})

        sold = actions.update_item_status(actor, item["id"], 3, "sold", "Paid in full")
        assert sold.success
        assert sold.data["version"] == 4
        assert sold.data["status"] == "sold"
        assert sold.message == "Item status set to 'sold'"
        assert sold.data["description"] == "available -> sold: Paid in full"

        locked = actions.update_item(actor, item["id"], 4, {"name": "C"})
        assert locked.code == "invalid_status"
        assert locked.error == "Cannot update item with status 'sold'"

    def test_invalid_transition(self, actions, actor):
        item = _create(actions, actor)
        actions.update_item_status(actor, item["id"], 1, "sold")
        result = actions.update_item_status(actor, item["id"], 2, "workshop")
        assert result.code == "invalid_transition"
        assert actions.get_item(actor, item["id"]).data["version"] == 2

    def test_unknown_status(self, actions, actor):
        item = _create(actions, actor)
        assert actions.update_item_status(actor, item["id"], 1, "lost").code == "validation_error"

    def test_reason_too_long(self, actions, actor):
        item = _create(actions, actor)
        result = actions.update_item_status(actor, item["id"], 1, "reserved", "x" * 501)
        assert result.code == "validation_error"

    def test_delete(self, actions, actor, invalidations):
        item = _create(actions, actor, sku="RING-001")
        result = actions.delete_item(actor, item["id"])
        assert result.success
        assert result.to_dict() == {"success": True, "message": "Item deleted"}
        assert actions.get_item(actor, item["id"]).code == "not_found"
        # sku is free again
        _create(actions, actor, sku="RING-001")

    def test_delete_reserved(self, actions, actor):
        item = _create(actions, actor)
        actions.update_item_status(actor, item["id"], 1, "reserved")
        result = actions.delete_item(actor, item["id"])
        assert result.code == "invalid_status"
        assert result.error == "Cannot delete item with status 'reserved'"

    def test_list_items(self, actions, actor):
        _create(actions, actor, sku="B-2")
        reserved = _create(actions, actor, sku="A-1")
        actions.update_item_status(actor, reserved["id"], 1, "reserved")

        assert [i["sku"] for i in actions.list_items(actor).data] == ["A-1", "B-2"]
        assert [i["sku"] for i in actions.list_items(actor, "reserved").data] == ["A-1"]
        assert actions.list_items(actor, "lost").code == "validation_error"

    def test_reads_do_not_invalidate(self, actions, actor, invalidations):
        item = _create(actions, actor)
        invalidations.clear()
        actions.get_item(actor, item["id"])
        actions.list_items(actor)
        assert invalidations == []


class TestStoneAndCertificationActions:

    def test_stone_round_trip(self, actions, actor, stone_type, invalidations):
        item = _create(actions, actor)
        first = actions.attach_stone(
            actor, item["id"], {"stone_type_id": str(stone_type.id), "weight_carats": "0.5"}
        )
        actions.attach_stone(
            actor, item["id"], {"stone_type_id": str(stone_type.id), "weight_carats": "1.2"}
        )
        assert first.success
        assert first.message == "Stone added"
        fetched = actions.get_item(actor, item["id"]).data
        assert Decimal(fetched["stone_weight_carats"]) == Decimal("1.7")
        assert fetched["version"] == 1

        invalidations.clear()
        removed = actions.detach_stone(actor, first.data["id"])
        assert removed.success
        assert [str(i) for _, i in invalidations] == [item["id"]]
        fetched = actions.get_item(actor, item["id"]).data
        assert Decimal(fetched["stone_weight_carats"]) == Decimal("1.2")

    def test_stone_validation(self, actions, actor, stone_type):
        item = _create(actions, actor)
        result = actions.attach_stone(
            actor, item["id"], {"stone_type_id": str(stone_type.id), "weight_carats": "0"}
        )
        assert result.code == "validation_error"

    def test_stone_on_missing_item(self, actions, actor, stone_type):
        result = actions.attach_stone(
            actor, uuid4(), {"stone_type_id": str(stone_type.id), "weight_carats": "1"}
        )
        assert result.code == "not_found"

    def test_stone_weight_beyond_scale(self, actions, actor, stone_type):
        item = _create(actions, actor)
        result = actions.attach_stone(
            actor, item["id"], {"stone_type_id": str(stone_type.id), "weight_carats": "0.0125"}
        )
        assert result.code == "validation_error"
        assert Decimal(actions.get_item(actor, item["id"]).data["stone_weight_carats"]) == 0

    def test_detach_missing_stone(self, actions, actor):
        assert actions.detach_stone(actor, uuid4()).code == "not_found"

    def test_detach_stone_from_deleted_item(self, actions, actor, stone_type):
        item = _create(actions, actor)
        stone = actions.attach_stone(
            actor, item["id"], {"stone_type_id": str(stone_type.id), "weight_carats": "0.5"}
        )
        assert actions.delete_item(actor, item["id"]).success
        assert actions.detach_stone(actor, stone.data["id"]).code == "not_found"

    def test_certification(self, actions, actor, file_upload, invalidations):
        item = _create(actions, actor)
        cert = {
            "item_id": item["id"],
            "certification_type": "diamond",
            "certificate_number": "GIA-2141438167",
            "issuing_authority": "GIA",
            "file_upload_id": str(file_upload.id),
        }
        attached = actions.attach_certification(actor, cert)
        assert attached.success
        assert attached.data["certificate_number"] == "GIA-2141438167"

        again = actions.attach_certification(actor, cert)
        assert again.code == "duplicate_certificate"

        invalidations.clear()
        assert actions.detach_certification(actor, attached.data["id"]).success
        assert [str(i) for _, i in invalidations] == [item["id"]]

    def test_certification_bad_url(self, actions, actor):
        item = _create(actions, actor)
        result = actions.attach_certification(
            actor,
            {
                "item_id": item["id"],
                "certification_type": "appraisal",
                "certificate_number": "AP-1",
                "issuing_authority": "IGI",
                "verification_url": "javascript:alert(1)",
            },
        )
        assert result.code == "validation_error"


class TestBulkUpdateStatus:

    def test_partial_success(self, actions, actor):
        a = _create(actions, actor)
        b = _create(actions, actor)
        sold = _create(actions, actor)
        actions.update_item_status(actor, sold["id"], 1, "sold")
        missing = str(uuid4())

        result = actions.bulk_update_status(
            actor, [a["id"], b["id"], sold["id"], missing], "reserved", "Holiday hold"
        )
        assert result.success
        assert result.data["updated_count"] == 2
        assert result.data["failed_count"] == 2
        assert result.data["failures"] == {
            sold["id"]: "invalid_transition",
            missing: "not_found",
        }
        assert result.message == "Updated 2 items, 2 failed"

        after = actions.get_item(actor, a["id"]).data
        assert after["status"] == "reserved"
        assert after["version"] == 2
        assert after["description"] == "available -> reserved: Holiday hold"

    def test_empty_selection(self, actions, actor):
        result = actions.bulk_update_status(actor, [], "sold")
        assert result.code == "validation_error"
        assert result.error == "No items selected"

    def test_unknown_status(self, actions, actor):
        item = _create(actions, actor)
        assert actions.bulk_update_status(actor, [item["id"]], "lost").code == "validation_error"

    def test_too_many_items(self, session_factory, engine_config, actor):
        small = InventoryActions(session_factory, replace(engine_config, max_bulk_items=2))
        result = small.bulk_update_status(actor, [uuid4(), uuid4(), uuid4()], "sold")
        assert result.code == "validation_error"


class TestFailureHandling:

    def test_hook_failure_does_not_change_result(self, session_factory, actor, captured_logs):
        def broken_hook(tenant_id, item_id):
            raise RuntimeError("cache down")

        actions = InventoryActions(session_factory, on_invalidate=broken_hook)
        result = actions.create_item(actor, {"name": "Ring", "weight_grams": "1"})
        assert result.success
        assert any(r["message"] == "cache_invalidation_failed" for r in captured_logs())

    def test_database_error_mapped(self, session_factory, actor, monkeypatch, captured_logs):
        def explode(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

        monkeypatch.setattr(InventoryItemService, "create_item", explode)
        actions = InventoryActions(session_factory)
        result = actions.create_item(actor, {"name": "Ring", "weight_grams": "1"})
        assert result.code == "database_error"
        assert "disk" not in result.error
        assert any(r["message"] == "action_database_error" for r in captured_logs())

    def test_unexpected_error_mapped(self, session_factory, actor, monkeypatch):
        def explode(self, *args, **kwargs):
            raise KeyError("boom")

        monkeypatch.setattr(InventoryItemService, "get_item", explode)
        result = InventoryActions(session_factory).get_item(actor, uuid4())
        assert result.code == "unexpected_error"
        assert result.error == "An unexpected error occurred"

    def test_failed_action_rolls_back(self, actions, actor, stone_type, session_factory, monkeypatch):
        """A failure after the stone insert leaves neither the stone nor the total."""
        item = _create(actions, actor)

        def fail_aggregate(self, *args, **kwargs):
            raise OperationalError("UPDATE inventory_items", {}, Exception("locked"))

        monkeypatch.setattr(StoneService, "_adjust_aggregate", fail_aggregate)
        result = actions.attach_stone(
            actor, item["id"], {"stone_type_id": str(stone_type.id), "weight_carats": "1"}
        )
        assert result.code == "database_error"
        monkeypatch.undo()

        check = session_factory()
        assert StoneService(check).list_stones(actor.tenant_id, UUID(item["id"])) == []
        fetched = actions.get_item(actor, item["id"]).data
        assert Decimal(fetched["stone_weight_carats"]) == Decimal("0")

    def test_action_logs_carry_context(self, actions, actor, captured_logs):
        _create(actions, actor)
        created = [r for r in captured_logs() if r["message"] == "item_created"][0]
        assert created["operation"] == "create_item"
        assert created["tenant_id"] == str(actor.tenant_id)
        assert created["actor_id"] == str(actor.actor_id)
        assert "correlation_id" in created
