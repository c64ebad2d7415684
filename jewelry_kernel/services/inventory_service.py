"""
InventoryItemService -- create, edit, transition and delete inventory items.

Responsibility:
    Composes the reference validator, identifier service, status state
    machine and versioned writer into the item-level write operations.

Architecture position:
    Kernel > Services.  Flush-only; the caller owns the transaction.

Invariants enforced:
    - New items start ``available`` at version 1 with zero stone weight.
    - Generic field edits are refused while status is sold or transferred.
    - Status moves only along STATUS_TRANSITIONS edges; a self-transition
      is accepted and still advances the version.
    - Soft deletes are refused while status is sold, reserved, workshop or
      transferred.
    - Every authored mutation goes through VersionedWriter, so a stale
      ``expected_version`` is rejected and never applied.

Failure modes:
    - ValidationError: empty patch.
    - InvalidReferenceError subclasses: unresolved catalog reference.
    - DuplicateSkuError / DuplicateBarcodeError: identifier already live in
      the tenant (pre-check, or the partial unique index at flush).
    - ItemNotFoundError / InvalidStatusError / InvalidTransitionError /
      ConcurrentModificationError.

Audit relevance:
    Logs ``item_created``, ``item_updated``, ``item_status_changed`` and
    ``item_deleted`` with the resulting version.
"""

import random
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jewelry_kernel.domain.clock import Clock
from jewelry_kernel.domain.dtos import InventoryItemInfo, ItemInput, ItemPatch
from jewelry_kernel.domain.status import (
    INITIAL_STATUS,
    InventoryStatus,
    apply_transition,
    as_status,
    is_delete_blocked,
    is_edit_locked,
)
from jewelry_kernel.exceptions import (
    DuplicateBarcodeError,
    DuplicateSkuError,
    InvalidStatusError,
    ValidationError,
)
from jewelry_kernel.logging_config import get_logger
from jewelry_kernel.models.inventory_item import InventoryItem
from jewelry_kernel.services.base import BaseService
from jewelry_kernel.services.identifier_service import (
    DEFAULT_MAX_ATTEMPTS,
    IdentifierService,
)
from jewelry_kernel.services.reference_validator import ReferenceValidator
from jewelry_kernel.services.versioned_writer import VersionedWriter

logger = get_logger("services.inventory")


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class InventoryItemService(BaseService):
    """
    Item-level write operations and reads, tenant-scoped.

    Contract:
        Every method takes the tenant id explicitly; nothing is read from
        ambient state.  Returns InventoryItemInfo DTOs, never ORM rows.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        identifier_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        super().__init__(session, clock)
        self.references = ReferenceValidator(session, self.clock)
        self.identifiers = IdentifierService(
            session,
            clock=self.clock,
            rng=rng,
            max_attempts=identifier_max_attempts,
        )
        self.writer = VersionedWriter(session, self.clock)

    # -- Reads ----------------------------------------------------------------

    def get_item(self, tenant_id: UUID, item_id: UUID) -> InventoryItemInfo:
        """
        Raises:
            ItemNotFoundError: If the item is not live in the tenant.
        """
        return InventoryItemInfo.from_model(self.writer.load_live(tenant_id, item_id))

    def list_items(
        self,
        tenant_id: UUID,
        status: InventoryStatus | str | None = None,
    ) -> list[InventoryItemInfo]:
        """Live items of the tenant, optionally filtered by status, ordered by SKU."""
        stmt = select(InventoryItem).where(
            InventoryItem.tenant_id == tenant_id,
            InventoryItem.deleted_at.is_(None),
        )
        if status is not None:
            stmt = stmt.where(InventoryItem.status == as_status(status).value)
        stmt = stmt.order_by(InventoryItem.sku)
        return [
            InventoryItemInfo.from_model(item)
            for item in self.session.execute(stmt).scalars()
        ]

    # -- Writes ---------------------------------------------------------------

    def create_item(
        self,
        tenant_id: UUID,
        item_input: ItemInput,
        actor_id: UUID,
    ) -> InventoryItemInfo:
        """
        Create an item, generating SKU/barcode when not supplied.

        Preconditions:
            - ``item_input`` is shape-valid (guaranteed by ItemInput).

        Postconditions:
            - The item is flushed with status available, version 1 and
              stone_weight_carats 0.

        Raises:
            InvalidReferenceError subclass, DuplicateSkuError,
            DuplicateBarcodeError.
        """
        refs = item_input.references
        self.references.validate_references(tenant_id, refs)

        if item_input.sku:
            self.identifiers.ensure_unique(tenant_id, "sku", item_input.sku)
            sku = item_input.sku
        else:
            sku = self.identifiers.allocate_sku(tenant_id, refs.category_id)

        if item_input.barcode:
            self.identifiers.ensure_unique(tenant_id, "barcode", item_input.barcode)
            barcode = item_input.barcode
        else:
            barcode = self.identifiers.allocate_barcode(tenant_id)

        now = self.clock.now()
        item = InventoryItem(
            tenant_id=tenant_id,
            name=item_input.name,
            description=item_input.description,
            sku=sku,
            barcode=barcode,
            item_type=_column_value(item_input.item_type),
            ownership_type=_column_value(item_input.ownership_type),
            gold_color=_column_value(item_input.gold_color),
            status=INITIAL_STATUS.value,
            weight_grams=item_input.weight_grams,
            purchase_price=item_input.purchase_price,
            currency=item_input.currency,
            stone_weight_carats=Decimal("0"),
            version=1,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
            **refs.as_dict(),
        )
        self.session.add(item)
        self._flush_identifiers(tenant_id, sku, barcode)

        logger.info(
            "item_created",
            extra={
                "item_id": str(item.id),
                "sku": sku,
                "barcode": barcode,
                "version": item.version,
            },
        )
        return InventoryItemInfo.from_model(item)

    def update_item(
        self,
        tenant_id: UUID,
        item_id: UUID,
        expected_version: int,
        patch: ItemPatch,
        actor_id: UUID,
    ) -> InventoryItemInfo:
        """
        Apply a partial field update under optimistic concurrency.

        Checks run in order: not found, edit-locked status, changed
        references, changed SKU/barcode uniqueness (excluding this item),
        then the conditional write.

        Raises:
            ValidationError: If the patch is empty.
            ItemNotFoundError, InvalidStatusError, InvalidReferenceError
            subclass, DuplicateSkuError, DuplicateBarcodeError,
            ConcurrentModificationError.
        """
        if patch.is_empty:
            raise ValidationError("patch", "No fields to update")

        item = self.writer.load_live(tenant_id, item_id)
        if is_edit_locked(item.status):
            raise InvalidStatusError(item_id, as_status(item.status).value, "update")

        self.references.validate_references(tenant_id, patch.changed_references())

        sku = patch.get("sku")
        if sku is not None and sku != item.sku:
            self.identifiers.ensure_unique(tenant_id, "sku", sku, exclude_item_id=item_id)
        barcode = patch.get("barcode")
        if barcode is not None and barcode != item.barcode:
            self.identifiers.ensure_unique(
                tenant_id, "barcode", barcode, exclude_item_id=item_id
            )

        values = {name: _column_value(value) for name, value in patch.changes.items()}
        try:
            updated = self.writer.update(
                tenant_id, item_id, expected_version, values, actor_id
            )
        except IntegrityError as exc:
            error = self._duplicate_error(exc, tenant_id, sku, barcode)
            if error is None:
                raise
            raise error from exc

        logger.info(
            "item_updated",
            extra={
                "item_id": str(item_id),
                "fields": sorted(values),
                "version": updated.version,
            },
        )
        return InventoryItemInfo.from_model(updated)

    def update_item_status(
        self,
        tenant_id: UUID,
        item_id: UUID,
        expected_version: int | None,
        new_status: InventoryStatus | str,
        reason: str | None,
        actor_id: UUID,
    ) -> InventoryItemInfo:
        """
        Move an item along the status graph.

        ``expected_version=None`` means "the version just read": the write
        is still conditional, so a concurrent change between this read and
        the write is reported as a conflict rather than overwritten.

        Postconditions:
            - version advances by one, including for a self-transition.
            - When a reason is given and the status changes, the trail line
              "{from} -> {to}: {reason}" is appended to the description.

        Raises:
            ItemNotFoundError, InvalidTransitionError,
            ConcurrentModificationError.
        """
        item = self.writer.load_live(tenant_id, item_id)
        change = apply_transition(item.status, new_status, item.description, reason)

        version = item.version if expected_version is None else expected_version
        values: dict[str, Any] = {"status": change.to_status.value}
        if change.description != item.description:
            values["description"] = change.description

        updated = self.writer.update(tenant_id, item_id, version, values, actor_id)

        logger.info(
            "item_status_changed",
            extra={
                "item_id": str(item_id),
                "from_status": change.from_status.value,
                "to_status": change.to_status.value,
                "is_noop": change.is_noop,
                "version": updated.version,
            },
        )
        return InventoryItemInfo.from_model(updated)

    def delete_item(
        self,
        tenant_id: UUID,
        item_id: UUID,
        actor_id: UUID,
        expected_version: int | None = None,
    ) -> None:
        """
        Soft-delete an item.  Its SKU and barcode become reusable.

        Raises:
            ItemNotFoundError, InvalidStatusError, ConcurrentModificationError.
        """
        item = self.writer.load_live(tenant_id, item_id)
        if is_delete_blocked(item.status):
            raise InvalidStatusError(item_id, as_status(item.status).value, "delete")

        version = item.version if expected_version is None else expected_version
        deleted = self.writer.update(
            tenant_id,
            item_id,
            version,
            {"deleted_at": self.clock.now()},
            actor_id,
        )
        logger.info(
            "item_deleted",
            extra={"item_id": str(item_id), "version": deleted.version},
        )

    # -- Internals ------------------------------------------------------------

    def _flush_identifiers(self, tenant_id: UUID, sku: str, barcode: str) -> None:
        try:
            self.session.flush()
        except IntegrityError as exc:
            error = self._duplicate_error(exc, tenant_id, sku, barcode)
            if error is None:
                raise
            raise error from exc

    @staticmethod
    def _duplicate_error(
        exc: IntegrityError,
        tenant_id: UUID,
        sku: str | None,
        barcode: str | None,
    ) -> DuplicateSkuError | DuplicateBarcodeError | None:
        """Map a unique-index violation on sku/barcode to the domain error."""
        detail = str(exc.orig).lower()
        if "barcode" in detail:
            return DuplicateBarcodeError(tenant_id, barcode or "")
        if "sku" in detail:
            return DuplicateSkuError(tenant_id, sku or "")
        return None
