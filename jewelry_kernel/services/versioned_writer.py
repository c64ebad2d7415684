"""
VersionedWriter -- optimistic concurrency control for inventory items.

Responsibility:
    Applies a set of column values to one inventory item if, and only if,
    the caller's ``expected_version`` still matches the persisted row.
    This is a compare-and-swap on the ``version`` column expressed as a
    single conditional UPDATE, so no lock is held across requests.

Architecture position:
    Kernel > Services.  The single write path for authored item mutations
    (field edits, status changes, soft deletes).  Stone aggregate
    adjustments deliberately bypass it (see services.stone_service).

Invariants enforced:
    - Every successful write sets ``version = expected_version + 1`` and
      stamps ``updated_at`` / ``updated_by_id``.
    - A write whose WHERE clause matches no row is never retried here; the
      caller must refetch and resubmit.
    - Only live rows (``deleted_at IS NULL``) of the caller's tenant can be
      written.

Failure modes:
    - ItemNotFoundError: the item does not exist, belongs to another
      tenant, or is soft-deleted.
    - ConcurrentModificationError: the row exists but its version moved
      (or it was deleted) between the caller's read and this write.

Audit relevance:
    ``item_version_conflict`` is logged for every rejected write with the
    expected version, so lost-update attempts are visible in the logs.
"""

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import select, update

from jewelry_kernel.exceptions import ConcurrentModificationError, ItemNotFoundError
from jewelry_kernel.logging_config import get_logger
from jewelry_kernel.models.inventory_item import InventoryItem
from jewelry_kernel.services.base import BaseService

logger = get_logger("services.versioned_writer")

# Columns owned by the writer itself or immutable after insert.
PROTECTED_COLUMNS: frozenset[str] = frozenset({
    "id",
    "tenant_id",
    "version",
    "created_at",
    "created_by_id",
    "updated_at",
    "updated_by_id",
    "stone_weight_carats",
})


class VersionedWriter(BaseService):
    """
    Conditional-write gateway for InventoryItem rows.

    Contract:
        ``update()`` either applies all of ``values`` atomically and
        advances the version by exactly one, or applies nothing.
    """

    def load_live(self, tenant_id: UUID, item_id: UUID) -> InventoryItem:
        """
        Fetch a live item of the tenant, refreshing any identity-map copy.

        Raises:
            ItemNotFoundError: If absent, foreign, or soft-deleted.
        """
        stmt = (
            select(InventoryItem)
            .where(
                InventoryItem.id == item_id,
                InventoryItem.tenant_id == tenant_id,
                InventoryItem.deleted_at.is_(None),
            )
            .execution_options(populate_existing=True)
        )
        item = self.session.execute(stmt).scalar_one_or_none()
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def reload(self, item_id: UUID) -> InventoryItem:
        """Re-read a row by id regardless of its deleted state."""
        stmt = (
            select(InventoryItem)
            .where(InventoryItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one()

    def update(
        self,
        tenant_id: UUID,
        item_id: UUID,
        expected_version: int,
        values: Mapping[str, Any],
        actor_id: UUID,
    ) -> InventoryItem:
        """
        Compare-and-swap write of ``values`` on one item.

        Preconditions:
            - ``values`` names mapped columns of InventoryItem, none of
              them in PROTECTED_COLUMNS.

        Postconditions:
            - On success the returned item is freshly read and carries
              ``version == expected_version + 1``.

        Raises:
            ItemNotFoundError: If the item is not live in the tenant.
            ConcurrentModificationError: If zero rows matched.
            ValueError: If ``values`` touches a protected column.
        """
        protected = PROTECTED_COLUMNS.intersection(values)
        if protected:
            raise ValueError(
                f"Columns managed by the versioned writer: {sorted(protected)}"
            )

        self.load_live(tenant_id, item_id)

        stmt = (
            update(InventoryItem)
            .where(
                InventoryItem.id == item_id,
                InventoryItem.tenant_id == tenant_id,
                InventoryItem.version == expected_version,
                InventoryItem.deleted_at.is_(None),
            )
            .values(
                **values,
                version=expected_version + 1,
                updated_at=self.clock.now(),
                updated_by_id=actor_id,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)

        # INVARIANT: exactly one row or nothing; never retried here.
        if result.rowcount != 1:
            logger.warning(
                "item_version_conflict",
                extra={
                    "item_id": str(item_id),
                    "tenant_id": str(tenant_id),
                    "expected_version": expected_version,
                },
            )
            raise ConcurrentModificationError(item_id, expected_version)

        item = self.reload(item_id)
        logger.debug(
            "item_version_advanced",
            extra={
                "item_id": str(item_id),
                "version": item.version,
                "fields": sorted(values),
            },
        )
        return item
