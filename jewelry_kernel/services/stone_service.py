"""
StoneService -- stones on items and the stone weight aggregate.

Responsibility:
    Attaches and detaches ItemStone rows and keeps the parent item's
    ``stone_weight_carats`` equal to the sum of ``weight_carats *
    stone_count`` over its stones.

Architecture position:
    Kernel > Services.  Uses ReferenceValidator for the stone type and
    VersionedWriter.load_live for the parent lookup.

Invariants enforced:
    - The child mutation and the aggregate adjustment run in the caller's
      single transaction.  The adjustment is an atomic SQL expression
      (``s = s + delta``), so concurrent attaches on one item never lose
      an increment.
    - The aggregate never goes below zero: a detach is clamped with
      ``CASE WHEN s - delta < 0 THEN 0 ELSE s - delta END``.
    - Aggregate adjustments stamp updated_at/updated_by_id but do not
      advance ``version``; they are derived values, not authored edits.

Failure modes:
    - ItemNotFoundError: parent item absent, foreign, or soft-deleted.
    - InvalidStoneTypeError: stone type does not resolve in the tenant.
    - StoneNotFoundError: stone absent or foreign on detach.
    - sqlalchemy.exc.SQLAlchemyError from the aggregate step is logged as
      ``stone_aggregate_update_failed`` and re-raised, so the caller rolls
      back the child mutation as well.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jewelry_kernel.domain.clock import Clock
from jewelry_kernel.domain.dtos import ItemStoneInfo, StoneInput
from jewelry_kernel.exceptions import ItemNotFoundError, StoneNotFoundError
from jewelry_kernel.logging_config import get_logger
from jewelry_kernel.models.inventory_item import InventoryItem
from jewelry_kernel.models.item_stone import ItemStone
from jewelry_kernel.services.base import BaseService
from jewelry_kernel.services.reference_validator import ReferenceValidator
from jewelry_kernel.services.versioned_writer import VersionedWriter

logger = get_logger("services.stone")


class StoneService(BaseService):
    """Stone attach/detach with in-transaction aggregate maintenance."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)
        self._validator = ReferenceValidator(session, self.clock)
        self._writer = VersionedWriter(session, self.clock)

    def attach_stone(
        self,
        tenant_id: UUID,
        item_id: UUID,
        stone_input: StoneInput,
        actor_id: UUID,
    ) -> ItemStoneInfo:
        """
        Insert a stone on a live item and add its contribution to the aggregate.

        Raises:
            ItemNotFoundError: If the item is not live in the tenant.
            InvalidStoneTypeError: If the stone type does not resolve.
        """
        self._writer.load_live(tenant_id, item_id)
        self._validator.validate_stone_type(tenant_id, stone_input.stone_type_id)

        now = self.clock.now()
        stone = ItemStone(
            tenant_id=tenant_id,
            item_id=item_id,
            stone_type_id=stone_input.stone_type_id,
            weight_carats=stone_input.weight_carats,
            stone_count=stone_input.stone_count,
            clarity=stone_input.clarity,
            color=stone_input.color,
            cut=stone_input.cut,
            position=stone_input.position,
            estimated_value=stone_input.estimated_value,
            notes=stone_input.notes,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
        )
        self.session.add(stone)
        self.session.flush()

        self._adjust_aggregate(tenant_id, item_id, stone_input.contribution, actor_id)

        logger.info(
            "stone_attached",
            extra={
                "item_id": str(item_id),
                "stone_id": str(stone.id),
                "weight_carats": stone_input.weight_carats,
                "stone_count": stone_input.stone_count,
            },
        )
        return ItemStoneInfo.from_model(stone)

    def detach_stone(self, tenant_id: UUID, stone_id: UUID, actor_id: UUID) -> UUID:
        """
        Hard-delete a stone and subtract its contribution, clamped at zero.

        Returns:
            The id of the parent item.

        Raises:
            StoneNotFoundError: If the stone is absent or foreign.
            ItemNotFoundError: If the parent item has been soft-deleted.
        """
        stmt = select(ItemStone).where(
            ItemStone.id == stone_id,
            ItemStone.tenant_id == tenant_id,
        )
        stone = self.session.execute(stmt).scalar_one_or_none()
        if stone is None:
            raise StoneNotFoundError(stone_id)

        item_id = stone.item_id
        self._writer.load_live(tenant_id, item_id)
        contribution = stone.contribution
        self.session.delete(stone)
        self.session.flush()

        self._adjust_aggregate(tenant_id, item_id, -contribution, actor_id)

        logger.info(
            "stone_detached",
            extra={
                "item_id": str(item_id),
                "stone_id": str(stone_id),
                "contribution": contribution,
            },
        )
        return item_id

    def list_stones(self, tenant_id: UUID, item_id: UUID) -> list[ItemStoneInfo]:
        stmt = (
            select(ItemStone)
            .where(ItemStone.tenant_id == tenant_id, ItemStone.item_id == item_id)
            .order_by(ItemStone.created_at, ItemStone.id)
        )
        return [ItemStoneInfo.from_model(s) for s in self.session.execute(stmt).scalars()]

    def recalculate_stone_weight(
        self,
        tenant_id: UUID,
        item_id: UUID,
        actor_id: UUID,
    ) -> Decimal:
        """
        Re-derive the aggregate from the stone rows and overwrite it.

        Repair path for totals that drifted before adjustments were made
        transactional.  Logs ``stone_weight_drift_corrected`` when the stored
        value differed.

        Raises:
            ItemNotFoundError: If the item is not live in the tenant.
        """
        item = self._writer.load_live(tenant_id, item_id)
        stored = item.stone_weight_carats
        total = sum(
            (stone.contribution for stone in self._stones(tenant_id, item_id)),
            Decimal("0"),
        )

        self.session.execute(
            update(InventoryItem)
            .where(InventoryItem.id == item_id, InventoryItem.tenant_id == tenant_id)
            .values(
                stone_weight_carats=total,
                updated_at=self.clock.now(),
                updated_by_id=actor_id,
            )
            .execution_options(synchronize_session=False)
        )

        if stored != total:
            logger.warning(
                "stone_weight_drift_corrected",
                extra={
                    "item_id": str(item_id),
                    "stored": stored,
                    "recalculated": total,
                },
            )
        return total

    def _stones(self, tenant_id: UUID, item_id: UUID) -> list[ItemStone]:
        stmt = select(ItemStone).where(
            ItemStone.tenant_id == tenant_id,
            ItemStone.item_id == item_id,
        )
        return list(self.session.execute(stmt).scalars())

    def _adjust_aggregate(
        self,
        tenant_id: UUID,
        item_id: UUID,
        delta: Decimal,
        actor_id: UUID,
    ) -> None:
        """Apply ``stone_weight_carats += delta`` as one atomic statement."""
        current = InventoryItem.stone_weight_carats
        if delta >= 0:
            new_value = current + delta
        else:
            new_value = case(
                (current + delta < 0, Decimal("0")),
                else_=current + delta,
            )

        stmt = (
            update(InventoryItem)
            .where(
                InventoryItem.id == item_id,
                InventoryItem.tenant_id == tenant_id,
                InventoryItem.deleted_at.is_(None),
            )
            .values(
                stone_weight_carats=new_value,
                updated_at=self.clock.now(),
                updated_by_id=actor_id,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
        except SQLAlchemyError:
            logger.error(
                "stone_aggregate_update_failed",
                extra={
                    "item_id": str(item_id),
                    "tenant_id": str(tenant_id),
                    "delta": delta,
                },
                exc_info=True,
            )
            raise

        if result.rowcount != 1:
            logger.error(
                "stone_aggregate_update_failed",
                extra={
                    "item_id": str(item_id),
                    "tenant_id": str(tenant_id),
                    "delta": delta,
                    "rowcount": result.rowcount,
                },
            )
            raise ItemNotFoundError(item_id)
