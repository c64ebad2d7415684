"""
InventoryActions -- the outer boundary for inventory mutations.

Responsibility:
    Turns a caller request (actor + plain input) into one kernel unit of
    work: checks the actor, builds the validated input DTO, runs the
    kernel service inside a fresh session, commits on success or rolls
    back on failure, fires the cache-invalidation hook after a commit,
    and maps every outcome to an ``ActionResult``.

Architecture position:
    Services -- the only layer that owns transactions and the only place
    where kernel exceptions are converted into result codes.

        jewelry_services/ -> jewelry_kernel/  (allowed)
        jewelry_services/ -> jewelry_config/  (allowed)
        jewelry_kernel/   -> jewelry_services/ (FORBIDDEN)

Invariants enforced:
    - One operation, one transaction.  Bulk status updates run one
      transaction per item, so one failure never undoes another item.
    - The cache hook runs only after a successful commit; a hook failure
      is logged and never changes the result.
    - Internal detail (SQL, tracebacks) never reaches the caller; it is
      logged with the correlation id instead.

Failure modes (as result codes):
    - ``unauthorized``, ``validation_error``, reference/duplicate/lifecycle
      codes from the kernel, ``not_found``, ``concurrent_modification``,
      ``database_error`` (any SQLAlchemyError), ``unexpected_error``.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any, NamedTuple
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from jewelry_config.schema import EngineConfig
from jewelry_kernel.domain.clock import Clock, SystemClock
from jewelry_kernel.domain.dtos import CertificationInput, ItemInput, ItemPatch, StoneInput
from jewelry_kernel.domain.status import InventoryStatus
from jewelry_kernel.exceptions import JewelryKernelError, ValidationError
from jewelry_kernel.logging_config import LogContext, get_logger
from jewelry_kernel.services.certification_service import CertificationService
from jewelry_kernel.services.inventory_service import InventoryItemService
from jewelry_kernel.services.stone_service import StoneService
from jewelry_services.actor import ActorContext, require_actor
from jewelry_services.results import ActionResult, BulkStatusResult

logger = get_logger("actions.inventory")

CacheInvalidationHook = Callable[[UUID, UUID | None], None]

DATABASE_ERROR_MESSAGE = "A database error occurred. Please try again."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class _Outcome(NamedTuple):
    data: Any
    message: str | None
    item_id: UUID | None
    invalidate: bool = True


def _as_uuid(field: str, value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(field, f"{field} must be a valid UUID")


def _as_status(value: InventoryStatus | str) -> InventoryStatus:
    try:
        return InventoryStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in InventoryStatus)
        raise ValidationError("status", f"status must be one of: {allowed}")


class InventoryActions:
    """
    Request-level entry points for inventory item mutations.

    Contract:
        Every public method returns an ``ActionResult`` and never raises
        for business or persistence failures.

    Usage:
        actions = InventoryActions(get_session_factory(), get_active_config())
        result = actions.create_item(actor, {"name": "Ring", "weight_grams": "3.2"})
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        on_invalidate: CacheInvalidationHook | None = None,
    ):
        self._session_factory = session_factory
        self._identifier_max_attempts = config.identifier_max_attempts if config else 5
        self._max_reason_length = config.max_reason_length if config else 500
        self._max_bulk_items = config.max_bulk_items if config else 500
        self._clock = clock or SystemClock()
        self._rng = rng or random.Random()
        self._on_invalidate = on_invalidate

    # -- Item operations ------------------------------------------------------

    def create_item(
        self,
        actor: ActorContext | None,
        item_input: ItemInput | Mapping[str, Any],
    ) -> ActionResult:
        def work(session: Session, ctx: ActorContext) -> _Outcome:
            data = (
                item_input
                if isinstance(item_input, ItemInput)
                else ItemInput.from_mapping(item_input)
            )
            item = self._items(session).create_item(ctx.tenant_id, data, ctx.actor_id)
            return _Outcome(item.to_dict(), "Item created", item.id)

        return self._run(actor, "create_item", work)

    def update_item(
        self,
        actor: ActorContext | None,
        item_id: UUID | str,
        expected_version: int,
        patch: ItemPatch | Mapping[str, Any],
    ) -> ActionResult:
        def work(session: Session, ctx: ActorContext) -> _Outcome:
            target = _as_uuid("item_id", item_id)
            changes = patch if isinstance(patch, ItemPatch) else ItemPatch(changes=dict(patch))
            self._require_version(expected_version)
            item = self._items(session).update_item(
                ctx.tenant_id, target, expected_version, changes, ctx.actor_id
            )
            return _Outcome(item.to_dict(), "Item updated", item.id)

        return self._run(actor, "update_item", work, item_id=item_id)

    def update_item_status(
        self,
        actor: ActorContext | None,
        item_id: UUID | str,
        expected_version: int | None,
        new_status: InventoryStatus | str,
        reason: str | None = None,
    ) -> ActionResult:
        def work(session: Session, ctx: ActorContext) -> _Outcome:
            target = _as_uuid("item_id", item_id)
            status = _as_status(new_status)
            self._check_reason(reason)
            if expected_version is not None:
                self._require_version(expected_version)
            item = self._items(session).update_item_status(
                ctx.tenant_id, target, expected_version, status, reason, ctx.actor_id
            )
            return _Outcome(item.to_dict(), f"Item status set to '{status.value}'", item.id)

        return self._run(actor, "update_item_status", work, item_id=item_id)

    def delete_item(self, actor: ActorContext | None, item_id: UUID | str) -> ActionResult:
        def work(session: Session, ctx: ActorContext) -> _Outcome:
            target = _as_uuid("item_id", item_id)
            self._items(session).delete_item(ctx.tenant_id, target, ctx.actor_id)
            return _Outcome(None, "Item deleted", target)

        return self._run(actor, "delete_item", work, item_id=item_id)

    def get_item(self, actor: ActorContext | None, item_id: UUID | str) -> ActionResult:
        def work(session: Session, ctx: ActorContext) -> _Outcome:
            item = self._items(session).get_item(ctx.tenant_id, _as_uuid("item_id", item_id))
            return _Outcome(item.to_dict(), None, item.id, invalidate=False)

        return self._run(actor, "get_item", work, item_id=item_id)

    def list_items(
        self,
        actor: ActorContext | None,
        status: InventoryStatus | str | None = None,
    ) -> ActionResult:
        def work(session: Session, ctx: ActorContext) -> _Outcome:
            wanted = _as_status(status) if status is not None else None
            items = self._items(session).list_items(ctx.tenant_id, wanted)
            return _Outcome([item.to_dict() for item in items], None, None, invalidate=False)

        return self._run(actor, "list_items", work)

    # -- Stones ---------------------------------------------------------------

    def attach_stone(
        self,
        actor: ActorContext | None,
        item_id: UUID | str,
        stone_input: StoneInput | Mapping[str, Any],
    ) -> ActionResult:
        def work(session: Session, ctx: ActorContext) -> _Outcome:
            target = _as_uuid("item_id", item_id)
            data = (
                stone_input
                if isinstance(stone_input, StoneInput)
                else StoneInput.from_mapping(stone_input)
            )
            stone = StoneService(session, self._clock).attach_stone(
                ctx.tenant_id, target, data, ctx.actor_id
            )
            return _Outcome(stone.to_dict(), "Stone added", target)

        return self._run(actor, "attach_stone", work, item_id=item_id)

    def detach_stone(self, actor: ActorContext | None, stone_id: UUID | str) -> ActionResult:
        def work(session: Session, ctx: ActorContext) -> _Outcome:
            item_id = StoneService(session, self._clock).detach_stone(
                ctx.tenant_id, _as_uuid("stone_id", stone_id), ctx.actor_id
            )
            return _Outcome(None, "Stone removed", item_id)

        return self._run(actor, "detach_stone", work)

    # -- Certifications -------------------------------------------------------

    def attach_certification(
        self,
        actor: ActorContext | None,
        cert_input: CertificationInput | Mapping[str, Any],
    ) -> ActionResult:
        def work(session: Session, ctx: ActorContext) -> _Outcome:
            data = (
                cert_input
                if isinstance(cert_input, CertificationInput)
                else CertificationInput.from_mapping(cert_input)
            )
            cert = CertificationService(session, self._clock).attach_certification(
                ctx.tenant_id, data, ctx.actor_id
            )
            return _Outcome(cert.to_dict(), "Certification added", cert.item_id)

        return self._run(actor, "attach_certification", work)

    def detach_certification(
        self,
        actor: ActorContext | None,
        certification_id: UUID | str,
    ) -> ActionResult:
        def work(session: Session, ctx: ActorContext) -> _Outcome:
            item_id = CertificationService(session, self._clock).detach_certification(
                ctx.tenant_id, _as_uuid("certification_id", certification_id)
            )
            return _Outcome(None, "Certification removed", item_id)

        return self._run(actor, "detach_certification", work)

    # -- Bulk -----------------------------------------------------------------

    def bulk_update_status(
        self,
        actor: ActorContext | None,
        item_ids: Iterable[UUID | str],
        new_status: InventoryStatus | str,
        reason: str | None = None,
    ) -> ActionResult:
        """
        Apply one status change to many items, one transaction per item.

        Each item is re-read and written with its just-read version, so a
        concurrent edit to one item fails only that item.  The result data
        is ``{"updated_count", "failed_count", "failures"}``.
        """
        ids = list(item_ids or [])
        try:
            require_actor(actor)
            if not ids:
                raise ValidationError("item_ids", "No items selected")
            if len(ids) > self._max_bulk_items:
                raise ValidationError(
                    "item_ids", f"At most {self._max_bulk_items} items per bulk update"
                )
            status = _as_status(new_status)
            self._check_reason(reason)
        except JewelryKernelError as exc:
            logger.info(
                "action_rejected",
                extra={"operation": "bulk_update_status", "code": exc.code},
            )
            return ActionResult.fail(exc.code, str(exc))

        updated = 0
        failures: dict[str, str] = {}
        for item_id in ids:
            result = self.update_item_status(actor, item_id, None, status, reason)
            if result.success:
                updated += 1
            else:
                failures[str(item_id)] = result.code or "unexpected_error"

        summary = BulkStatusResult(
            updated_count=updated,
            failed_count=len(failures),
            failures=failures,
        )
        logger.info(
            "bulk_status_update_completed",
            extra={
                "to_status": status.value,
                "updated_count": summary.updated_count,
                "failed_count": summary.failed_count,
            },
        )
        return ActionResult.ok(summary.to_dict(), summary.message)

    # -- Internals ------------------------------------------------------------

    def _items(self, session: Session) -> InventoryItemService:
        return InventoryItemService(
            session,
            clock=self._clock,
            rng=self._rng,
            identifier_max_attempts=self._identifier_max_attempts,
        )

    def _check_reason(self, reason: str | None) -> None:
        if reason is not None and len(reason) > self._max_reason_length:
            raise ValidationError(
                "reason", f"reason must be at most {self._max_reason_length} characters"
            )

    @staticmethod
    def _require_version(expected_version: Any) -> None:
        if (
            not isinstance(expected_version, int)
            or isinstance(expected_version, bool)
            or expected_version < 1
        ):
            raise ValidationError(
                "expected_version", "expected_version must be a positive integer"
            )

    def _run(
        self,
        actor: ActorContext | None,
        operation: str,
        work: Callable[[Session, ActorContext], _Outcome],
        item_id: UUID | str | None = None,
    ) -> ActionResult:
        """Run ``work`` in its own transaction and map the outcome."""
        try:
            ctx = require_actor(actor)
        except JewelryKernelError as exc:
            logger.info("action_rejected", extra={"operation": operation, "code": exc.code})
            return ActionResult.fail(exc.code, str(exc))

        with LogContext.bind(
            correlation_id=str(uuid4()),
            tenant_id=ctx.tenant_id,
            actor_id=ctx.actor_id,
            item_id=item_id,
            operation=operation,
        ):
            t0 = time.monotonic()
            session = self._session_factory()
            try:
                outcome = work(session, ctx)
                session.commit()
            except JewelryKernelError as exc:
                session.rollback()
                logger.info(
                    "action_rejected",
                    extra={"code": exc.code, "error": str(exc)},
                )
                return ActionResult.fail(exc.code, str(exc))
            except SQLAlchemyError:
                session.rollback()
                logger.error("action_database_error", exc_info=True)
                return ActionResult.fail("database_error", DATABASE_ERROR_MESSAGE)
            except Exception:
                session.rollback()
                logger.error("action_unexpected_error", exc_info=True)
                return ActionResult.fail("unexpected_error", UNEXPECTED_ERROR_MESSAGE)
            finally:
                session.close()

            logger.info(
                "action_completed",
                extra={"duration_ms": round((time.monotonic() - t0) * 1000, 2)},
            )
            if outcome.invalidate:
                self._invalidate(ctx.tenant_id, outcome.item_id)
            return ActionResult.ok(outcome.data, outcome.message)

    def _invalidate(self, tenant_id: UUID, item_id: UUID | None) -> None:
        if self._on_invalidate is None:
            return
        try:
            self._on_invalidate(tenant_id, item_id)
        except Exception:
            logger.warning(
                "cache_invalidation_failed",
                extra={"item_id": str(item_id) if item_id else None},
                exc_info=True,
            )
