"""
BaseService -- shared constructor for kernel services.

Kernel services write through the caller's ``Session`` with ``flush()``
and never commit or roll back.  ``InventoryActions`` (or a test) owns the
transaction, so "insert a stone, then adjust the parent's aggregate" is
one unit that either lands whole or not at all.
"""

from abc import ABC

from sqlalchemy.orm import Session

from jewelry_kernel.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """
    Holds the session and the clock used for audit stamps.

    Non-goals:
        - Transaction lifecycle (commit/rollback) belongs to the caller.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
