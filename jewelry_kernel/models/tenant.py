"""
Module: jewelry_kernel.models.tenant
Responsibility: ORM persistence for tenants (shops).  A tenant is the
    isolation boundary for every catalog row, item, stone and certification.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Every tenant-owned row elsewhere carries this tenant's id; the kernel
      never reads or writes across tenants.

Audit relevance:
    The shop name feeds the SKU shop code, so renaming a shop changes the
    prefix of SKUs generated afterwards (existing SKUs are never rewritten).
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from jewelry_kernel.db.base import TrackedBase


class Tenant(TrackedBase):
    """An isolated business account (a shop)."""

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Tenant {self.name}>"
