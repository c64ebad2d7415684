"""
Module: jewelry_kernel.models.catalog
Responsibility: ORM persistence for tenant-scoped catalog reference data
    that inventory items, stones and certifications point at: product
    categories, metal types, metal purities, stone types, product sizes and
    uploaded files.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Every row belongs to exactly one tenant.
    - A soft-deleted row (deleted_at set) is not a valid reference target;
      services.reference_validator enforces this on every write path.

Failure modes:
    - None at the ORM level.  Referential checks live in the service layer
      so that they can report a per-field error code.
"""

from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from jewelry_kernel.db.base import SoftDeleteMixin, TenantScopedMixin, TrackedBase


class CatalogEntry(TenantScopedMixin, SoftDeleteMixin, TrackedBase):
    """Abstract tenant-scoped, soft-deletable named reference row."""

    __abstract__ = True

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class ProductCategory(CatalogEntry):
    """Category of a piece (rings, necklaces...).  Its name drives the SKU code."""

    __tablename__ = "product_categories"


class MetalType(CatalogEntry):
    __tablename__ = "metal_types"


class MetalPurity(CatalogEntry):
    """Fineness of a metal, e.g. 18K = 75.000%."""

    __tablename__ = "metal_purities"

    purity_percentage: Mapped[Decimal | None] = mapped_column(
        Numeric(6, 3),
        nullable=True,
    )


class StoneType(CatalogEntry):
    __tablename__ = "stone_types"


class ProductSize(CatalogEntry):
    __tablename__ = "product_sizes"


class FileUpload(CatalogEntry):
    """Uploaded document (scanned certificate, appraisal PDF...)."""

    __tablename__ = "file_uploads"

    content_type: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    @property
    def file_name(self) -> str:
        return self.name
