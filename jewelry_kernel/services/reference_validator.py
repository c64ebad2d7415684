"""
ReferenceValidator -- tenant-scoped referential integrity checks.

Responsibility:
    Verifies that every optional catalog reference on an item (category,
    metal type, metal purity, stone type, size), a stone's stone type and
    a certification's file upload point at an existing, live row of the
    same tenant.

Architecture position:
    Kernel > Services.  Read-only: issues SELECTs, never writes.

Invariants enforced:
    - Tenant isolation: a reference to another tenant's row is reported
      exactly like a missing row.
    - Soft-deleted catalog rows are not valid targets.
    - Check order is fixed (category, metal type, metal purity, stone
      type, size) and the first failure short-circuits, so the reported
      error code is deterministic.

Failure modes:
    - InvalidCategoryError / InvalidMetalTypeError / InvalidMetalPurityError
      / InvalidStoneTypeError / InvalidSizeError / InvalidFileUploadError.
"""

from uuid import UUID

from sqlalchemy import select

from jewelry_kernel.domain.dtos import ItemReferences
from jewelry_kernel.exceptions import (
    InvalidCategoryError,
    InvalidFileUploadError,
    InvalidMetalPurityError,
    InvalidMetalTypeError,
    InvalidReferenceError,
    InvalidSizeError,
    InvalidStoneTypeError,
)
from jewelry_kernel.logging_config import get_logger
from jewelry_kernel.models.catalog import (
    CatalogEntry,
    FileUpload,
    MetalPurity,
    MetalType,
    ProductCategory,
    ProductSize,
    StoneType,
)
from jewelry_kernel.services.base import BaseService

logger = get_logger("services.reference_validator")

# field -> (catalog model, error raised when the reference does not resolve)
REFERENCE_CHECKS: dict[str, tuple[type[CatalogEntry], type[InvalidReferenceError]]] = {
    "category_id": (ProductCategory, InvalidCategoryError),
    "metal_type_id": (MetalType, InvalidMetalTypeError),
    "metal_purity_id": (MetalPurity, InvalidMetalPurityError),
    "stone_type_id": (StoneType, InvalidStoneTypeError),
    "size_id": (ProductSize, InvalidSizeError),
    "file_upload_id": (FileUpload, InvalidFileUploadError),
}


class ReferenceValidator(BaseService):
    """
    Resolves catalog references for a tenant.

    Guarantees:
        - Returns None when every non-null reference resolves.
        - Raises the field-specific InvalidReferenceError subclass otherwise.
    """

    def exists(self, model: type[CatalogEntry], tenant_id: UUID, ref_id: UUID) -> bool:
        """True iff ``ref_id`` is a live ``model`` row owned by ``tenant_id``."""
        stmt = select(model.id).where(
            model.id == ref_id,
            model.tenant_id == tenant_id,
            model.deleted_at.is_(None),
        )
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def validate_reference(self, tenant_id: UUID, field: str, ref_id: UUID | None) -> None:
        """Check one reference by field name.  A None reference is valid."""
        if ref_id is None:
            return
        model, error_cls = REFERENCE_CHECKS[field]
        if not self.exists(model, tenant_id, ref_id):
            logger.info(
                "reference_rejected",
                extra={
                    "field": field,
                    "reference_id": str(ref_id),
                    "tenant_id": str(tenant_id),
                },
            )
            raise error_cls(field, ref_id)

    def validate_references(self, tenant_id: UUID, refs: ItemReferences) -> None:
        """
        Validate all item references in the fixed check order.

        Raises:
            InvalidReferenceError subclass for the first unresolved reference.
        """
        for field, ref_id in refs.items():
            self.validate_reference(tenant_id, field, ref_id)

    def validate_stone_type(self, tenant_id: UUID, stone_type_id: UUID) -> None:
        self.validate_reference(tenant_id, "stone_type_id", stone_type_id)

    def validate_file_upload(self, tenant_id: UUID, file_upload_id: UUID | None) -> None:
        self.validate_reference(tenant_id, "file_upload_id", file_upload_id)
