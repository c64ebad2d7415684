"""
Module: jewelry_kernel.models.item_certification
Responsibility: ORM persistence for certificates (grading reports,
    appraisals, metal assays) attached to inventory items.
Architecture position: Kernel > Models.  May import from db/base.py and
    the pure enums in domain/.

Invariants enforced:
    - certificate_number is unique per tenant
      (uq_item_certifications_tenant_number).
    - file_upload_id, when set, points at a live file upload of the same
      tenant (checked by services.reference_validator).

Failure modes:
    - IntegrityError on a duplicate certificate number that slipped past
      the service pre-check; mapped to DuplicateCertificateError.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from jewelry_kernel.db.base import TenantScopedMixin, TrackedBase, UUIDString
from jewelry_kernel.domain.dtos import CertificationType


class ItemCertification(TenantScopedMixin, TrackedBase):
    """A certificate issued for an inventory item."""

    __tablename__ = "item_certifications"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "certificate_number",
            name="uq_item_certifications_tenant_number",
        ),
        Index("idx_item_certifications_item", "item_id"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_items.id"),
        nullable=False,
    )

    certification_type: Mapped[CertificationType] = mapped_column(
        String(20),
        nullable=False,
    )

    certificate_number: Mapped[str] = mapped_column(String(100), nullable=False)

    issuing_authority: Mapped[str] = mapped_column(String(100), nullable=False)

    issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    appraised_value: Mapped[Decimal | None] = mapped_column(Numeric(15, 4), nullable=True)

    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)

    file_upload_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("file_uploads.id"),
        nullable=True,
    )

    verification_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ItemCertification {self.certificate_number} ({self.certification_type})>"
