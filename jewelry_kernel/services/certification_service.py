"""
CertificationService -- certificates attached to inventory items.

Responsibility:
    Attaches a certificate (grading report, appraisal, metal assay) to a
    live item and detaches it again.  Certificate numbers are unique per
    tenant; an optional scanned document must be a live file upload of
    the same tenant.

Architecture position:
    Kernel > Services.  Does not touch the item row or its version.

Failure modes:
    - ItemNotFoundError: item not live in the tenant.
    - DuplicateCertificateError: certificate number already used in the
      tenant (pre-check, or the unique constraint at flush).
    - InvalidFileUploadError: file upload does not resolve.
    - CertificationNotFoundError: detach of an absent/foreign certificate.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jewelry_kernel.domain.clock import Clock
from jewelry_kernel.domain.dtos import CertificationInput, ItemCertificationInfo
from jewelry_kernel.exceptions import CertificationNotFoundError, DuplicateCertificateError
from jewelry_kernel.logging_config import get_logger
from jewelry_kernel.models.item_certification import ItemCertification
from jewelry_kernel.services.base import BaseService
from jewelry_kernel.services.reference_validator import ReferenceValidator
from jewelry_kernel.services.versioned_writer import VersionedWriter

logger = get_logger("services.certification")


class CertificationService(BaseService):

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)
        self._validator = ReferenceValidator(session, self.clock)
        self._writer = VersionedWriter(session, self.clock)

    def _number_taken(self, tenant_id: UUID, certificate_number: str) -> bool:
        stmt = select(ItemCertification.id).where(
            ItemCertification.tenant_id == tenant_id,
            ItemCertification.certificate_number == certificate_number,
        )
        return self.session.execute(stmt.limit(1)).first() is not None

    def attach_certification(
        self,
        tenant_id: UUID,
        cert_input: CertificationInput,
        actor_id: UUID,
    ) -> ItemCertificationInfo:
        """
        Raises:
            ItemNotFoundError, DuplicateCertificateError, InvalidFileUploadError.
        """
        self._writer.load_live(tenant_id, cert_input.item_id)

        if self._number_taken(tenant_id, cert_input.certificate_number):
            raise DuplicateCertificateError(tenant_id, cert_input.certificate_number)

        self._validator.validate_file_upload(tenant_id, cert_input.file_upload_id)

        now = self.clock.now()
        cert = ItemCertification(
            tenant_id=tenant_id,
            item_id=cert_input.item_id,
            certification_type=cert_input.certification_type.value,
            certificate_number=cert_input.certificate_number,
            issuing_authority=cert_input.issuing_authority,
            issue_date=cert_input.issue_date,
            expiry_date=cert_input.expiry_date,
            appraised_value=cert_input.appraised_value,
            currency=cert_input.currency,
            file_upload_id=cert_input.file_upload_id,
            verification_url=cert_input.verification_url,
            notes=cert_input.notes,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
        )
        self.session.add(cert)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise DuplicateCertificateError(
                tenant_id, cert_input.certificate_number
            ) from exc

        logger.info(
            "certification_attached",
            extra={
                "item_id": str(cert_input.item_id),
                "certification_id": str(cert.id),
                "certificate_number": cert.certificate_number,
            },
        )
        return ItemCertificationInfo.from_model(cert)

    def detach_certification(self, tenant_id: UUID, certification_id: UUID) -> UUID:
        """
        Hard-delete a certificate; returns the parent item id.  The file upload is kept.

        Raises:
            CertificationNotFoundError: If the certificate is absent or foreign.
            ItemNotFoundError: If the parent item has been soft-deleted.
        """
        stmt = select(ItemCertification).where(
            ItemCertification.id == certification_id,
            ItemCertification.tenant_id == tenant_id,
        )
        cert = self.session.execute(stmt).scalar_one_or_none()
        if cert is None:
            raise CertificationNotFoundError(certification_id)

        item_id = cert.item_id
        self._writer.load_live(tenant_id, item_id)
        self.session.delete(cert)
        self.session.flush()

        logger.info(
            "certification_detached",
            extra={"item_id": str(item_id), "certification_id": str(certification_id)},
        )
        return item_id

    def list_certifications(self, tenant_id: UUID, item_id: UUID) -> list[ItemCertificationInfo]:
        stmt = (
            select(ItemCertification)
            .where(
                ItemCertification.tenant_id == tenant_id,
                ItemCertification.item_id == item_id,
            )
            .order_by(ItemCertification.created_at, ItemCertification.id)
        )
        return [
            ItemCertificationInfo.from_model(c) for c in self.session.execute(stmt).scalars()
        ]
