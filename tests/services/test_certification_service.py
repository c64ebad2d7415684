"""CertificationService: certificates attached to items."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from jewelry_kernel.domain.dtos import CertificationInput, CertificationType, ItemInput
from jewelry_kernel.exceptions import (
    CertificationNotFoundError,
    DuplicateCertificateError,
    InvalidFileUploadError,
    ItemNotFoundError,
)
from jewelry_kernel.models import FileUpload
from jewelry_kernel.services.certification_service import CertificationService


@pytest.fixture
def cert_service(session, deterministic_clock):
    return CertificationService(session, clock=deterministic_clock)


def _cert(item_id, number="GIA-2141438167", **extra) -> CertificationInput:
    return CertificationInput(
        item_id=item_id,
        certification_type=extra.pop("certification_type", "diamond"),
        certificate_number=number,
        issuing_authority=extra.pop("issuing_authority", "GIA"),
        **extra,
    )


class TestAttachCertification:

    def test_attach(self, cert_service, item_service, tenant, make_item, file_upload, test_actor_id):
        item = make_item()
        info = cert_service.attach_certification(
            tenant.id,
            _cert(
                item.id,
                issue_date=date(2024, 3, 1),
                appraised_value=Decimal("5200.00"),
                currency="USD",
                file_upload_id=file_upload.id,
                verification_url="https://www.gia.edu/report-check?reportno=2141438167",
            ),
            test_actor_id,
        )
        assert info.item_id == item.id
        assert info.certification_type is CertificationType.DIAMOND
        assert info.file_upload_id == file_upload.id
        assert info.created_by_id == test_actor_id

        # the item row is not touched
        assert item_service.get_item(tenant.id, item.id).version == 1

    def test_duplicate_number_in_tenant(self, cert_service, tenant, make_item, test_actor_id):
        first = make_item()
        second = make_item(name="Band")
        cert_service.attach_certification(tenant.id, _cert(first.id), test_actor_id)
        with pytest.raises(DuplicateCertificateError) as exc_info:
            cert_service.attach_certification(tenant.id, _cert(second.id), test_actor_id)
        assert exc_info.value.code == "duplicate_certificate"

    def test_same_number_in_other_tenant(
        self, session, cert_service, tenant, other_tenant, make_item, item_service, test_actor_id
    ):
        mine = make_item()
        theirs = item_service.create_item(
            other_tenant.id, ItemInput(name="Ring", weight_grams="1"), test_actor_id
        )
        cert_service.attach_certification(tenant.id, _cert(mine.id), test_actor_id)
        cert_service.attach_certification(other_tenant.id, _cert(theirs.id), test_actor_id)
        assert len(cert_service.list_certifications(other_tenant.id, theirs.id)) == 1

    def test_unknown_item(self, cert_service, tenant, test_actor_id):
        with pytest.raises(ItemNotFoundError):
            cert_service.attach_certification(tenant.id, _cert(uuid4()), test_actor_id)

    def test_deleted_file_upload(
        self, session, cert_service, tenant, make_item, create_catalog_entry,
        deterministic_clock, test_actor_id,
    ):
        item = make_item()
        upload = create_catalog_entry(FileUpload, tenant.id, "old-scan.pdf")
        upload.deleted_at = deterministic_clock.now()
        session.commit()
        with pytest.raises(InvalidFileUploadError):
            cert_service.attach_certification(
                tenant.id, _cert(item.id, file_upload_id=upload.id), test_actor_id
            )


class TestDetachCertification:

    def test_detach_returns_parent(self, cert_service, tenant, make_item, file_upload, test_actor_id):
        item = make_item()
        info = cert_service.attach_certification(
            tenant.id, _cert(item.id, file_upload_id=file_upload.id), test_actor_id
        )
        assert cert_service.detach_certification(tenant.id, info.id) == item.id
        assert cert_service.list_certifications(tenant.id, item.id) == []

    def test_number_reusable_after_detach(self, cert_service, tenant, make_item, test_actor_id):
        item = make_item()
        info = cert_service.attach_certification(tenant.id, _cert(item.id), test_actor_id)
        cert_service.detach_certification(tenant.id, info.id)
        cert_service.attach_certification(tenant.id, _cert(item.id), test_actor_id)

    def test_unknown(self, cert_service, tenant):
        with pytest.raises(CertificationNotFoundError) as exc_info:
            cert_service.detach_certification(tenant.id, uuid4())
        assert exc_info.value.code == "not_found"

    def test_other_tenant(self, cert_service, tenant, other_tenant, make_item, test_actor_id):
        item = make_item()
        info = cert_service.attach_certification(tenant.id, _cert(item.id), test_actor_id)
        with pytest.raises(CertificationNotFoundError):
            cert_service.detach_certification(other_tenant.id, info.id)

    def test_deleted_item_keeps_certificate(
        self, session, cert_service, item_service, tenant, make_item, test_actor_id
    ):
        item = make_item()
        info = cert_service.attach_certification(tenant.id, _cert(item.id), test_actor_id)
        session.commit()
        item_service.delete_item(tenant.id, item.id, test_actor_id)
        session.commit()

        with pytest.raises(ItemNotFoundError):
            cert_service.detach_certification(tenant.id, info.id)
        assert [c.id for c in cert_service.list_certifications(tenant.id, item.id)] == [info.id]
