"""Services for the jewelry kernel (write side)."""

from jewelry_kernel.services.certification_service import CertificationService
from jewelry_kernel.services.identifier_service import IdentifierService
from jewelry_kernel.services.inventory_service import InventoryItemService
from jewelry_kernel.services.reference_validator import REFERENCE_CHECKS, ReferenceValidator
from jewelry_kernel.services.stone_service import StoneService
from jewelry_kernel.services.versioned_writer import VersionedWriter

__all__ = [
    "CertificationService",
    "IdentifierService",
    "InventoryItemService",
    "REFERENCE_CHECKS",
    "ReferenceValidator",
    "StoneService",
    "VersionedWriter",
]
