"""
Typed Exception Hierarchy for the Jewelry Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure the kernel can report has its own class and a ``code`` class
attribute.  The code is the machine-readable value that crosses the service
boundary (``jewelry_services.InventoryActions``) in the ``code`` field of a
failed ``ActionResult``.  Callers catch by type, never by message:

    try:
        service.update_item(tenant_id, item_id, expected_version, patch, actor_id)
    except ConcurrentModificationError as e:
        refetch(e.item_id)            # structured data
        respond(code=e.code)          # "concurrent_modification"

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    JewelryKernelError (base)
    |
    +-- UnauthorizedError
    +-- ValidationError
    |
    +-- InvalidReferenceError
    |   +-- InvalidCategoryError
    |   +-- InvalidMetalTypeError
    |   +-- InvalidMetalPurityError
    |   +-- InvalidStoneTypeError
    |   +-- InvalidSizeError
    |   +-- InvalidFileUploadError
    |
    +-- DuplicateIdentifierError
    |   +-- DuplicateSkuError
    |   +-- DuplicateBarcodeError
    |   +-- DuplicateCertificateError
    |
    +-- LifecycleError
    |   +-- InvalidStatusError
    |   +-- InvalidTransitionError
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- StoneNotFoundError
    |   +-- CertificationNotFoundError
    |   +-- TenantNotFoundError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentModificationError
    |
    +-- DatabaseError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                     | When Raised
-------------------------|---------------------------------------------------
unauthorized             | No acting identity on the request
validation_error         | Input failed shape checks before persistence access
invalid_category         | category reference missing/deleted/other tenant
invalid_metal_type       | metal type reference missing/deleted/other tenant
invalid_metal_purity     | metal purity reference missing/deleted/other tenant
invalid_stone_type       | stone type reference missing/deleted/other tenant
invalid_size             | size reference missing/deleted/other tenant
invalid_file_upload      | certification file reference missing/deleted
duplicate_sku            | SKU already used by a live item of the tenant
duplicate_barcode        | Barcode already used by a live item of the tenant
duplicate_certificate    | Certificate number already used in the tenant
invalid_status           | Current status forbids the requested edit/delete
invalid_transition       | Requested status edge is not in the graph
not_found                | Entity absent or soft-deleted
concurrent_modification  | Version mismatch on the conditional write
database_error           | Persistence-layer failure
unexpected_error         | Anything else (boundary only, no class here)

===============================================================================
"""

from uuid import UUID


class JewelryKernelError(Exception):
    """
    Base exception for all kernel errors.

    All subclasses carry a ``code`` class attribute that is the stable,
    API-safe identifier of the failure.
    """

    code: str = "kernel_error"


class UnauthorizedError(JewelryKernelError):
    """No valid acting identity."""

    code: str = "unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ValidationError(JewelryKernelError):
    """Input failed schema/shape checks."""

    code: str = "validation_error"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


# Referential integrity


class InvalidReferenceError(JewelryKernelError):
    """A foreign reference does not resolve to a live, same-tenant row."""

    code: str = "invalid_reference"
    label: str = "Reference"

    def __init__(self, field: str, reference_id: UUID | str):
        self.field = field
        self.reference_id = str(reference_id)
        super().__init__(f"{self.label} not found: {reference_id}")


class InvalidCategoryError(InvalidReferenceError):
    code: str = "invalid_category"
    label: str = "Product category"


class InvalidMetalTypeError(InvalidReferenceError):
    code: str = "invalid_metal_type"
    label: str = "Metal type"


class InvalidMetalPurityError(InvalidReferenceError):
    code: str = "invalid_metal_purity"
    label: str = "Metal purity"


class InvalidStoneTypeError(InvalidReferenceError):
    code: str = "invalid_stone_type"
    label: str = "Stone type"


class InvalidSizeError(InvalidReferenceError):
    code: str = "invalid_size"
    label: str = "Product size"


class InvalidFileUploadError(InvalidReferenceError):
    code: str = "invalid_file_upload"
    label: str = "File upload"


# Uniqueness


class DuplicateIdentifierError(JewelryKernelError):
    """A tenant-scoped unique identifier is already taken."""

    code: str = "duplicate_identifier"
    field: str = "identifier"

    def __init__(self, tenant_id: UUID, value: str):
        self.tenant_id = tenant_id
        self.value = value
        super().__init__(f"An item with this {self.field} already exists: {value}")


class DuplicateSkuError(DuplicateIdentifierError):
    code: str = "duplicate_sku"
    field: str = "sku"


class DuplicateBarcodeError(DuplicateIdentifierError):
    code: str = "duplicate_barcode"
    field: str = "barcode"


class DuplicateCertificateError(DuplicateIdentifierError):
    code: str = "duplicate_certificate"
    field: str = "certificate_number"

    def __init__(self, tenant_id: UUID, value: str):
        self.tenant_id = tenant_id
        self.value = value
        JewelryKernelError.__init__(
            self, f"A certification with this certificate number already exists: {value}"
        )


# Lifecycle


class LifecycleError(JewelryKernelError):
    """Base exception for status-related rejections."""

    code: str = "lifecycle_error"


class InvalidStatusError(LifecycleError):
    """The item's current status forbids the requested operation."""

    code: str = "invalid_status"

    def __init__(self, item_id: UUID, status: str, operation: str):
        self.item_id = item_id
        self.status = status
        self.operation = operation
        super().__init__(f"Cannot {operation} item with status '{status}'")


class InvalidTransitionError(LifecycleError):
    """The requested status edge is not in the transition graph."""

    code: str = "invalid_transition"

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot transition from '{from_status}' to '{to_status}'")


# Not found


class NotFoundError(JewelryKernelError):
    code: str = "not_found"
    entity: str = "Entity"

    def __init__(self, entity_id: UUID | str):
        self.entity_id = str(entity_id)
        super().__init__(f"{self.entity} not found: {entity_id}")


class ItemNotFoundError(NotFoundError):
    entity: str = "Inventory item"


class StoneNotFoundError(NotFoundError):
    entity: str = "Stone"


class CertificationNotFoundError(NotFoundError):
    entity: str = "Certification"


class TenantNotFoundError(NotFoundError):
    entity: str = "Tenant"


# Concurrency


class ConcurrencyError(JewelryKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "concurrency_error"


class ConcurrentModificationError(ConcurrencyError):
    """Conditional write affected zero rows: the version moved underneath us."""

    code: str = "concurrent_modification"

    def __init__(self, item_id: UUID, expected_version: int):
        self.item_id = item_id
        self.expected_version = expected_version
        super().__init__(
            "Item was modified by another user. Please refresh and try again."
        )


# Persistence


class DatabaseError(JewelryKernelError):
    """Persistence-layer failure unrelated to business rules."""

    code: str = "database_error"

    def __init__(self, operation: str, original_exception: Exception | None = None):
        self.operation = operation
        self.original_exception = original_exception
        super().__init__(f"Database error during {operation}")
