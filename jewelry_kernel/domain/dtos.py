"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the kernel boundary:
    validated inputs (ItemInput, ItemPatch, ItemReferences, StoneInput,
    CertificationInput) and read-side snapshots (InventoryItemInfo,
    ItemStoneInfo, ItemCertificationInfo), plus the classification enums.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies, database access, and external services.
    from_model() class methods exist as boundary converters but are only
    invoked from the service layer (never from domain logic).

Invariants enforced:
    - Input DTOs are shape-valid on construction: text lengths, identifier
      alphabet, non-negative weights and prices, positive carat weights,
      weights to 3 decimal places and prices to 4,
      3-letter upper-case currency codes, http(s) verification URLs,
      expiry not before issue.
    - stone_weight_carats, status and version are never client-writable:
      they are absent from ItemInput and rejected by ItemPatch.

Failure modes:
    - ValidationError(field, message) on any malformed input.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse
from uuid import UUID

from jewelry_kernel.domain.identifiers import IDENTIFIER_MAX_LENGTH, is_valid_identifier
from jewelry_kernel.domain.status import InventoryStatus, as_status
from jewelry_kernel.exceptions import ValidationError

# Fractional digits kept by the weight columns and the money columns.
WEIGHT_PLACES = 3
MONEY_PLACES = 4

if TYPE_CHECKING:
    from jewelry_kernel.models.inventory_item import InventoryItem
    from jewelry_kernel.models.item_certification import ItemCertification
    from jewelry_kernel.models.item_stone import ItemStone


class ItemType(str, Enum):
    FINISHED = "finished"
    RAW_MATERIAL = "raw_material"
    COMPONENT = "component"


class OwnershipType(str, Enum):
    """Who holds title to the piece while it sits in the shop."""

    OWNED = "owned"
    CONSIGNMENT = "consignment"
    MEMO = "memo"


class GoldColor(str, Enum):
    YELLOW = "yellow"
    WHITE = "white"
    ROSE = "rose"


class CertificationType(str, Enum):
    DIAMOND = "diamond"
    GEMSTONE = "gemstone"
    METAL = "metal"
    APPRAISAL = "appraisal"


# ---------------------------------------------------------------------------
# Field coercion helpers
# ---------------------------------------------------------------------------


def _text(
    name: str,
    value: Any,
    *,
    max_length: int,
    min_length: int = 0,
) -> str | None:
    if value is None:
        if min_length:
            raise ValidationError(name, f"{name} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(name, f"{name} must be a string")
    value = value.strip()
    if len(value) < min_length:
        raise ValidationError(name, f"{name} is required")
    if len(value) > max_length:
        raise ValidationError(
            name, f"{name} must be at most {max_length} characters"
        )
    if not value:
        return None
    return value


def _identifier(name: str, value: Any) -> str | None:
    value = _text(name, value, max_length=IDENTIFIER_MAX_LENGTH)
    if value is None:
        return None
    if not is_valid_identifier(value):
        raise ValidationError(
            name, f"{name} may only contain letters, digits, '-' and '_'"
        )
    return value


def _decimal(
    name: str,
    value: Any,
    *,
    required: bool = False,
    positive: bool = False,
    places: int | None = None,
) -> Decimal | None:
    if value is None:
        if required:
            raise ValidationError(name, f"{name} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(name, f"{name} must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(name, f"{name} must be a number")
    if not amount.is_finite():
        raise ValidationError(name, f"{name} must be a finite number")
    if positive and amount <= 0:
        raise ValidationError(name, f"{name} must be greater than 0")
    if amount < 0:
        raise ValidationError(name, f"{name} cannot be negative")
    # no more fractional digits than the column keeps
    if places is not None and amount.normalize().as_tuple().exponent < -places:
        raise ValidationError(name, f"{name} allows at most {places} decimal places")
    return amount


def _uuid(name: str, value: Any, *, required: bool = False) -> UUID | None:
    if value is None or value == "":
        if required:
            raise ValidationError(name, f"{name} is required")
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(name, f"{name} must be a valid UUID")


def _enum(name: str, enum_cls: type[Enum], value: Any, default: Enum | None = None):
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(name, f"{name} must be one of: {allowed}")


def _currency(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or len(value.strip()) != 3 or not value.strip().isalpha():
        raise ValidationError("currency", "currency must be a 3-letter ISO code")
    return value.strip().upper()


def _date(name: str, value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(name, f"{name} must be a date in YYYY-MM-DD format")


def _url(name: str, value: Any, *, max_length: int) -> str | None:
    value = _text(name, value, max_length=max_length)
    if value is None:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(name, f"{name} must be a valid http(s) URL")
    return value


def _count(name: str, value: Any, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(name, f"{name} must be an integer")
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ValidationError(name, f"{name} must be an integer")
    if count != value and not isinstance(value, str):
        raise ValidationError(name, f"{name} must be an integer")
    if count < 1:
        raise ValidationError(name, f"{name} must be at least 1")
    return count


def _set(obj: Any, name: str, value: Any) -> None:
    object.__setattr__(obj, name, value)


def _plain(value: Any) -> Any:
    """JSON-safe rendering used by the to_dict() converters."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

REFERENCE_FIELDS: tuple[str, ...] = (
    "category_id",
    "metal_type_id",
    "metal_purity_id",
    "stone_type_id",
    "size_id",
)


@dataclass(frozen=True)
class ItemReferences:
    """Optional tenant-scoped catalog references of an item.

    Field order is the order in which the reference validator checks them.
    """

    category_id: UUID | None = None
    metal_type_id: UUID | None = None
    metal_purity_id: UUID | None = None
    stone_type_id: UUID | None = None
    size_id: UUID | None = None

    def __post_init__(self) -> None:
        for name in REFERENCE_FIELDS:
            _set(self, name, _uuid(name, getattr(self, name)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ItemReferences:
        return cls(**{name: data.get(name) for name in REFERENCE_FIELDS})

    def items(self) -> list[tuple[str, UUID | None]]:
        return [(name, getattr(self, name)) for name in REFERENCE_FIELDS]

    def as_dict(self) -> dict[str, UUID | None]:
        return dict(self.items())


@dataclass(frozen=True)
class ItemInput:
    """
    Validated payload for creating an inventory item.

    Guarantees:
        - name is 1..255 characters after trimming.
        - weight_grams is present and non-negative.
        - sku/barcode, when given, match ``[A-Za-z0-9_-]{1,100}``;
          None means "generate one".
        - currency, when given, is upper-cased.
    """

    name: str
    weight_grams: Decimal
    sku: str | None = None
    barcode: str | None = None
    description: str | None = None
    item_type: ItemType = ItemType.FINISHED
    ownership_type: OwnershipType = OwnershipType.OWNED
    gold_color: GoldColor | None = None
    purchase_price: Decimal | None = None
    currency: str | None = None
    references: ItemReferences = field(default_factory=ItemReferences)

    def __post_init__(self) -> None:
        _set(self, "name", _text("name", self.name, max_length=255, min_length=1))
        _set(
            self,
            "weight_grams",
            _decimal("weight_grams", self.weight_grams, required=True, places=WEIGHT_PLACES),
        )
        _set(self, "sku", _identifier("sku", self.sku))
        _set(self, "barcode", _identifier("barcode", self.barcode))
        _set(self, "description", _text("description", self.description, max_length=10_000))
        _set(self, "item_type", _enum("item_type", ItemType, self.item_type, ItemType.FINISHED))
        _set(
            self,
            "ownership_type",
            _enum("ownership_type", OwnershipType, self.ownership_type, OwnershipType.OWNED),
        )
        _set(self, "gold_color", _enum("gold_color", GoldColor, self.gold_color))
        _set(
            self,
            "purchase_price",
            _decimal("purchase_price", self.purchase_price, places=MONEY_PLACES),
        )
        _set(self, "currency", _currency(self.currency))
        if not isinstance(self.references, ItemReferences):
            raise ValidationError("references", "references must be ItemReferences")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ItemInput:
        """Build from a flat mapping of wire field names."""
        unknown = set(data) - set(ITEM_INPUT_FIELDS) - set(REFERENCE_FIELDS)
        if unknown:
            raise ValidationError(
                sorted(unknown)[0], f"Unknown or read-only field: {sorted(unknown)[0]}"
            )
        kwargs = {name: data[name] for name in ITEM_INPUT_FIELDS if name in data}
        if "name" not in kwargs:
            raise ValidationError("name", "name is required")
        if "weight_grams" not in kwargs:
            raise ValidationError("weight_grams", "weight_grams is required")
        return cls(references=ItemReferences.from_mapping(data), **kwargs)


ITEM_INPUT_FIELDS: tuple[str, ...] = tuple(
    f.name for f in fields(ItemInput) if f.name != "references"
)

# Fields that may be cleared to NULL through a patch.
NULLABLE_PATCH_FIELDS: frozenset[str] = frozenset({
    "description",
    "gold_color",
    "purchase_price",
    "currency",
    *REFERENCE_FIELDS,
})

PATCHABLE_FIELDS: frozenset[str] = frozenset(ITEM_INPUT_FIELDS) | frozenset(REFERENCE_FIELDS)

_PATCH_COERCERS = {
    "name": lambda v: _text("name", v, max_length=255, min_length=1),
    "weight_grams": lambda v: _decimal("weight_grams", v, required=True, places=WEIGHT_PLACES),
    "sku": lambda v: _identifier("sku", v),
    "barcode": lambda v: _identifier("barcode", v),
    "description": lambda v: _text("description", v, max_length=10_000),
    "item_type": lambda v: _enum("item_type", ItemType, v),
    "ownership_type": lambda v: _enum("ownership_type", OwnershipType, v),
    "gold_color": lambda v: _enum("gold_color", GoldColor, v),
    "purchase_price": lambda v: _decimal("purchase_price", v, places=MONEY_PLACES),
    "currency": _currency,
    **{name: (lambda v, _n=name: _uuid(_n, v)) for name in REFERENCE_FIELDS},
}


@dataclass(frozen=True)
class ItemPatch:
    """
    Validated partial update of an inventory item.

    Contract:
        Only the keys present in ``changes`` are written.  A key mapped to
        None clears a nullable column.  ``status``, ``version`` and
        ``stone_weight_carats`` are never patchable.

    Guarantees:
        - ``changes`` is a read-only mapping of coerced values.
    """

    changes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        coerced: dict[str, Any] = {}
        for name, value in self.changes.items():
            if name not in PATCHABLE_FIELDS:
                raise ValidationError(name, f"Unknown or read-only field: {name}")
            new_value = _PATCH_COERCERS[name](value)
            if new_value is None and name not in NULLABLE_PATCH_FIELDS:
                raise ValidationError(name, f"{name} cannot be cleared")
            coerced[name] = new_value
        _set(self, "changes", MappingProxyType(coerced))

    @classmethod
    def of(cls, **changes: Any) -> ItemPatch:
        return cls(changes=changes)

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def changed_references(self) -> ItemReferences:
        """References touched by this patch (untouched ones are None)."""
        return ItemReferences(
            **{name: self.changes.get(name) for name in REFERENCE_FIELDS}
        )

    def get(self, name: str, default: Any = None) -> Any:
        return self.changes.get(name, default)

    def __contains__(self, name: object) -> bool:
        return name in self.changes


@dataclass(frozen=True)
class StoneInput:
    """
    Validated payload for attaching a stone to an item.

    Guarantees:
        - weight_carats > 0; stone_count >= 1 (default 1).
        - contribution == weight_carats * stone_count.
    """

    stone_type_id: UUID
    weight_carats: Decimal
    stone_count: int = 1
    clarity: str | None = None
    color: str | None = None
    cut: str | None = None
    position: str | None = None
    estimated_value: Decimal | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        _set(self, "stone_type_id", _uuid("stone_type_id", self.stone_type_id, required=True))
        _set(
            self,
            "weight_carats",
            _decimal(
                "weight_carats",
                self.weight_carats,
                required=True,
                positive=True,
                places=WEIGHT_PLACES,
            ),
        )
        _set(self, "stone_count", _count("stone_count", self.stone_count, 1))
        for name in ("clarity", "color", "cut"):
            _set(self, name, _text(name, getattr(self, name), max_length=20))
        _set(self, "position", _text("position", self.position, max_length=50))
        _set(
            self,
            "estimated_value",
            _decimal("estimated_value", self.estimated_value, places=MONEY_PLACES),
        )
        _set(self, "notes", _text("notes", self.notes, max_length=10_000))

    @property
    def contribution(self) -> Decimal:
        """Carats this stone record adds to the parent's aggregate."""
        return self.weight_carats * self.stone_count

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> StoneInput:
        allowed = {f.name for f in fields(cls)}
        unknown = set(data) - allowed
        if unknown:
            name = sorted(unknown)[0]
            raise ValidationError(name, f"Unknown field: {name}")
        for name in ("stone_type_id", "weight_carats"):
            if name not in data:
                raise ValidationError(name, f"{name} is required")
        return cls(**dict(data))


@dataclass(frozen=True)
class CertificationInput:
    """
    Validated payload for attaching a certificate to an item.

    Guarantees:
        - certificate_number and issuing_authority are 1..100 characters.
        - expiry_date >= issue_date when both are given.
        - verification_url, when given, is an http(s) URL of at most 500 chars.
    """

    item_id: UUID
    certification_type: CertificationType
    certificate_number: str
    issuing_authority: str
    issue_date: date | None = None
    expiry_date: date | None = None
    appraised_value: Decimal | None = None
    currency: str | None = None
    file_upload_id: UUID | None = None
    verification_url: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        _set(self, "item_id", _uuid("item_id", self.item_id, required=True))
        certification_type = _enum(
            "certification_type", CertificationType, self.certification_type
        )
        if certification_type is None:
            raise ValidationError("certification_type", "certification_type is required")
        _set(self, "certification_type", certification_type)
        _set(
            self,
            "certificate_number",
            _text("certificate_number", self.certificate_number, max_length=100, min_length=1),
        )
        _set(
            self,
            "issuing_authority",
            _text("issuing_authority", self.issuing_authority, max_length=100, min_length=1),
        )
        _set(self, "issue_date", _date("issue_date", self.issue_date))
        _set(self, "expiry_date", _date("expiry_date", self.expiry_date))
        if self.issue_date and self.expiry_date and self.expiry_date < self.issue_date:
            raise ValidationError("expiry_date", "expiry_date cannot be before issue_date")
        _set(
            self,
            "appraised_value",
            _decimal("appraised_value", self.appraised_value, places=MONEY_PLACES),
        )
        _set(self, "currency", _currency(self.currency))
        _set(self, "file_upload_id", _uuid("file_upload_id", self.file_upload_id))
        _set(
            self,
            "verification_url",
            _url("verification_url", self.verification_url, max_length=500),
        )
        _set(self, "notes", _text("notes", self.notes, max_length=10_000))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CertificationInput:
        allowed = {f.name for f in fields(cls)}
        unknown = set(data) - allowed
        if unknown:
            name = sorted(unknown)[0]
            raise ValidationError(name, f"Unknown field: {name}")
        for name in ("item_id", "certification_type", "certificate_number", "issuing_authority"):
            if name not in data:
                raise ValidationError(name, f"{name} is required")
        return cls(**dict(data))


# ---------------------------------------------------------------------------
# Read-side snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InventoryItemInfo:
    """Immutable snapshot of a persisted inventory item."""

    id: UUID
    tenant_id: UUID
    name: str
    description: str | None
    sku: str
    barcode: str
    item_type: ItemType
    ownership_type: OwnershipType
    gold_color: GoldColor | None
    status: InventoryStatus
    weight_grams: Decimal
    stone_weight_carats: Decimal
    purchase_price: Decimal | None
    currency: str | None
    category_id: UUID | None
    metal_type_id: UUID | None
    metal_purity_id: UUID | None
    stone_type_id: UUID | None
    size_id: UUID | None
    version: int
    created_at: datetime | None
    created_by_id: UUID
    updated_at: datetime | None
    updated_by_id: UUID | None

    @property
    def is_editable(self) -> bool:
        from jewelry_kernel.domain.status import is_edit_locked

        return not is_edit_locked(self.status)

    @classmethod
    def from_model(cls, item: InventoryItem) -> InventoryItemInfo:
        return cls(
            id=item.id,
            tenant_id=item.tenant_id,
            name=item.name,
            description=item.description,
            sku=item.sku,
            barcode=item.barcode,
            item_type=ItemType(item.item_type),
            ownership_type=OwnershipType(item.ownership_type),
            gold_color=GoldColor(item.gold_color) if item.gold_color else None,
            status=as_status(item.status),
            weight_grams=item.weight_grams,
            stone_weight_carats=item.stone_weight_carats,
            purchase_price=item.purchase_price,
            currency=item.currency,
            category_id=item.category_id,
            metal_type_id=item.metal_type_id,
            metal_purity_id=item.metal_purity_id,
            stone_type_id=item.stone_type_id,
            size_id=item.size_id,
            version=item.version,
            created_at=item.created_at,
            created_by_id=item.created_by_id,
            updated_at=item.updated_at,
            updated_by_id=item.updated_by_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class ItemStoneInfo:
    """Immutable snapshot of a stone attached to an item."""

    id: UUID
    tenant_id: UUID
    item_id: UUID
    stone_type_id: UUID
    weight_carats: Decimal
    stone_count: int
    clarity: str | None
    color: str | None
    cut: str | None
    position: str | None
    estimated_value: Decimal | None
    notes: str | None

    @property
    def contribution(self) -> Decimal:
        return self.weight_carats * self.stone_count

    @classmethod
    def from_model(cls, stone: ItemStone) -> ItemStoneInfo:
        return cls(
            id=stone.id,
            tenant_id=stone.tenant_id,
            item_id=stone.item_id,
            stone_type_id=stone.stone_type_id,
            weight_carats=stone.weight_carats,
            stone_count=stone.stone_count,
            clarity=stone.clarity,
            color=stone.color,
            cut=stone.cut,
            position=stone.position,
            estimated_value=stone.estimated_value,
            notes=stone.notes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class ItemCertificationInfo:
    """Immutable snapshot of a certification attached to an item."""

    id: UUID
    tenant_id: UUID
    item_id: UUID
    certification_type: CertificationType
    certificate_number: str
    issuing_authority: str
    issue_date: date | None
    expiry_date: date | None
    appraised_value: Decimal | None
    currency: str | None
    file_upload_id: UUID | None
    verification_url: str | None
    notes: str | None
    created_by_id: UUID

    @classmethod
    def from_model(cls, cert: ItemCertification) -> ItemCertificationInfo:
        return cls(
            id=cert.id,
            tenant_id=cert.tenant_id,
            item_id=cert.item_id,
            certification_type=CertificationType(cert.certification_type),
            certificate_number=cert.certificate_number,
            issuing_authority=cert.issuing_authority,
            issue_date=cert.issue_date,
            expiry_date=cert.expiry_date,
            appraised_value=cert.appraised_value,
            currency=cert.currency,
            file_upload_id=cert.file_upload_id,
            verification_url=cert.verification_url,
            notes=cert.notes,
            created_by_id=cert.created_by_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}
