"""Persistence models for the jewelry kernel."""

from jewelry_kernel.models.catalog import (
    CatalogEntry,
    FileUpload,
    MetalPurity,
    MetalType,
    ProductCategory,
    ProductSize,
    StoneType,
)
from jewelry_kernel.models.inventory_item import InventoryItem
from jewelry_kernel.models.item_certification import ItemCertification
from jewelry_kernel.models.item_stone import ItemStone
from jewelry_kernel.models.tenant import Tenant

__all__ = [
    "Tenant",
    "CatalogEntry",
    "ProductCategory",
    "MetalType",
    "MetalPurity",
    "StoneType",
    "ProductSize",
    "FileUpload",
    "InventoryItem",
    "ItemStone",
    "ItemCertification",
]
