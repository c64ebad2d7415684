"""
Jewelry Kernel

Inventory item lifecycle and concurrency control core for a multi-tenant
jewelry business:
- Table-driven status state machine
- Optimistic concurrency via a version counter and conditional writes
- Collision-checked SKU and barcode generation per tenant
- Stone weight aggregate kept consistent with attached stones
"""

__version__ = "0.1.0"
