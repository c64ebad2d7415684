"""
Identifier formats (``jewelry_kernel.domain.identifiers``).

Responsibility
--------------
Pure formatting of human-readable SKUs and scannable barcodes.  These
functions are deterministic given their inputs; time and randomness are
supplied by the caller (``Clock`` and ``random.Random``), so formats can
be asserted exactly in tests.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  Uniqueness is NOT guaranteed here;
``services.identifier_service`` wraps these formats in a
generate-then-verify loop against the live items of a tenant.

Formats
-------
SKU:      ``{SHOP}-{CAT}-{last 6 digits of epoch ms}-{4 x [A-Z0-9]}``
Barcode:  ``{first 6 hex of tenant id, upper}-{epoch ms}-{sequence:04d}``
"""

from __future__ import annotations

import random
import re
import string
from uuid import UUID

DEFAULT_SHOP_CODE = "SHP"
DEFAULT_CATEGORY_CODE = "ITM"

CODE_LENGTH = 3
SUFFIX_LENGTH = 4
SUFFIX_ALPHABET = string.ascii_uppercase + string.digits

# Shape accepted for client-supplied SKUs and barcodes.
IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z0-9\-_]*$")
IDENTIFIER_MAX_LENGTH = 100

SKU_PATTERN = re.compile(r"^[A-Z]{3}-[A-Z]{3}-\d{6}-[A-Z0-9]{4}$")
BARCODE_PATTERN = re.compile(r"^[0-9A-F]{6}-\d+-\d{4,}$")


def code_prefix(text: str | None, default: str) -> str:
    """Three-letter upper-case code derived from ``text``.

    Non-letters become ``X``.  A name shorter than three characters is
    right-padded with ``X`` so that every code has the same width and the
    SKU stays matchable by ``SKU_PATTERN``.  Empty or missing text yields
    ``default``.

    >>> code_prefix("Rings", "ITM")
    'RIN'
    >>> code_prefix("Al", "SHP")
    'ALX'
    >>> code_prefix("24k", "ITM")
    'XXK'
    """
    if not text or not text.strip():
        return default
    head = text.strip().upper()[:CODE_LENGTH]
    code = "".join(ch if "A" <= ch <= "Z" else "X" for ch in head)
    return code.ljust(CODE_LENGTH, "X")


def random_suffix(rng: random.Random) -> str:
    """Four characters drawn uniformly from ``[A-Z0-9]``."""
    return "".join(rng.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))


def format_sku(
    shop_code: str | None,
    category_prefix: str | None,
    timestamp_ms: int,
    random4: str,
) -> str:
    """Assemble a SKU from already-derived parts."""
    shop = shop_code or DEFAULT_SHOP_CODE
    category = category_prefix or DEFAULT_CATEGORY_CODE
    tail = str(timestamp_ms)[-6:].rjust(6, "0")
    return f"{shop}-{category}-{tail}-{random4}"


def tenant_prefix(tenant_id: UUID | str) -> str:
    return str(tenant_id).replace("-", "")[:6].upper()


def format_barcode(tenant_id: UUID | str, timestamp_ms: int, sequence: int) -> str:
    """Assemble a barcode; ``sequence`` is zero-padded to at least 4 digits."""
    if sequence < 0:
        raise ValueError(f"Barcode sequence must be non-negative: {sequence}")
    return f"{tenant_prefix(tenant_id)}-{timestamp_ms}-{sequence:04d}"


def is_valid_identifier(value: str) -> bool:
    """Client-supplied SKU/barcode shape: letters, digits, ``-`` and ``_``."""
    return len(value) <= IDENTIFIER_MAX_LENGTH and bool(IDENTIFIER_PATTERN.fullmatch(value))
