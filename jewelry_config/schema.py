"""
EngineConfig schema.

Defines the typed, frozen runtime configuration of the inventory engine.
YAML documents are parsed into this type by the loader; nothing else in
the code base reads configuration files or environment variables.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EngineConfig:
    """
    Runtime settings of the inventory engine.

    Guarantees:
        - Every numeric bound is positive.
        - ``default_currency`` is a 3-letter upper-case code.
        - ``log_level`` is a standard ``logging`` level name.
    """

    database_url: str
    echo_sql: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    identifier_max_attempts: int = 5
    default_currency: str = "USD"
    log_level: str = "INFO"
    max_reason_length: int = 500
    max_bulk_items: int = 500
    checksum: str = ""

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ValueError("database_url is required")
        for name in (
            "pool_size",
            "identifier_max_attempts",
            "max_reason_length",
            "max_bulk_items",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if not isinstance(self.max_overflow, int) or self.max_overflow < 0:
            raise ValueError(
                f"max_overflow must be a non-negative integer, got {self.max_overflow!r}"
            )
        currency = self.default_currency
        if not isinstance(currency, str) or len(currency) != 3 or not currency.isalpha():
            raise ValueError(f"default_currency must be a 3-letter code, got {currency!r}")
        object.__setattr__(self, "default_currency", currency.upper())
        level = str(self.log_level).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")
        object.__setattr__(self, "log_level", level)

    def as_dict(self) -> dict[str, Any]:
        """Settings without the derived checksum."""
        data = asdict(self)
        data.pop("checksum")
        return data
