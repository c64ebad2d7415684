"""
jewelry_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration -- YAML-driven settings.  This package sits beside
    ``jewelry_kernel`` and below ``jewelry_services``.  The kernel never
    imports from ``jewelry_config``; the services layer passes the values
    it needs into kernel constructors.

Failure modes:
    - ``FileNotFoundError`` -- the override file does not exist.
    - ``ValueError`` -- unknown key or invalid value.

Audit relevance:
    Every successful ``get_active_config()`` call emits a ``config_loaded``
    log entry with the source files and the settings checksum.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from jewelry_config.loader import load_yaml_file, merge_documents, parse_engine_config
from jewelry_config.schema import EngineConfig

_logger = logging.getLogger("jewelry_kernel.config")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"
CONFIG_ENV_VAR = "JEWELRY_CONFIG"


def get_active_config(path: str | Path | None = None) -> EngineConfig:
    """The ONLY public configuration entrypoint.

    Loads ``defaults.yaml`` and overlays, in order of precedence, the file
    at ``path`` or else the file named by ``$JEWELRY_CONFIG``.

    Returns:
        A frozen, validated ``EngineConfig`` carrying its checksum.

    Raises:
        FileNotFoundError: If the override file does not exist.
        ValueError: If validation fails.
    """
    sources = [DEFAULTS_PATH]
    override = path if path is not None else os.environ.get(CONFIG_ENV_VAR)
    if override:
        sources.append(Path(override))

    config = parse_engine_config(
        merge_documents(*(load_yaml_file(source) for source in sources))
    )

    _logger.info(
        "config_loaded",
        extra={
            "sources": [str(source) for source in sources],
            "config_checksum": config.checksum,
            "identifier_max_attempts": config.identifier_max_attempts,
            "max_bulk_items": config.max_bulk_items,
        },
    )
    return config


__all__ = ["EngineConfig", "get_active_config", "DEFAULTS_PATH", "CONFIG_ENV_VAR"]
