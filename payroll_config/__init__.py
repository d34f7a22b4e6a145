"""
payroll_config -- single public entrypoint for engine configuration.

Responsibility:
    ``get_active_config()`` resolves and loads the configuration file and
    returns a frozen ``EngineConfig``.

Resolution order:
    1. ``path`` argument
    2. ``PAYROLL_CONFIG`` environment variable
    3. the packaged ``defaults.yaml``

    ``PAYROLL_DATABASE_URL``, when set, overrides ``database_url``.

Architecture position:
    Configuration sits above ``payroll_kernel``.  The kernel MUST NEVER
    import from ``payroll_config``.

Audit relevance:
    Every call emits a ``PAYROLL_CONFIG_TRACE`` log entry with the config
    id, version and checksum, tying calculations to the configuration
    that governed them.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

from payroll_kernel.logging_config import get_logger
from payroll_config.loader import compute_checksum, load_config
from payroll_config.schema import EngineConfig

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

CONFIG_ENV_VAR = "PAYROLL_CONFIG"
DATABASE_URL_ENV_VAR = "PAYROLL_DATABASE_URL"


def get_active_config(path: Path | str | None = None) -> EngineConfig:
    """
    Load the active configuration.

    Raises:
        FileNotFoundError: The resolved file does not exist.
        KeyError / ValueError: The file fails validation.
    """
    resolved = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    config = load_config(resolved)

    database_url = os.environ.get(DATABASE_URL_ENV_VAR)
    if database_url:
        config = replace(config, database_url=database_url)

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(resolved),
            "database_url_overridden": bool(database_url),
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EngineConfig",
    "compute_checksum",
    "get_active_config",
    "load_config",
]
