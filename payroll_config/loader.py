"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a frozen
``EngineConfig``.  Runtime callers go through
``payroll_config.get_active_config()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  mapping for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id`` / ``version`` / ``rates``  -> ``KeyError``.
* Non-numeric rate, non-positive worker count, unknown log level, or a
  money precision other than the kernel's fixed 2 places  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

import yaml

from payroll_kernel.db.types import MONEY_DECIMAL_PLACES
from payroll_kernel.domain.dtos import RateConfiguration
from payroll_config.schema import EngineConfig


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_rates(data: dict[str, Any]) -> RateConfiguration:
    """Parse the ``rates`` section; YAML floats are read through ``str``."""
    try:
        return RateConfiguration.from_dict(data)
    except TypeError as exc:
        raise ValueError(f"Invalid rates section: {exc}") from exc


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return value


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    """Parse an EngineConfig from a loaded mapping."""
    rates = parse_rates(data["rates"] or {})

    batch = data.get("batch") or {}
    database = data.get("database") or {}
    logging_section = data.get("logging") or {}

    log_level = str(logging_section.get("level", "INFO")).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Unknown log level {log_level!r}")

    money_places = data.get("money_decimal_places", MONEY_DECIMAL_PLACES)
    if type(money_places) is not int or money_places != MONEY_DECIMAL_PLACES:
        raise ValueError(
            f"money_decimal_places must be {MONEY_DECIMAL_PLACES}, got {money_places!r}"
        )

    return EngineConfig(
        config_id=str(data["config_id"]),
        version=int(data["version"]),
        rates=rates,
        money_decimal_places=money_places,
        batch_max_workers=_positive_int(batch.get("max_workers", 1), "batch.max_workers"),
        database_url=str(database.get("url", "sqlite:///payroll.db")),
        log_level=log_level,
        checksum=compute_checksum(data),
    )


def load_config(path: Path | str) -> EngineConfig:
    """Load and parse one configuration file."""
    return parse_engine_config(load_yaml_file(Path(path)))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
