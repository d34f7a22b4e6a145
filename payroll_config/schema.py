"""
Configuration schema (``payroll_config.schema``).

Frozen dataclasses produced by ``payroll_config.loader``.  No I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from payroll_kernel.domain.dtos import RateConfiguration


@dataclass(frozen=True)
class EngineConfig:
    """Runtime settings for one deployment of the payroll engine."""

    config_id: str
    version: int
    rates: RateConfiguration = field(default_factory=RateConfiguration)
    # Pinned to the kernel's money precision; the loader rejects other values
    money_decimal_places: int = 2
    batch_max_workers: int = 1
    database_url: str = "sqlite:///payroll.db"
    log_level: str = "INFO"
    checksum: str = ""
