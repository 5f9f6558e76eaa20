"""
Calculation settings (``invoicing_config``).

Single public entry point for runtime settings::

    from invoicing_config import get_active_settings

    settings = get_active_settings()
    aggregator = TotalsAggregator(settings=settings)

Resolution order: an explicit ``path`` argument, then the
``INVOICING_SETTINGS_PATH`` environment variable, then the packaged
``defaults.yaml``.
"""

from __future__ import annotations

import os
from pathlib import Path

from invoicing_config.loader import (
    compute_checksum,
    load_settings,
    load_yaml_file,
    parse_settings,
)
from invoicing_config.schema import CalculationSettings

SETTINGS_PATH_ENV = "INVOICING_SETTINGS_PATH"
DEFAULTS_PATH = Path(__file__).with_name("defaults.yaml")


def get_active_settings(path: str | Path | None = None) -> CalculationSettings:
    """Resolve and load the active calculation settings."""
    if path is None:
        path = os.environ.get(SETTINGS_PATH_ENV) or DEFAULTS_PATH
    return load_settings(path)


__all__ = [
    "CalculationSettings",
    "DEFAULTS_PATH",
    "SETTINGS_PATH_ENV",
    "compute_checksum",
    "get_active_settings",
    "load_settings",
    "load_yaml_file",
    "parse_settings",
]
