"""
Settings loader (``invoicing_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a ``CalculationSettings``
instance. Unknown keys are rejected rather than ignored, so a typo in a
settings file fails loudly instead of silently falling back to a default.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key or invalid value  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from invoicing_config.schema import CalculationSettings
from invoicing_kernel.exceptions import ConfigurationError
from invoicing_kernel.logging_config import get_logger

logger = get_logger("config.loader")

_KNOWN_KEYS = frozenset(f.name for f in fields(CalculationSettings))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "settings file must contain a mapping")
    return data


def parse_settings(data: dict[str, Any]) -> CalculationSettings:
    """
    Parse ``CalculationSettings`` from a dict.

    Accepts either a flat mapping or one nested under a ``calculation`` key.
    Missing keys take their defaults.
    """
    if "calculation" in data and isinstance(data["calculation"], dict):
        data = data["calculation"]
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(", ".join(unknown), "unknown setting")
    return CalculationSettings(**data)


def load_settings(path: str | Path) -> CalculationSettings:
    """Load and parse a settings file."""
    path = Path(path)
    settings = parse_settings(load_yaml_file(path))
    logger.info("settings_loaded", extra={
        "path": str(path),
        "checksum": compute_checksum(settings),
        "default_currency": settings.default_currency,
        "rounding_mode": settings.rounding_mode,
    })
    return settings


def compute_checksum(settings: CalculationSettings) -> str:
    """Deterministic SHA-256 of the canonical settings dict."""
    canonical = json.dumps(settings.to_dict(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
