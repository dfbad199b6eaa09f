"""Configuration loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from .models import DealInput, RentSettings, UnderwritingAssumptions

CONFIG_ENV_VAR = "DEAL_DESK_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config.yaml"
DEAL_RECORD_KEYS = ("id", "status")


def _resolve_path(config_path: Path | str | None) -> Path:
    if config_path:
        return Path(config_path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """Load config from YAML file.

    Falls back to ``$DEAL_DESK_CONFIG``, then the repository ``config.yaml``.
    """
    path = _resolve_path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a mapping: {path}")
    logger.info("Loaded config from {}", path)
    return data


def load_deal_entries(path: Path | str) -> list[dict[str, Any]]:
    """Read raw deal mappings from a YAML or JSON file.

    Accepts a single deal mapping, a list of them, or ``{"deals": [...]}``.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Deal file not found: {path}")
    with open(path) as f:
        data = yaml.safe_load(f)
    if isinstance(data, dict) and "deals" in data:
        data = data["deals"]
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError(f"Deal file must hold a mapping or a list of mappings: {path}")
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError(f"Each deal must be a mapping, got {type(entry).__name__}: {path}")
    return data


def deal_input_fields(entry: dict[str, Any]) -> dict[str, Any]:
    """Drop record-level keys (``id``, ``status``) from a deal mapping."""
    return {k: v for k, v in entry.items() if k not in DEAL_RECORD_KEYS}


def load_deals(path: Path | str) -> list[DealInput]:
    """Load deal inputs from a YAML or JSON file (see ``load_deal_entries``)."""
    deals = [DealInput.from_dict(deal_input_fields(e)) for e in load_deal_entries(path)]
    logger.info("Loaded {} deals from {}", len(deals), path)
    return deals


def _number(section: dict[str, Any], key: str, default: float, convert=float):
    raw = section.get(key, default)
    try:
        return convert(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Config value {key}={raw!r} is not a number") from exc


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section {name!r} must be a mapping")
    return section


def _rate(section: dict[str, Any], key: str, default: float, upper: float | None = None) -> float:
    """Read a non-negative float, optionally strictly below *upper*."""
    value = _number(section, key, default)
    if value < 0 or (upper is not None and value >= upper):
        bound = f"[0, {upper})" if upper is not None else ">= 0"
        raise ValueError(f"Config value {key}={value} out of range {bound}")
    return value


def get_underwriting_assumptions(config: dict[str, Any]) -> UnderwritingAssumptions:
    """Extract underwriting default rates from config."""
    uw = _section(config, "underwriting")
    defaults = UnderwritingAssumptions()
    return UnderwritingAssumptions(
        property_tax_rate=_rate(uw, "property_tax_rate", defaults.property_tax_rate),
        insurance_rate=_rate(uw, "insurance_rate", defaults.insurance_rate),
        maintenance_rate=_rate(uw, "maintenance_rate", defaults.maintenance_rate),
        management_rate=_rate(uw, "management_rate", defaults.management_rate),
        vacancy_rate=_rate(uw, "vacancy_rate", defaults.vacancy_rate, upper=1.0),
    )


def get_rent_settings(config: dict[str, Any]) -> RentSettings:
    """Extract comparable-generation settings from config."""
    rent = _section(config, "rent_estimation")
    defaults = RentSettings()
    count = _number(rent, "comparable_count", defaults.comparable_count, int)
    if count < 0:
        raise ValueError(f"Config value comparable_count={count} out of range >= 0")
    return RentSettings(
        comparable_count=count,
        comparable_variance=_rate(
            rent, "comparable_variance", defaults.comparable_variance, upper=1.0
        ),
    )
