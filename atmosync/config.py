"""Configuration loading for atmosync.

Config example (atmosync.yaml):
    base_url: "http://localhost:8080"
    identity_db: "data/atmosync.db"
    poll_interval: 60
    slots:
      - slot: "outdoor"
        id: "02:00:00:a9:a2:14"
        metrics: ["temperature", "humidity"]
      - slot: "main_station"
        type: "NAMain"
        metrics: ["temperature", "humidity", "co2", "noise"]
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import logging
from pathlib import Path
from typing import Any

import yaml

from .const import (
    DEFAULT_BASE_URL,
    DEFAULT_IDENTITY_DB,
    DEFAULT_SLOT_RULES,
    EXPECTED_MODULE_FLOOR,
    MAX_LOG_MESSAGES,
    MEASURE_SCALE,
    MESSAGES_INTERVAL,
    POLL_INTERVAL,
    REFRESH_INTERVAL,
    SHUTDOWN_TIMEOUT,
    SLOW_CYCLE_SECONDS,
)
from .exceptions import AtmoConfigError
from .models import SlotRule

_LOGGER = logging.getLogger(__name__)


def parse_slot_rules(raw_rules: Any) -> list[SlotRule]:
    """Build the classification table from a list of mappings."""
    if not isinstance(raw_rules, list):
        raise AtmoConfigError("slots must be a list")

    rules = []
    for index, raw in enumerate(raw_rules):
        if not isinstance(raw, dict):
            raise AtmoConfigError(f"slots[{index}] must be a mapping")
        slot = raw.get("slot")
        metrics = raw.get("metrics")
        module_type = raw.get("type")
        module_id = raw.get("id")
        if not slot:
            raise AtmoConfigError(f"slots[{index}] has no slot name")
        for key in ("slot", "type", "id"):
            if raw.get(key) is not None and not isinstance(raw[key], str):
                # YAML reads an unquoted 12:34:56:10:20:30 as a base 60 integer
                raise AtmoConfigError(
                    f"slots[{index}].{key} must be a string (quote MAC addresses)"
                )
        if module_type is None and module_id is None:
            raise AtmoConfigError(f"slots[{index}] needs a type or an id")
        if (
            not isinstance(metrics, list)
            or not metrics
            or not all(isinstance(metric, str) for metric in metrics)
        ):
            raise AtmoConfigError(f"slots[{index}] needs a list of metric names")
        rules.append(
            SlotRule(
                slot=slot,
                metrics=tuple(metrics),
                module_type=module_type,
                module_id=module_id,
            )
        )
    return rules


@dataclass
class AtmoConfig:
    """Runtime settings."""

    base_url: str = DEFAULT_BASE_URL
    identity_db: str | None = DEFAULT_IDENTITY_DB
    poll_interval: float = POLL_INTERVAL
    refresh_interval: float = REFRESH_INTERVAL
    messages_interval: float | None = MESSAGES_INTERVAL
    shutdown_timeout: float = SHUTDOWN_TIMEOUT
    expected_module_floor: int = EXPECTED_MODULE_FLOOR
    slow_cycle_seconds: float = SLOW_CYCLE_SECONDS
    max_messages: int = MAX_LOG_MESSAGES
    measure_scale: str = MEASURE_SCALE
    slot_rules: list[SlotRule] = field(
        default_factory=lambda: parse_slot_rules(DEFAULT_SLOT_RULES)
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AtmoConfig:
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)} - {"slot_rules"}
        kwargs = {key: value for key, value in data.items() if key in known}
        unknown = set(data) - known - {"slots"}
        if unknown:
            _LOGGER.warning("Ignoring unknown config keys: %s", sorted(unknown))
        if "slots" in data:
            kwargs["slot_rules"] = parse_slot_rules(data["slots"])
        return cls(**kwargs)


def load_config(path: str | Path | None) -> AtmoConfig:
    """Load the YAML config at ``path``; a missing file yields defaults."""
    if path is None:
        return AtmoConfig()
    config_path = Path(path)
    if not config_path.exists():
        _LOGGER.info("Config %s not found, using defaults", config_path)
        return AtmoConfig()

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise AtmoConfigError(f"Invalid YAML in {config_path}: {err}") from err

    if data is None:
        return AtmoConfig()
    if not isinstance(data, dict):
        raise AtmoConfigError(f"{config_path} must contain a mapping")
    return AtmoConfig.from_dict(data)
