"""appstandard_lite.config_loader

Lightweight config loader for appstandard_lite.

- Reads YAML (PyYAML) by default, JSON for ``*.json`` files.
- Exposes a typed dataclass `Config` and a `load_config()` helper that accepts
  an optional path override.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .lite_exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_VALID_WHEN = ("before", "after")
_VALID_UNITS = ("seconds", "minutes", "hours", "days")


@dataclass
class Config:
    """Typed configuration for appstandard_lite.

    Fields:
        default_alarm_when: position of the fallback alarm ("before"/"after")
        default_alarm_value: magnitude of the fallback alarm
        default_alarm_unit: unit of the fallback alarm
        qr_max_bytes: largest vCard payload (UTF-8 bytes) rendered as a QR code
        dedup_date_tolerance_seconds: start/end/due tolerance for duplicate detection
        dedup_use_location: also compare event locations when deduplicating
        dedup_use_phone: also match contacts sharing a phone number
        merge_min_sources: minimum number of collections per merge
        merge_max_sources: maximum number of collections per merge
        calendar_prodid: PRODID written into generated ICS documents
        vcard_prodid: PRODID written into generated vCards
        calendar_name: default X-WR-CALNAME for generated ICS documents
        rrule_expansion_days: days ahead to expand RRULEs when no window is given
        max_occurrences_per_rule: cap on instances generated per recurring event
        log_level: logging level name
    """

    default_alarm_when: str = "before"
    default_alarm_value: int = 15
    default_alarm_unit: str = "minutes"
    qr_max_bytes: int = 2500
    dedup_date_tolerance_seconds: int = 60
    dedup_use_location: bool = False
    dedup_use_phone: bool = False
    merge_min_sources: int = 2
    merge_max_sources: int = 10
    calendar_prodid: str = "-//AppStandard Calendar//EN"
    vcard_prodid: str = "-//AppStandard Contacts//EN"
    calendar_name: str = "AppStandard Calendar"
    rrule_expansion_days: int = 365
    max_occurrences_per_rule: int = 250
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        This method is conservative about types: it coerces numeric-like values to int,
        enforces positive bounds and falls back to defaults for unknown alarm
        positions or units, logging warnings when coercions occur.
        """
        if data is None:
            data = {}
        defaults = cls()

        def _coerce_int(key: str, default: int, minimum: int = 0) -> int:
            raw = data.get(key, default)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default
            if value < minimum:
                logger.warning("Config %s=%d below minimum; coercing to %d", key, value, minimum)
                return minimum
            return value

        def _coerce_bool(key: str, default: bool) -> bool:
            raw = data.get(key, default)
            if isinstance(raw, bool):
                return raw
            if isinstance(raw, str):
                return raw.strip().lower() in ("1", "true", "yes", "on")
            return bool(raw)

        def _coerce_choice(key: str, default: str, choices: tuple[str, ...]) -> str:
            raw = str(data.get(key, default)).strip().lower()
            if raw not in choices:
                logger.warning("Config %s=%r not one of %s; using default %s", key, raw, choices, default)
                return default
            return raw

        def _coerce_str(key: str, default: str) -> str:
            raw = data.get(key, default)
            return str(raw) if raw is not None else default

        min_sources = _coerce_int("merge_min_sources", defaults.merge_min_sources, minimum=1)
        max_sources = _coerce_int("merge_max_sources", defaults.merge_max_sources, minimum=1)
        if max_sources < min_sources:
            logger.warning(
                "merge_max_sources %d below merge_min_sources %d; raising to match",
                max_sources,
                min_sources,
            )
            max_sources = min_sources

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            default_alarm_when=_coerce_choice("default_alarm_when", defaults.default_alarm_when, _VALID_WHEN),
            default_alarm_value=_coerce_int("default_alarm_value", defaults.default_alarm_value),
            default_alarm_unit=_coerce_choice("default_alarm_unit", defaults.default_alarm_unit, _VALID_UNITS),
            qr_max_bytes=_coerce_int("qr_max_bytes", defaults.qr_max_bytes, minimum=1),
            dedup_date_tolerance_seconds=_coerce_int(
                "dedup_date_tolerance_seconds", defaults.dedup_date_tolerance_seconds
            ),
            dedup_use_location=_coerce_bool("dedup_use_location", defaults.dedup_use_location),
            dedup_use_phone=_coerce_bool("dedup_use_phone", defaults.dedup_use_phone),
            merge_min_sources=min_sources,
            merge_max_sources=max_sources,
            calendar_prodid=_coerce_str("calendar_prodid", defaults.calendar_prodid),
            vcard_prodid=_coerce_str("vcard_prodid", defaults.vcard_prodid),
            calendar_name=_coerce_str("calendar_name", defaults.calendar_name),
            rrule_expansion_days=_coerce_int("rrule_expansion_days", defaults.rrule_expansion_days, minimum=1),
            max_occurrences_per_rule=_coerce_int(
                "max_occurrences_per_rule", defaults.max_occurrences_per_rule, minimum=1
            ),
            log_level=log_level,
        )


def _load_yaml_or_json(path: Path) -> Any:
    """Load the raw content of a YAML or JSON file.

    JSON is used for ``.json`` files; everything else goes through
    ``yaml.safe_load``. An empty file yields an empty mapping.
    """
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            loaded = json.loads(text) if text.strip() else {}
        else:
            loaded = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to parse config file {path}: {exc}") from exc

    # safe_load can return None for empty files; normalize to empty dict
    if loaded is None:
        return {}
    return loaded


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from a YAML/JSON file and return a Config instance.

    Args:
        path: Optional path to the config file. If not provided the default is
              ./appstandard_lite/config.yaml (relative to current working dir).

    Returns:
        Config dataclass instance with values from file (or defaults).

    Raises:
        ConfigurationError: If the file cannot be decoded, or its top level
            is not a mapping (ConfigurationError is also a ValueError).
    """
    p = Path(path) if path else Path.cwd() / "appstandard_lite" / "config.yaml"
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        cfg = Config()
        logger.debug("Default Config in use: %s", cfg)
        return cfg

    raw = _load_yaml_or_json(p)
    if not isinstance(raw, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
        raise ConfigurationError("Config file must contain a mapping at top level")
    cfg = Config.from_dict(raw)
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg
