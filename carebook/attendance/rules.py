"""
Statutory service rules.

Loads config/service_rules.yaml. Falls back to built-in defaults if the file
is missing or malformed, so a broken deployment config never blocks record
creation.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import yaml

from carebook import config, paths
from carebook.attendance.models import UsageStatus

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

_DEFAULT_BASE_MINUTES = {
    UsageStatus.AFTER_SCHOOL: 3 * 60,
    UsageStatus.NON_SCHOOL_DAY: 5 * 60,
}
_DEFAULT_FALLBACK_DURATION = {
    UsageStatus.AFTER_SCHOOL: "2.0",
    UsageStatus.NON_SCHOOL_DAY: "3.5",
}
_DEFAULT_CLASS_1_MAX_HOURS = 1.5
_DEFAULT_CLASS_2_MAX_HOURS = 3.0
_DEFAULT_MIN_BILLABLE_MINUTES = 30
_DEFAULT_TIER_2_MINUTES = 60
_DEFAULT_TIER_3_MINUTES = 120


@dataclass(frozen=True)
class ServiceRules:
    """Numeric thresholds used by the classifiers and the deriver."""

    base_minutes: dict[UsageStatus, int] = field(
        default_factory=lambda: dict(_DEFAULT_BASE_MINUTES)
    )
    fallback_duration_hours: dict[UsageStatus, str] = field(
        default_factory=lambda: dict(_DEFAULT_FALLBACK_DURATION)
    )
    class_1_max_hours: float = _DEFAULT_CLASS_1_MAX_HOURS
    class_2_max_hours: float = _DEFAULT_CLASS_2_MAX_HOURS
    min_billable_extension_minutes: int = _DEFAULT_MIN_BILLABLE_MINUTES
    tier_2_minutes: int = _DEFAULT_TIER_2_MINUTES
    tier_3_minutes: int = _DEFAULT_TIER_3_MINUTES


DEFAULT_RULES = ServiceRules()


def _status_map(raw: dict | None, cast, defaults: dict) -> dict:
    merged = dict(defaults)
    for key, value in (raw or {}).items():
        merged[UsageStatus(key)] = cast(value)
    merged.pop(UsageStatus.ABSENCE, None)
    return merged


def rules_from_dict(data: dict) -> ServiceRules:
    """Build ServiceRules from a parsed YAML mapping. Missing keys keep defaults."""
    classes = data.get("duration_classes") or {}
    extension = data.get("extension") or {}
    return ServiceRules(
        base_minutes=_status_map(data.get("base_minutes"), int, _DEFAULT_BASE_MINUTES),
        fallback_duration_hours=_status_map(
            data.get("fallback_duration_hours"), str, _DEFAULT_FALLBACK_DURATION
        ),
        class_1_max_hours=float(classes.get("class_1_max_hours", _DEFAULT_CLASS_1_MAX_HOURS)),
        class_2_max_hours=float(classes.get("class_2_max_hours", _DEFAULT_CLASS_2_MAX_HOURS)),
        min_billable_extension_minutes=int(
            extension.get("min_billable_minutes", _DEFAULT_MIN_BILLABLE_MINUTES)
        ),
        tier_2_minutes=int(extension.get("tier_2_minutes", _DEFAULT_TIER_2_MINUTES)),
        tier_3_minutes=int(extension.get("tier_3_minutes", _DEFAULT_TIER_3_MINUTES)),
    )


def load_rules(config_path: Path | None = None) -> ServiceRules:
    """Load rules from YAML, returning defaults on any failure."""
    if config_path is None:
        config_path = Path(config.RULES_PATH) if config.RULES_PATH else paths.config_dir() / "service_rules.yaml"

    if not config_path.exists():
        logger.warning("Service rules not found at %s, using defaults", config_path)
        return DEFAULT_RULES
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return rules_from_dict(data)
    except (yaml.YAMLError, OSError, ValueError, TypeError, AttributeError) as exc:
        logger.error("Failed to load service rules from %s: %s", config_path, exc)
        return DEFAULT_RULES


@lru_cache(maxsize=1)
def get_rules() -> ServiceRules:
    """Process-wide rules, loaded once."""
    return load_rules()
