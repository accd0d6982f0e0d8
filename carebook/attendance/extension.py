"""
Extension-time classification.

Extension time is usage beyond the statutory base allotment of the day's
usage category (3h after school, 5h on non-school days). Overages under
30 minutes are not billable and are not recorded.

Tiers:
- 1: 30–59 minutes over base
- 2: 60–119 minutes over base
- 3: 120 minutes or more
"""

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from carebook.attendance.models import EXTENSION_TIER_LABELS, UsageStatus
from carebook.attendance.rules import DEFAULT_RULES, ServiceRules

_TENTH = Decimal("0.1")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
# Display suffix written by annotate_notes, e.g. "1 hour 15 minutes (2)"
_NOTE_SUFFIX_RE = re.compile(
    r"\s*(?:/\s*)?(?:\d+ hours?(?: \d+ minutes?)?|\d+ minutes?) \([123]\)\s*$"
)


@dataclass(frozen=True)
class ExtensionInfo:
    """A billable extension: minutes over base, tier and a display label."""

    minutes_over_base: int
    tier: int
    display_label: str

    @property
    def hours_text(self) -> str:
        """Overage in hours, one decimal, half up, as stored on the support record."""
        hours = Decimal(self.minutes_over_base) / 60
        return str(hours.quantize(_TENTH, rounding=ROUND_HALF_UP))

    @property
    def addon_label(self) -> str:
        return EXTENSION_TIER_LABELS[self.tier]


def parse_clock(value: str | None) -> int | None:
    """Parse "HH:MM" (24h) into minutes after midnight. None if unusable."""
    if not value:
        return None
    m = _CLOCK_RE.match(value.strip())
    if not m:
        return None
    hh, mm = int(m.group(1)), int(m.group(2))
    if hh > 23 or mm > 59:
        return None
    return hh * 60 + mm


def format_overage(minutes: int) -> str:
    """Render minutes as "H hours M minutes", omitting a zero unit."""
    hours, mins = divmod(int(minutes), 60)
    parts = []
    if hours:
        parts.append(f"{hours} hour" if hours == 1 else f"{hours} hours")
    if mins or not hours:
        parts.append(f"{mins} minute" if mins == 1 else f"{mins} minutes")
    return " ".join(parts)


def tier_for_overage(minutes: float, rules: ServiceRules = DEFAULT_RULES) -> int | None:
    """Tier for an overage in minutes, or None when under the billable minimum or not finite."""
    if not math.isfinite(minutes) or minutes < rules.min_billable_extension_minutes:
        return None
    if minutes >= rules.tier_3_minutes:
        return 3
    if minutes >= rules.tier_2_minutes:
        return 2
    return 1


def extension_from_minutes(minutes: float, rules: ServiceRules = DEFAULT_RULES) -> ExtensionInfo | None:
    """Build ExtensionInfo for a known overage (e.g. a staff-entered override)."""
    tier = tier_for_overage(minutes, rules)
    if tier is None:
        return None
    over = math.floor(minutes + 0.5)
    return ExtensionInfo(
        minutes_over_base=over,
        tier=tier,
        display_label=f"{format_overage(over)} ({tier})",
    )


def compute_extension(
    status: UsageStatus,
    arrival_time: str | None,
    departure_time: str | None,
    rules: ServiceRules = DEFAULT_RULES,
) -> ExtensionInfo | None:
    """Extension for a day from its clock times, or None if none qualifies."""
    if status is UsageStatus.ABSENCE:
        return None

    start = parse_clock(arrival_time)
    end = parse_clock(departure_time)
    if start is None or end is None:
        return None

    used = end - start
    if used <= 0:
        return None

    base = rules.base_minutes[status]
    return extension_from_minutes(used - base, rules)


def strip_extension_note(notes: str | None) -> str:
    """Remove a trailing extension label ("… (1|2|3)") from free-text notes."""
    text = (notes or "").strip()
    if not text:
        return ""
    return _NOTE_SUFFIX_RE.sub("", text).strip()


def annotate_notes(notes: str | None, info: ExtensionInfo | None) -> str:
    """Replace any previous extension label on notes with the current one."""
    base = strip_extension_note(notes)
    if info is None:
        return base
    return f"{base} / {info.display_label}" if base else info.display_label
