"""
Service-duration classification.

Maps the planned statutory duration of a day (hours) onto one of the three
government time classes used for subsidy billing.
"""

import math

from carebook.attendance.models import TimeClass
from carebook.attendance.rules import DEFAULT_RULES, ServiceRules


def parse_hours(value) -> float | None:
    """Parse an hours value ("2.0", 3.5, " 1 ") into a float. None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        hours = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            hours = float(text)
        except ValueError:
            return None
    if math.isnan(hours) or math.isinf(hours):
        return None
    return hours


def classify_duration(duration_hours, rules: ServiceRules = DEFAULT_RULES) -> TimeClass | None:
    """
    Classify a service duration.

    Returns None when the duration is absent or unparseable.
    """
    hours = parse_hours(duration_hours)
    if hours is None:
        return None
    if hours <= rules.class_1_max_hours:
        return TimeClass.CLASS_1
    if hours <= rules.class_2_max_hours:
        return TimeClass.CLASS_2
    return TimeClass.CLASS_3
