"""
Tests for service-duration classification.
"""

import pytest

from carebook.attendance import TimeClass, classify_duration
from carebook.attendance.duration import parse_hours
from carebook.attendance.rules import ServiceRules


class TestBoundaries:
    """Class 1 up to 1.5h, Class 2 up to 3.0h, Class 3 above."""

    @pytest.mark.parametrize("hours", [0.5, 1.0, 1.5, "1.5"])
    def test_class_1(self, hours):
        assert classify_duration(hours) is TimeClass.CLASS_1

    @pytest.mark.parametrize("hours", [1.51, 2.0, "2.0", 3.0, "3"])
    def test_class_2(self, hours):
        assert classify_duration(hours) is TimeClass.CLASS_2

    @pytest.mark.parametrize("hours", [3.01, 3.5, "4.0", 5, 8])
    def test_class_3(self, hours):
        assert classify_duration(hours) is TimeClass.CLASS_3


class TestUnusableInput:
    @pytest.mark.parametrize("value", [None, "", "   ", "two hours", "nan", True])
    def test_returns_none(self, value):
        assert classify_duration(value) is None

    def test_parse_hours_strips_whitespace(self):
        assert parse_hours(" 2.5 ") == 2.5


def test_labels_are_fixed():
    assert TimeClass.CLASS_1.value == "Class 1 (30 min to 1h30m)"
    assert TimeClass.CLASS_2.value == "Class 2 (over 1h30m to 3h)"
    assert TimeClass.CLASS_3.value == "Class 3 (over 3h to 5h)"


def test_custom_rules_move_boundaries():
    rules = ServiceRules(class_1_max_hours=1.0, class_2_max_hours=2.0)
    assert classify_duration(1.5, rules) is TimeClass.CLASS_2
    assert classify_duration(2.5, rules) is TimeClass.CLASS_3
