"""Unit tests for worked-hours calculation."""

import datetime as dt

import pytest

from backoffice.business.errors import BusinessRuleError
from backoffice.services.timesheets import compute_hours


def _at(hour: int, minute: int = 0) -> dt.datetime:
    return dt.datetime(2025, 3, 10, hour, minute)


@pytest.mark.unit
class TestComputeHours:

    def test_full_day_with_break(self):
        assert compute_hours(_at(8), _at(16, 30), 30) == 8.0

    def test_no_break(self):
        assert compute_hours(_at(9), _at(12, 15)) == 3.25

    def test_rounded_to_two_places(self):
        assert compute_hours(_at(9), _at(9, 20)) == 0.33

    def test_end_before_start(self):
        with pytest.raises(BusinessRuleError) as exc_info:
            compute_hours(_at(17), _at(8))

        assert exc_info.value.code == "INVALID_TIME_RANGE"
        assert exc_info.value.status_code == 422

    def test_end_equal_to_start(self):
        with pytest.raises(BusinessRuleError):
            compute_hours(_at(8), _at(8))

    def test_break_consumes_shift(self):
        with pytest.raises(BusinessRuleError) as exc_info:
            compute_hours(_at(8), _at(8, 30), 30)

        assert exc_info.value.code == "INVALID_TIME_RANGE"
