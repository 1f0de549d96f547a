"""
Tests for caller-side report validation.
"""

from __future__ import annotations

import dataclasses

import pytest

from backend_queuetrust.aggregation.validation import validate_report, validate_reports
from backend_queuetrust.core.exceptions import InvalidReportError
from factories import make_report


def test_valid_report_passes_through():
    r = make_report(0)
    assert validate_report(r) is r
    assert validate_reports([make_report(240)])[0].reported_minutes == 240


@pytest.mark.parametrize(
    "changes",
    [
        {"reported_minutes": -1},
        {"reported_minutes": 241},
        {"reported_minutes": 12.5},
        {"reported_minutes": True},
        {"submitter_id": ""},
        {"checkpoint_id": "  "},
        {"expires_at": 0},
    ],
)
def test_invalid_reports_rejected(changes):
    r = dataclasses.replace(make_report(10), **changes)
    with pytest.raises(InvalidReportError):
        validate_report(r)
