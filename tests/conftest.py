"""Shared pytest fixtures for the line-listing engine test suite.

Provides:
- columns: a typical outbreak line-listing schema
- records: a small line listing exercising every check
- now: a pinned reference time for future-date checks
"""

from datetime import datetime

import pytest

from src.models.dataset import CaseRecord, ColumnType, DataColumn


def _record(record_id: str, **values: object) -> CaseRecord:
    """Build a CaseRecord from keyword values."""
    return CaseRecord(id=record_id, values=values)


@pytest.fixture
def columns() -> list[DataColumn]:
    return [
        DataColumn(key="name", label="Name", type=ColumnType.TEXT),
        DataColumn(key="age", label="Age", type=ColumnType.NUMBER),
        DataColumn(key="sex", label="Sex", type=ColumnType.CATEGORICAL),
        DataColumn(key="onset_date", label="Onset Date", type=ColumnType.DATE),
        DataColumn(key="report_date", label="Report Date", type=ColumnType.DATE),
        DataColumn(key="hospitalized", label="Hospitalized", type=ColumnType.BOOLEAN),
    ]


@pytest.fixture
def records() -> list[CaseRecord]:
    return [
        _record(
            "c1", name="Jon Smith", age=34, sex="M",
            onset_date="2024-05-01", report_date="2024-05-03", hospitalized="yes",
        ),
        _record(
            "c2", name="John Smith", age=34, sex="M",
            onset_date="2024-05-01", report_date="2024-05-04", hospitalized="yes",
        ),
        _record(
            "c3", name="Maria Lopez", age=-5, sex="F",
            onset_date="2024-05-10", report_date="2024-05-01", hospitalized="no",
        ),
        _record(
            "c4", name="Ahmed Khan", age=130, sex="",
            onset_date="2024-05-02", report_date="2030-01-01", hospitalized=None,
        ),
        _record(
            "c5", name="", age="", sex=None,
            onset_date="", report_date="not a date", hospitalized="",
        ),
    ]


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 6, 1, 9, 30)
