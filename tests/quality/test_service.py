"""Tests for DataQualityService -- orchestration of all checks.

Covers: check ordering, enable/disable per check type, empty configuration
as a no-op, determinism across runs, every record id referencing the input,
debug logging.
"""

from __future__ import annotations

from datetime import datetime

import pytest
from structlog.testing import capture_logs

from src.models.dataset import CaseRecord, DataColumn
from src.quality.aggregator import apply_dismissals, summarize
from src.quality.config import (
    DataQualityConfig,
    DateOrderRule,
    FuzzyMatchingConfig,
    NumericRangeRule,
)
from src.quality.models import CheckType, IssueSeverity
from src.quality.service import DataQualityService, run_data_quality_checks


@pytest.fixture
def service() -> DataQualityService:
    return DataQualityService()


@pytest.fixture
def full_config() -> DataQualityConfig:
    return DataQualityConfig(
        duplicate_fields=["name", "age"],
        fuzzy_matching=FuzzyMatchingConfig(enabled=True, text_threshold=0.85),
        date_order_rules=[
            DateOrderRule(
                first_date_field="onset_date",
                second_date_field="report_date",
                first_date_label="Onset Date",
                second_date_label="Report Date",
            )
        ],
        check_future_dates=True,
        numeric_range_rules=[
            NumericRangeRule(field="age", field_label="Age", min=0, max=120),
        ],
        missing_value_fields=["sex"],
    )


class TestRunChecks:

    def test_issue_order_and_content(
        self,
        service: DataQualityService,
        records: list[CaseRecord],
        columns: list[DataColumn],
        full_config: DataQualityConfig,
        now: datetime,
    ) -> None:
        issues = service.run_checks(records, columns, full_config, now=now)

        assert [i.check_type for i in issues] == [
            CheckType.DUPLICATE,
            CheckType.DATE_ORDER,
            CheckType.FUTURE_DATE,
            CheckType.NUMERIC_RANGE,
            CheckType.NUMERIC_RANGE,
            CheckType.MISSING_VALUES,
        ]
        duplicate, date_order, future, negative, too_old, missing = issues
        assert duplicate.record_ids == ["c1", "c2"]
        assert duplicate.severity == IssueSeverity.WARNING
        assert date_order.record_ids == ["c3"]
        assert date_order.field == "report_date"
        assert future.record_ids == ["c4"]
        assert negative.severity == IssueSeverity.ERROR
        assert too_old.severity == IssueSeverity.WARNING
        assert missing.record_ids == ["c4", "c5"]
        assert missing.details == "40% of records missing Sex"

    def test_record_ids_exist(
        self,
        service: DataQualityService,
        records: list[CaseRecord],
        columns: list[DataColumn],
        full_config: DataQualityConfig,
        now: datetime,
    ) -> None:
        known = {record.id for record in records}
        for issue in service.run_checks(records, columns, full_config, now=now):
            assert set(issue.record_ids) <= known

    def test_deterministic_up_to_ids(
        self,
        service: DataQualityService,
        records: list[CaseRecord],
        columns: list[DataColumn],
        full_config: DataQualityConfig,
        now: datetime,
    ) -> None:
        first = service.run_checks(records, columns, full_config, now=now)
        second = service.run_checks(records, columns, full_config, now=now)

        assert [i.model_dump(exclude={"id"}) for i in first] == [
            i.model_dump(exclude={"id"}) for i in second
        ]
        assert {i.id for i in first}.isdisjoint({i.id for i in second})

    def test_dismissals_carry_over_between_runs(
        self,
        service: DataQualityService,
        records: list[CaseRecord],
        columns: list[DataColumn],
        full_config: DataQualityConfig,
        now: datetime,
    ) -> None:
        first = service.run_checks(records, columns, full_config, now=now)
        dismissed = {first[0].fingerprint}

        second = apply_dismissals(
            service.run_checks(records, columns, full_config, now=now), dismissed,
        )

        assert second[0].dismissed is True
        assert summarize(second).total == len(second) - 1


class TestEnabledChecks:

    def test_disabled_check_skipped(
        self,
        service: DataQualityService,
        records: list[CaseRecord],
        columns: list[DataColumn],
        full_config: DataQualityConfig,
        now: datetime,
    ) -> None:
        config = full_config.model_copy(
            update={"enabled_checks": {CheckType.NUMERIC_RANGE}},
        )
        issues = service.run_checks(records, columns, config, now=now)
        assert {i.check_type for i in issues} == {CheckType.NUMERIC_RANGE}

    def test_future_dates_switch(
        self,
        service: DataQualityService,
        records: list[CaseRecord],
        columns: list[DataColumn],
        full_config: DataQualityConfig,
        now: datetime,
    ) -> None:
        config = full_config.model_copy(update={"check_future_dates": False})
        issues = service.run_checks(records, columns, config, now=now)
        assert CheckType.FUTURE_DATE not in {i.check_type for i in issues}

    def test_empty_configuration_is_noop(
        self,
        records: list[CaseRecord],
        columns: list[DataColumn],
        now: datetime,
    ) -> None:
        config = DataQualityConfig(check_future_dates=False)
        assert run_data_quality_checks(records, columns, config, now=now) == []

    def test_no_duplicate_fields_no_duplicates(
        self,
        records: list[CaseRecord],
        columns: list[DataColumn],
        now: datetime,
    ) -> None:
        identical = records + [records[0].model_copy(update={"id": "c1-copy"})]
        config = DataQualityConfig(
            enabled_checks={CheckType.DUPLICATE}, duplicate_fields=[],
        )
        assert run_data_quality_checks(identical, columns, config, now=now) == []


class TestLogging:

    def test_completion_event(
        self,
        service: DataQualityService,
        records: list[CaseRecord],
        columns: list[DataColumn],
        full_config: DataQualityConfig,
        now: datetime,
    ) -> None:
        with capture_logs() as logs:
            issues = service.run_checks(records, columns, full_config, now=now)

        events = [entry for entry in logs if entry["event"] == "data_quality_checks_complete"]
        assert len(events) == 1
        assert events[0]["issues"] == len(issues)
        assert events[0]["records"] == len(records)
