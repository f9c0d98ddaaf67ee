"""Data quality check orchestrator.

Runs every enabled check over a snapshot of records and concatenates the
results in a fixed check order: duplicates, date order, future dates,
numeric ranges, missing values. Within a check, issues keep the order
the check emitted them in.

Deterministic -- holds no state between runs; issue ids are the only
content that differs between two runs over the same input.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import structlog

from src.models.dataset import CaseRecord, DataColumn
from src.quality.config import DataQualityConfig
from src.quality.duplicates import DuplicateGrouper
from src.quality.models import CheckType, DataQualityIssue
from src.quality.rules import (
    check_date_order,
    check_future_dates,
    check_missing_values,
    check_numeric_ranges,
)

logger = structlog.get_logger(__name__)


class DataQualityService:
    """Runs the configured checks and merges their issues."""

    def __init__(self, grouper: DuplicateGrouper | None = None) -> None:
        self._grouper = grouper or DuplicateGrouper()

    def run_checks(
        self,
        records: Sequence[CaseRecord],
        columns: Sequence[DataColumn],
        config: DataQualityConfig,
        *,
        now: datetime | None = None,
    ) -> list[DataQualityIssue]:
        """Run every enabled check.

        A check that is enabled but has nothing configured (no duplicate
        fields, no rules, future dates switched off) contributes nothing.
        """
        issues: list[DataQualityIssue] = []

        if config.is_enabled(CheckType.DUPLICATE) and config.duplicate_fields:
            issues.extend(
                self._grouper.group(
                    records, config.duplicate_fields, columns, config.fuzzy_matching,
                )
            )

        if config.is_enabled(CheckType.DATE_ORDER) and config.date_order_rules:
            issues.extend(check_date_order(records, config.date_order_rules))

        if config.is_enabled(CheckType.FUTURE_DATE) and config.check_future_dates:
            issues.extend(check_future_dates(records, columns, now=now))

        if config.is_enabled(CheckType.NUMERIC_RANGE) and config.numeric_range_rules:
            issues.extend(check_numeric_ranges(records, config.numeric_range_rules))

        if config.is_enabled(CheckType.MISSING_VALUES) and config.missing_value_fields:
            issues.extend(
                check_missing_values(records, config.missing_value_fields, columns)
            )

        logger.debug(
            "data_quality_checks_complete",
            records=len(records),
            enabled=sorted(check.value for check in config.enabled_checks),
            issues=len(issues),
        )
        return issues


def run_data_quality_checks(
    records: Sequence[CaseRecord],
    columns: Sequence[DataColumn],
    config: DataQualityConfig,
    *,
    now: datetime | None = None,
) -> list[DataQualityIssue]:
    """Run all enabled checks with a default service."""
    return DataQualityService().run_checks(records, columns, config, now=now)
