"""Rule checks: date order, future dates, numeric ranges, missing values.

Each check is a stateless function over the records and its rule set and
returns its issues in (rule, record) order. Values that do not parse as
the type a rule needs are skipped: no assertion is possible about them.
An empty rule set is a no-op.

Deterministic -- except for ``check_future_dates``, whose reference time
defaults to the current clock and can be pinned with ``now``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime, time

import structlog

from src.models.dataset import CaseRecord, ColumnType, DataColumn, column_label
from src.quality.config import DateOrderRule, NumericRangeRule
from src.quality.models import CheckType, DataQualityIssue, IssueCategory, IssueSeverity
from src.models.common import utc_now
from src.quality.values import format_number, is_missing, naive_utc, parse_date, to_number

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Temporal checks
# ---------------------------------------------------------------------------


def check_date_order(
    records: Sequence[CaseRecord],
    rules: Sequence[DateOrderRule],
) -> list[DataQualityIssue]:
    """Flag records whose first date is later than their second date.

    The issue references the second date field.
    """
    issues: list[DataQualityIssue] = []

    for rule in rules:
        for record in records:
            first = parse_date(record.get(rule.first_date_field))
            second = parse_date(record.get(rule.second_date_field))
            if first is None or second is None or first <= second:
                continue
            issues.append(
                DataQualityIssue(
                    check_type=CheckType.DATE_ORDER,
                    category=IssueCategory.TEMPORAL,
                    severity=IssueSeverity.ERROR,
                    record_ids=[record.id],
                    field=rule.second_date_field,
                    message=f"{rule.second_label} before {rule.first_label}",
                    details=(
                        f"{rule.first_label}: {first.date().isoformat()}, "
                        f"{rule.second_label}: {second.date().isoformat()}"
                    ),
                )
            )

    logger.debug("date_order_checked", rules=len(rules), issues=len(issues))
    return issues


def end_of_day(now: datetime) -> datetime:
    """Last representable instant of ``now``'s calendar day."""
    return datetime.combine(now.date(), time.max)


def check_future_dates(
    records: Sequence[CaseRecord],
    columns: Sequence[DataColumn],
    now: datetime | None = None,
) -> list[DataQualityIssue]:
    """Flag date-typed values later than the end of today.

    Today is the UTC calendar day of *now* (default: the current time),
    the same clock aware record values are converted to.
    """
    cutoff = end_of_day(naive_utc(now or utc_now()))
    date_columns = [col for col in columns if col.type == ColumnType.DATE]
    issues: list[DataQualityIssue] = []

    for record in records:
        for col in date_columns:
            value = parse_date(record.get(col.key))
            if value is None or value <= cutoff:
                continue
            issues.append(
                DataQualityIssue(
                    check_type=CheckType.FUTURE_DATE,
                    category=IssueCategory.TEMPORAL,
                    severity=IssueSeverity.ERROR,
                    record_ids=[record.id],
                    field=col.key,
                    message=f"Future date in {col.display_name}",
                    details=f"Date: {value.date().isoformat()}",
                )
            )

    logger.debug("future_dates_checked", columns=len(date_columns), issues=len(issues))
    return issues


# ---------------------------------------------------------------------------
# Range check
# ---------------------------------------------------------------------------


def check_numeric_ranges(
    records: Sequence[CaseRecord],
    rules: Sequence[NumericRangeRule],
) -> list[DataQualityIssue]:
    """Flag numeric values outside ``[min, max]``.

    * negative out-of-range value -> error
    * otherwise -> warning
    """
    issues: list[DataQualityIssue] = []

    for rule in rules:
        for record in records:
            raw = record.get(rule.field)
            if is_missing(raw):
                continue
            value = to_number(raw)
            if value is None or rule.min <= value <= rule.max:
                continue
            issues.append(
                DataQualityIssue(
                    check_type=CheckType.NUMERIC_RANGE,
                    category=IssueCategory.RANGE,
                    severity=IssueSeverity.ERROR if value < 0 else IssueSeverity.WARNING,
                    record_ids=[record.id],
                    field=rule.field,
                    message=(
                        f"{rule.label} out of expected range "
                        f"({format_number(rule.min)}-{format_number(rule.max)})"
                    ),
                    details=f"Value: {format_number(value)}",
                )
            )

    logger.debug("numeric_ranges_checked", rules=len(rules), issues=len(issues))
    return issues


# ---------------------------------------------------------------------------
# Completeness check
# ---------------------------------------------------------------------------


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def check_missing_values(
    records: Sequence[CaseRecord],
    fields: Sequence[str],
    columns: Sequence[DataColumn],
) -> list[DataQualityIssue]:
    """One warning per field that has at least one missing value."""
    issues: list[DataQualityIssue] = []
    total = len(records)

    for key in fields:
        missing_ids = [record.id for record in records if is_missing(record.get(key))]
        if not missing_ids:
            continue
        count = len(missing_ids)
        pct = _round_half_up(count / total * 100)
        label = column_label(list(columns), key)
        noun = "value" if count == 1 else "values"
        issues.append(
            DataQualityIssue(
                check_type=CheckType.MISSING_VALUES,
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.WARNING,
                record_ids=missing_ids,
                field=key,
                message=f"{count} missing {noun} in {label}",
                details=f"{pct}% of records missing {label}",
            )
        )

    logger.debug("missing_values_checked", fields=len(fields), issues=len(issues))
    return issues
