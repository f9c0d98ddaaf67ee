"""Tests for issue views: active filtering, grouping, counts, dismissals."""

from __future__ import annotations

import pytest

from src.quality.aggregator import (
    active_issues,
    apply_dismissals,
    category_name,
    check_name,
    count_by_severity,
    group_issues_by_category,
    issue_fingerprint,
    summarize,
)
from src.quality.models import (
    CHECK_CATEGORIES,
    CheckType,
    DataQualityIssue,
    IssueCategory,
    IssueSeverity,
)


def _issue(
    check_type: CheckType,
    severity: IssueSeverity = IssueSeverity.ERROR,
    record_ids: list[str] | None = None,
    field: str | None = None,
    dismissed: bool = False,
) -> DataQualityIssue:
    if record_ids is None:
        record_ids = ["a", "b"] if check_type == CheckType.DUPLICATE else ["a"]
    return DataQualityIssue(
        check_type=check_type,
        category=CHECK_CATEGORIES[check_type],
        severity=severity,
        record_ids=record_ids,
        field=field,
        message="m",
        dismissed=dismissed,
    )


@pytest.fixture
def issues() -> list[DataQualityIssue]:
    return [
        _issue(CheckType.DUPLICATE, IssueSeverity.WARNING),
        _issue(CheckType.DATE_ORDER, field="report"),
        _issue(CheckType.FUTURE_DATE, field="onset", dismissed=True),
        _issue(CheckType.NUMERIC_RANGE, IssueSeverity.WARNING, field="age"),
        _issue(CheckType.NUMERIC_RANGE, IssueSeverity.ERROR, record_ids=["b"], field="age"),
    ]


class TestActiveIssues:

    def test_filters_dismissed(self, issues: list[DataQualityIssue]) -> None:
        active = active_issues(issues)
        assert len(active) == 4
        assert all(not issue.dismissed for issue in active)

    def test_preserves_order(self, issues: list[DataQualityIssue]) -> None:
        active = active_issues(issues)
        assert [i.check_type for i in active] == [
            CheckType.DUPLICATE,
            CheckType.DATE_ORDER,
            CheckType.NUMERIC_RANGE,
            CheckType.NUMERIC_RANGE,
        ]

    def test_does_not_mutate_input(self, issues: list[DataQualityIssue]) -> None:
        active_issues(issues)
        assert len(issues) == 5


class TestGroupByCategory:

    def test_all_categories_present(self) -> None:
        grouped = group_issues_by_category([])
        assert list(grouped) == [
            IssueCategory.DUPLICATE,
            IssueCategory.TEMPORAL,
            IssueCategory.RANGE,
            IssueCategory.COMPLETENESS,
        ]
        assert all(members == [] for members in grouped.values())

    def test_grouping(self, issues: list[DataQualityIssue]) -> None:
        grouped = group_issues_by_category(issues)
        assert len(grouped[IssueCategory.DUPLICATE]) == 1
        assert len(grouped[IssueCategory.TEMPORAL]) == 2
        assert len(grouped[IssueCategory.RANGE]) == 2
        assert grouped[IssueCategory.COMPLETENESS] == []


class TestCounts:

    def test_count_by_severity(self, issues: list[DataQualityIssue]) -> None:
        assert count_by_severity(issues) == {"error": 3, "warning": 2}

    def test_count_empty(self) -> None:
        assert count_by_severity([]) == {"error": 0, "warning": 0}

    def test_summary_ignores_dismissed(self, issues: list[DataQualityIssue]) -> None:
        summary = summarize(issues)
        assert summary.total == 4
        assert summary.error_count == 2
        assert summary.warning_count == 2
        assert summary.by_category[IssueCategory.TEMPORAL] == 1
        assert summary.errors_by_category[IssueCategory.RANGE] == 1
        assert summary.warnings_by_category[IssueCategory.RANGE] == 1
        assert summary.warnings_by_category[IssueCategory.DUPLICATE] == 1
        assert summary.by_category[IssueCategory.COMPLETENESS] == 0


class TestDismissals:

    def test_fingerprint_ignores_id_and_record_order(self) -> None:
        a = _issue(CheckType.DUPLICATE, record_ids=["x", "y"])
        b = _issue(CheckType.DUPLICATE, record_ids=["y", "x"])
        assert a.id != b.id
        assert issue_fingerprint(a) == issue_fingerprint(b)

    def test_fingerprint_distinguishes_field(self) -> None:
        a = _issue(CheckType.NUMERIC_RANGE, field="age")
        b = _issue(CheckType.NUMERIC_RANGE, field="weight")
        assert a.fingerprint != b.fingerprint

    def test_apply_dismissals_flags_matching(self, issues: list[DataQualityIssue]) -> None:
        target = issues[1]
        rerun = [issue.model_copy(update={"dismissed": False}) for issue in issues]

        result = apply_dismissals(rerun, {target.fingerprint})

        assert len(result) == len(rerun)
        assert [issue.dismissed for issue in result] == [False, True, False, False, False]
        assert all(not issue.dismissed for issue in rerun)

    def test_apply_dismissals_survives_new_ids(self) -> None:
        first_run = [_issue(CheckType.DATE_ORDER, field="report")]
        second_run = [_issue(CheckType.DATE_ORDER, field="report")]
        dismissed = {first_run[0].fingerprint}

        result = apply_dismissals(second_run, dismissed)

        assert result[0].dismissed is True
        assert active_issues(result) == []


class TestDisplayNames:

    def test_check_names(self) -> None:
        assert check_name(CheckType.DATE_ORDER) == "Date Order"
        assert check_name("missing_values") == "Missing Values"
        assert check_name("unknown") == "unknown"

    def test_category_names(self) -> None:
        assert category_name(IssueCategory.TEMPORAL) == "Date Issues"
        assert category_name("completeness") == "Missing Data"
        assert category_name("other") == "other"
