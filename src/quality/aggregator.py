"""Issue views: active filtering, category grouping, counts, dismissals.

Dismissal is a caller-owned overlay. Nothing here ever drops an issue;
dismissed issues are only hidden from the active views.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

from src.quality.models import (
    CheckType,
    DataQualityIssue,
    IssueCategory,
    IssueSeverity,
    IssueSummary,
)

CHECK_NAMES: dict[CheckType, str] = {
    CheckType.DUPLICATE: "Duplicates",
    CheckType.DATE_ORDER: "Date Order",
    CheckType.FUTURE_DATE: "Future Dates",
    CheckType.NUMERIC_RANGE: "Numeric Range",
    CheckType.MISSING_VALUES: "Missing Values",
}

CATEGORY_NAMES: dict[IssueCategory, str] = {
    IssueCategory.DUPLICATE: "Duplicates",
    IssueCategory.TEMPORAL: "Date Issues",
    IssueCategory.RANGE: "Out of Range",
    IssueCategory.COMPLETENESS: "Missing Data",
}


def check_name(check_type: CheckType | str) -> str:
    """Human-readable check name; unknown values are returned unchanged."""
    try:
        return CHECK_NAMES[CheckType(check_type)]
    except ValueError:
        return str(check_type)


def category_name(category: IssueCategory | str) -> str:
    """Human-readable category name; unknown values are returned unchanged."""
    try:
        return CATEGORY_NAMES[IssueCategory(category)]
    except ValueError:
        return str(category)


def active_issues(issues: Iterable[DataQualityIssue]) -> list[DataQualityIssue]:
    """Issues not dismissed, in arrival order."""
    return [issue for issue in issues if not issue.dismissed]


def group_issues_by_category(
    issues: Iterable[DataQualityIssue],
) -> dict[IssueCategory, list[DataQualityIssue]]:
    """Group issues into the fixed category taxonomy.

    Every category is present in the result, in taxonomy order, even when
    it has no issues.
    """
    grouped: dict[IssueCategory, list[DataQualityIssue]] = {
        category: [] for category in IssueCategory
    }
    for issue in issues:
        grouped[issue.category].append(issue)
    return grouped


def count_by_severity(issues: Iterable[DataQualityIssue]) -> dict[str, int]:
    """Return counts keyed by severity value.

    Example: {"error": 2, "warning": 1}
    """
    counter: Counter[str] = Counter()
    for issue in issues:
        counter[issue.severity.value] += 1
    return {severity.value: counter[severity.value] for severity in IssueSeverity}


def summarize(issues: Sequence[DataQualityIssue]) -> IssueSummary:
    """Error/warning counts over the active issues, overall and per category."""
    active = active_issues(issues)
    by_category: dict[IssueCategory, int] = {}
    errors_by_category: dict[IssueCategory, int] = {}
    warnings_by_category: dict[IssueCategory, int] = {}

    for category, members in group_issues_by_category(active).items():
        counts = count_by_severity(members)
        by_category[category] = len(members)
        errors_by_category[category] = counts[IssueSeverity.ERROR.value]
        warnings_by_category[category] = counts[IssueSeverity.WARNING.value]

    overall = count_by_severity(active)
    return IssueSummary(
        total=len(active),
        error_count=overall[IssueSeverity.ERROR.value],
        warning_count=overall[IssueSeverity.WARNING.value],
        by_category=by_category,
        errors_by_category=errors_by_category,
        warnings_by_category=warnings_by_category,
    )


def issue_fingerprint(issue: DataQualityIssue) -> str:
    """Content key stable across runs (ids are not)."""
    return issue.fingerprint


def apply_dismissals(
    issues: Iterable[DataQualityIssue],
    dismissed: Iterable[str],
) -> list[DataQualityIssue]:
    """Overlay the caller's dismissed fingerprints onto freshly run issues.

    Returns copies; the input issues are left untouched. Issues are never
    removed, only flagged.
    """
    dismissed_keys = set(dismissed)
    return [
        issue.model_copy(update={"dismissed": issue.fingerprint in dismissed_keys})
        for issue in issues
    ]
