"""Data quality enums and the issue model.

Defines the closed check/category/severity taxonomy and the
``DataQualityIssue`` produced by every check.

Deterministic -- issue content is a pure function of the inputs; only
``id`` changes between runs.
"""

from __future__ import annotations

import hashlib
from enum import StrEnum

from pydantic import Field, computed_field, model_validator

from src.models.common import LineListBase, UUIDv7, new_uuid7


# ---------------------------------------------------------------------------
# Enums (all StrEnum)
# ---------------------------------------------------------------------------


class CheckType(StrEnum):
    """Independently configurable checks."""

    DUPLICATE = "duplicate"
    DATE_ORDER = "date_order"
    FUTURE_DATE = "future_date"
    NUMERIC_RANGE = "numeric_range"
    MISSING_VALUES = "missing_values"


class IssueCategory(StrEnum):
    """Fixed display taxonomy for issues."""

    DUPLICATE = "duplicate"
    TEMPORAL = "temporal"
    RANGE = "range"
    COMPLETENESS = "completeness"


class IssueSeverity(StrEnum):
    """Issue severity."""

    ERROR = "error"
    WARNING = "warning"


class DuplicateLinkage(StrEnum):
    """How a candidate record joins an open duplicate group.

    SINGLE: similar enough to any current member (greedy chaining).
    COMPLETE: similar enough to every current member.
    """

    SINGLE = "single"
    COMPLETE = "complete"


# Check type -> category. Every check emits into exactly one category.
CHECK_CATEGORIES: dict[CheckType, IssueCategory] = {
    CheckType.DUPLICATE: IssueCategory.DUPLICATE,
    CheckType.DATE_ORDER: IssueCategory.TEMPORAL,
    CheckType.FUTURE_DATE: IssueCategory.TEMPORAL,
    CheckType.NUMERIC_RANGE: IssueCategory.RANGE,
    CheckType.MISSING_VALUES: IssueCategory.COMPLETENESS,
}


# ---------------------------------------------------------------------------
# Issue model
# ---------------------------------------------------------------------------


class DataQualityIssue(LineListBase):
    """A single finding produced by a check.

    ``id`` is regenerated on every run. Callers that need to remember an
    issue across runs (e.g. dismissals) key it by ``fingerprint``.
    ``dismissed`` is owned by the caller; the engine always emits False.
    """

    id: UUIDv7 = Field(default_factory=new_uuid7)
    check_type: CheckType
    category: IssueCategory
    severity: IssueSeverity
    record_ids: list[str] = Field(min_length=1)
    field: str | None = None
    message: str
    details: str | None = None
    dismissed: bool = False

    @model_validator(mode="after")
    def _check_taxonomy(self) -> DataQualityIssue:
        expected = CHECK_CATEGORIES[self.check_type]
        if self.category != expected:
            msg = (
                f"Check type '{self.check_type}' belongs to category "
                f"'{expected}', got '{self.category}'"
            )
            raise ValueError(msg)
        if self.check_type == CheckType.DUPLICATE and len(self.record_ids) < 2:
            msg = "A duplicate issue must reference at least two records"
            raise ValueError(msg)
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fingerprint(self) -> str:
        """Stable content key: check type, field and sorted record ids."""
        parts = [self.check_type.value, self.field or "", *sorted(self.record_ids)]
        return hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()


class IssueSummary(LineListBase):
    """Error/warning counts over a set of active issues."""

    total: int = 0
    error_count: int = 0
    warning_count: int = 0
    by_category: dict[IssueCategory, int] = Field(default_factory=dict)
    errors_by_category: dict[IssueCategory, int] = Field(default_factory=dict)
    warnings_by_category: dict[IssueCategory, int] = Field(default_factory=dict)
