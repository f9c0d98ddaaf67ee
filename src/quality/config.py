"""Data quality check configuration.

Every collection is always present, possibly empty. An enabled check with
nothing configured produces no issues.
"""

from __future__ import annotations

from pydantic import Field

from src.config.settings import Settings, get_settings
from src.models.common import LineListBase, new_id
from src.quality.models import CheckType, DuplicateLinkage


class FuzzyMatchingConfig(LineListBase):
    """Tolerances for duplicate detection.

    When disabled, duplicates require an exact match (threshold 1.0 and
    exact dates).
    """

    enabled: bool = False
    text_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    date_tolerance_days: float = Field(default=0, ge=0)
    linkage: DuplicateLinkage = DuplicateLinkage.SINGLE

    @property
    def effective_threshold(self) -> float:
        return self.text_threshold if self.enabled else 1.0

    @property
    def effective_date_tolerance(self) -> float:
        return self.date_tolerance_days if self.enabled else 0


class DateOrderRule(LineListBase):
    """``first_date_field`` must not be later than ``second_date_field``."""

    id: str = Field(default_factory=new_id)
    first_date_field: str
    second_date_field: str
    first_date_label: str = ""
    second_date_label: str = ""

    @property
    def first_label(self) -> str:
        return self.first_date_label or self.first_date_field

    @property
    def second_label(self) -> str:
        return self.second_date_label or self.second_date_field


class NumericRangeRule(LineListBase):
    """Values of ``field`` are expected within ``[min, max]``.

    ``min <= max`` is expected but not enforced.
    """

    id: str = Field(default_factory=new_id)
    field: str
    field_label: str = ""
    min: float
    max: float

    @property
    def label(self) -> str:
        return self.field_label or self.field


class DataQualityConfig(LineListBase):
    """Which checks run and what they check."""

    duplicate_fields: list[str] = Field(default_factory=list)
    fuzzy_matching: FuzzyMatchingConfig = Field(default_factory=FuzzyMatchingConfig)
    date_order_rules: list[DateOrderRule] = Field(default_factory=list)
    check_future_dates: bool = True
    numeric_range_rules: list[NumericRangeRule] = Field(default_factory=list)
    missing_value_fields: list[str] = Field(default_factory=list)
    enabled_checks: set[CheckType] = Field(default_factory=lambda: set(CheckType))

    def is_enabled(self, check: CheckType) -> bool:
        return check in self.enabled_checks


def default_config(settings: Settings | None = None) -> DataQualityConfig:
    """Return a fresh configuration with every check enabled.

    Fuzzy matching starts disabled; its threshold and date tolerance come
    from settings.
    """
    settings = settings or get_settings()
    return DataQualityConfig(
        fuzzy_matching=FuzzyMatchingConfig(
            enabled=False,
            text_threshold=settings.DEFAULT_TEXT_THRESHOLD,
            date_tolerance_days=settings.DEFAULT_DATE_TOLERANCE_DAYS,
        ),
        check_future_dates=True,
        enabled_checks=set(CheckType),
    )
