"""Case records, columns and datasets (line-listing tables).

A line listing is an ordered set of ``CaseRecord`` rows whose open field
map is interpreted through the declared ``DataColumn`` types.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum

from pydantic import Field

from src.models.common import LineListBase, UTCTimestamp, new_id, utc_now

# Scalar cell value. Missing is None or a blank string.
FieldValue = bool | int | float | str | datetime | date | None


class ColumnType(StrEnum):
    """How a column's values are interpreted by comparators and rules."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    CATEGORICAL = "categorical"


class DataColumn(LineListBase, frozen=True):
    """A column declaration: stable key, display label and value type."""

    key: str
    label: str
    type: ColumnType = ColumnType.TEXT

    @property
    def display_name(self) -> str:
        return self.label or self.key


class CaseRecord(LineListBase, frozen=True):
    """One row of investigation data, keyed by column."""

    id: str
    values: dict[str, FieldValue] = Field(default_factory=dict)

    def get(self, key: str) -> FieldValue:
        """Return the value for *key*, or None when the record lacks it."""
        return self.values.get(key)


class Dataset(LineListBase, frozen=True):
    """An immutable snapshot of a line listing."""

    id: str = Field(default_factory=new_id)
    name: str = ""
    columns: list[DataColumn] = Field(default_factory=list)
    records: list[CaseRecord] = Field(default_factory=list)
    created_at: UTCTimestamp = Field(default_factory=utc_now)
    updated_at: UTCTimestamp = Field(default_factory=utc_now)

    def column(self, key: str) -> DataColumn | None:
        """Look up a column by key."""
        for col in self.columns:
            if col.key == key:
                return col
        return None


def column_label(columns: list[DataColumn], key: str) -> str:
    """Return the display label for *key*, falling back to the key itself."""
    for col in columns:
        if col.key == key:
            return col.display_name
    return key


def column_types(columns: list[DataColumn]) -> dict[str, ColumnType]:
    """Map column key -> declared type."""
    return {col.key: col.type for col in columns}
