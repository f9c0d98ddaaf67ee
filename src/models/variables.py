"""Derived-variable configuration models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from src.models.common import LineListBase, new_id
from src.models.dataset import ColumnType


class CreationMethod(StrEnum):
    """How a derived column's values are produced."""

    CATEGORIZE = "categorize"
    COPY = "copy"
    FORMULA = "formula"
    BLANK = "blank"


class CategoryRule(LineListBase):
    """One output category.

    Numeric sources match on the inclusive ``[min, max]`` range (either
    bound may be open); text sources match on the ``values`` set,
    case-insensitive and trimmed.
    """

    id: str = Field(default_factory=new_id)
    label: str
    min: float | None = None
    max: float | None = None
    values: list[str] | None = None


class VariableConfig(LineListBase):
    """Describes a new column to derive from existing ones."""

    name: str
    label: str
    type: ColumnType = ColumnType.TEXT
    method: CreationMethod = CreationMethod.BLANK
    source_column: str | None = None
    categories: list[CategoryRule] = Field(default_factory=list)
    formula: str | None = None
