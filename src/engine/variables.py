"""Derived variables: categorize, copy, blank and formula columns.

``generate_variable_values`` produces one value per record, index-aligned
with the input. ``validate_variable_config`` must pass before values are
committed as a new column with ``add_variable_to_dataset``.

Deterministic -- no randomness, no clock reads except ``updated_at``
when a variable is added to a dataset.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence

import structlog

from src.config.settings import get_settings
from src.engine.formula import evaluate_formula
from src.models.common import utc_now
from src.models.dataset import CaseRecord, ColumnType, DataColumn, Dataset, FieldValue
from src.models.variables import CategoryRule, CreationMethod, VariableConfig
from src.quality.values import is_missing, render_value, to_number

logger = structlog.get_logger(__name__)

OTHER_CATEGORY = "Other"
VARIABLE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

DerivedValue = FieldValue


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def to_variable_name(label: str) -> str:
    """Convert a display label to a variable name ("Age Group" -> "age_group")."""
    name = re.sub(r"[^a-z0-9]+", "_", label.lower())
    return name.strip("_")


# ---------------------------------------------------------------------------
# Categorization
# ---------------------------------------------------------------------------


def categorize_numeric_value(value: FieldValue, categories: Sequence[CategoryRule]) -> str:
    """Label of the first category whose inclusive range contains *value*.

    Unset bounds are open. Empty or non-numeric values give ``""``; a
    number matching no category gives ``"Other"``.
    """
    if is_missing(value):
        return ""
    number = to_number(value)
    if number is None:
        return ""

    for category in categories:
        low = category.min if category.min is not None else -math.inf
        high = category.max if category.max is not None else math.inf
        if low <= number <= high:
            return category.label
    return OTHER_CATEGORY


def categorize_text_value(value: FieldValue, categories: Sequence[CategoryRule]) -> str:
    """Label of the first category listing *value* (case-insensitive, trimmed)."""
    if is_missing(value):
        return ""
    text = render_value(value).lower().strip()

    for category in categories:
        if not category.values:
            continue
        if text in {candidate.lower().strip() for candidate in category.values}:
            return category.label
    return OTHER_CATEGORY


def categorize_variable(
    records: Sequence[CaseRecord],
    source_column: str,
    categories: Sequence[CategoryRule],
    source_column_type: ColumnType,
) -> list[DerivedValue]:
    if source_column_type == ColumnType.NUMBER:
        return [categorize_numeric_value(r.get(source_column), categories) for r in records]
    return [categorize_text_value(r.get(source_column), categories) for r in records]


def copy_variable(records: Sequence[CaseRecord], source_column: str) -> list[DerivedValue]:
    return [record.get(source_column) for record in records]


def blank_variable(records: Sequence[CaseRecord]) -> list[DerivedValue]:
    return ["" for _ in records]


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def generate_variable_values(
    records: Sequence[CaseRecord],
    config: VariableConfig,
    source_column_type: ColumnType | None = None,
    decimals: int | None = None,
) -> list[DerivedValue]:
    """Produce the new column's values, index-aligned with *records*.

    A method missing its inputs (no source column, no categories, no
    formula) falls back to blank values. Without a source column type,
    categorization treats the source as text.

    Formula results are rounded to *decimals* places, defaulting to the
    ``FORMULA_DECIMALS`` setting.
    """
    method = config.method

    if method == CreationMethod.CATEGORIZE and config.source_column and config.categories:
        values = categorize_variable(
            records,
            config.source_column,
            config.categories,
            source_column_type or ColumnType.TEXT,
        )
    elif method == CreationMethod.COPY and config.source_column:
        values = copy_variable(records, config.source_column)
    elif method == CreationMethod.FORMULA and config.formula:
        if decimals is None:
            decimals = get_settings().FORMULA_DECIMALS
        values = [evaluate_formula(record, config.formula, decimals) for record in records]
    else:
        values = blank_variable(records)

    logger.debug(
        "variable_values_generated",
        name=config.name,
        method=method.value,
        records=len(records),
        blank=sum(1 for value in values if is_missing(value)),
    )
    return values


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_variable_config(
    config: VariableConfig,
    existing_columns: Sequence[DataColumn],
) -> str | None:
    """Return the first blocking problem with *config*, or None if valid.

    Checked in order: name present, name unused, name format, label
    present, source column for categorize/copy, categories for
    categorize (each labelled), formula for formula.
    """
    if not config.name.strip():
        return "Variable name is required"

    if any(col.key == config.name for col in existing_columns):
        return f'Variable "{config.name}" already exists'

    if not VARIABLE_NAME_PATTERN.match(config.name):
        return (
            "Variable name must start with a letter and contain only "
            "lowercase letters, numbers, and underscores"
        )

    if not config.label.strip():
        return "Variable label is required"

    if config.method in (CreationMethod.CATEGORIZE, CreationMethod.COPY):
        if not config.source_column:
            return "Source variable is required"

    if config.method == CreationMethod.CATEGORIZE:
        if not config.categories:
            return "At least one category is required"
        for category in config.categories:
            if not category.label.strip():
                return "All categories must have a label"

    if config.method == CreationMethod.FORMULA:
        if not config.formula or not config.formula.strip():
            return "Formula is required"

    return None


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------


def add_variable_to_dataset(
    dataset: Dataset,
    config: VariableConfig,
    values: Sequence[DerivedValue],
) -> Dataset:
    """Return a new dataset with the derived column appended.

    The input dataset is not modified.
    """
    if len(values) != len(dataset.records):
        msg = (
            f"Expected {len(dataset.records)} values for '{config.name}', "
            f"got {len(values)}"
        )
        raise ValueError(msg)

    column = DataColumn(key=config.name, label=config.label, type=config.type)
    records = [
        record.model_copy(update={"values": {**record.values, config.name: value}})
        for record, value in zip(dataset.records, values, strict=True)
    ]
    return dataset.model_copy(
        update={
            "columns": [*dataset.columns, column],
            "records": records,
            "updated_at": utc_now(),
        }
    )
