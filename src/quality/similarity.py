"""Field- and record-level similarity for duplicate detection.

Text uses Jaro-Winkler (weighted towards shared prefixes, which suits
names); dates, numbers and booleans compare by typed equality, with an
optional day tolerance for dates.

Deterministic -- pure functions of their inputs.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from src.models.dataset import CaseRecord, ColumnType, FieldValue
from src.quality.values import is_missing, parse_date, render_value, to_bool, to_number

WINKLER_PREFIX_SCALE = 0.1
WINKLER_MAX_PREFIX = 4

_SECONDS_PER_DAY = 86_400.0


def jaro_similarity(a: str, b: str) -> float:
    """Jaro similarity between two strings, in [0, 1].

    Jaro = (m/|a| + m/|b| + (m - t/2)/m) / 3 where m is the number of
    matching characters (within the match window) and t the number of
    matched characters that appear in a different order.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    len_a, len_b = len(a), len(b)
    match_distance = max(0, max(len_a, len_b) // 2 - 1)

    a_matches = [False] * len_a
    b_matches = [False] * len_b
    matches = 0

    for i in range(len_a):
        start = max(0, i - match_distance)
        end = min(i + match_distance + 1, len_b)
        for j in range(start, end):
            if b_matches[j] or a[i] != b[j]:
                continue
            a_matches[i] = True
            b_matches[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i in range(len_a):
        if not a_matches[i]:
            continue
        while not b_matches[k]:
            k += 1
        if a[i] != b[k]:
            transpositions += 1
        k += 1

    return (
        matches / len_a
        + matches / len_b
        + (matches - transpositions / 2) / matches
    ) / 3.0


def jaro_winkler_similarity(
    a: str, b: str, prefix_scale: float = WINKLER_PREFIX_SCALE,
) -> float:
    """Jaro-Winkler similarity of two strings, case-insensitive and trimmed."""
    s1 = a.lower().strip()
    s2 = b.lower().strip()

    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    jaro = jaro_similarity(s1, s2)

    prefix_len = 0
    for i in range(min(WINKLER_MAX_PREFIX, len(s1), len(s2))):
        if s1[i] != s2[i]:
            break
        prefix_len += 1

    return jaro + prefix_len * prefix_scale * (1.0 - jaro)


def field_similarity(
    a: FieldValue,
    b: FieldValue,
    column_type: ColumnType,
    date_tolerance_days: float = 0,
) -> float | None:
    """Similarity of two cell values under the column's type.

    Returns None when the values cannot be compared (unparseable for the
    declared type); such fields are left out of the record average.
    """
    empty_a = is_missing(a)
    empty_b = is_missing(b)
    if empty_a and empty_b:
        return 1.0
    if empty_a or empty_b:
        return 0.0

    if column_type in (ColumnType.TEXT, ColumnType.CATEGORICAL):
        return jaro_winkler_similarity(render_value(a), render_value(b))

    if column_type == ColumnType.DATE:
        date_a = parse_date(a)
        date_b = parse_date(b)
        if date_a is None or date_b is None:
            return None
        if date_tolerance_days == 0:
            return 1.0 if date_a == date_b else 0.0
        diff_days = abs((date_a - date_b).total_seconds()) / _SECONDS_PER_DAY
        return 1.0 if diff_days <= date_tolerance_days else 0.0

    if column_type == ColumnType.NUMBER:
        num_a = to_number(a)
        num_b = to_number(b)
        if num_a is None or num_b is None:
            return None
        return 1.0 if num_a == num_b else 0.0

    if column_type == ColumnType.BOOLEAN:
        bool_a = to_bool(a)
        bool_b = to_bool(b)
        if bool_a is None or bool_b is None:
            return None
        return 1.0 if bool_a == bool_b else 0.0

    return None


def record_similarity(
    a: CaseRecord,
    b: CaseRecord,
    fields: Sequence[tuple[str, ColumnType]],
    date_tolerance_days: float = 0,
) -> float:
    """Mean similarity over the comparable ``(key, type)`` fields.

    Returns 0.0 when no field is comparable.
    """
    scores = [
        score
        for key, column_type in fields
        if (score := field_similarity(a.get(key), b.get(key), column_type, date_tolerance_days))
        is not None
    ]
    if not scores:
        return 0.0
    return float(np.mean(scores))
