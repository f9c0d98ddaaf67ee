"""Duplicate grouping.

Greedy clustering over records in input order: each record not
yet assigned seeds a group, and later unassigned records join it when
their record similarity meets the threshold. Output therefore depends on
record order, and under single linkage a chained group's first and last
members need not be similar to each other.

Deterministic -- no randomness; only issue ids vary between runs.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from src.models.dataset import CaseRecord, ColumnType, DataColumn, column_label, column_types
from src.quality.config import FuzzyMatchingConfig
from src.quality.models import (
    CheckType,
    DataQualityIssue,
    DuplicateLinkage,
    IssueCategory,
    IssueSeverity,
)
from src.quality.similarity import record_similarity
from src.quality.values import is_missing

logger = structlog.get_logger(__name__)


class DuplicateGrouper:
    """Clusters records into duplicate groups.

    Records whose checked fields are all empty never take part, even if
    they are otherwise identical.
    """

    def group(
        self,
        records: Sequence[CaseRecord],
        fields: Sequence[str],
        columns: Sequence[DataColumn],
        fuzzy: FuzzyMatchingConfig | None = None,
    ) -> list[DataQualityIssue]:
        """Return one duplicate issue per group of two or more records."""
        if not fields:
            return []

        fuzzy = fuzzy or FuzzyMatchingConfig()
        threshold = fuzzy.effective_threshold
        tolerance = fuzzy.effective_date_tolerance

        types = column_types(list(columns))
        typed_fields = [(key, types.get(key, ColumnType.TEXT)) for key in fields]

        candidates = [
            record for record in records
            if any(not is_missing(record.get(key)) for key in fields)
        ]

        assigned: set[int] = set()
        groups: list[list[CaseRecord]] = []

        for i, seed in enumerate(candidates):
            if i in assigned:
                continue
            assigned.add(i)
            members = [seed]

            for j in range(i + 1, len(candidates)):
                if j in assigned:
                    continue
                if self._joins(
                    candidates[j], members, typed_fields, threshold, tolerance, fuzzy.linkage,
                ):
                    members.append(candidates[j])
                    assigned.add(j)

            if len(members) >= 2:
                groups.append(members)

        logger.debug(
            "duplicate_groups_found",
            records=len(records),
            candidates=len(candidates),
            groups=len(groups),
            threshold=threshold,
        )

        severity = (
            IssueSeverity.WARNING
            if fuzzy.enabled and threshold < 1.0
            else IssueSeverity.ERROR
        )
        field_labels = ", ".join(column_label(list(columns), key) for key in fields)
        if severity == IssueSeverity.WARNING:
            details = f"Similar values in: {field_labels} (similarity >= {threshold:.0%})"
        else:
            details = f"Same values in: {field_labels}"

        return [
            DataQualityIssue(
                check_type=CheckType.DUPLICATE,
                category=IssueCategory.DUPLICATE,
                severity=severity,
                record_ids=[member.id for member in members],
                message=f"{len(members)} duplicate records",
                details=details,
            )
            for members in groups
        ]

    @staticmethod
    def _joins(
        candidate: CaseRecord,
        members: list[CaseRecord],
        typed_fields: list[tuple[str, ColumnType]],
        threshold: float,
        tolerance: float,
        linkage: DuplicateLinkage,
    ) -> bool:
        meets = (
            record_similarity(member, candidate, typed_fields, tolerance) >= threshold
            for member in members
        )
        if linkage == DuplicateLinkage.COMPLETE:
            return all(meets)
        return any(meets)
