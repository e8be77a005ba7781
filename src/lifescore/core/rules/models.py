"""Data models for scoring rule sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class Bounds:
    """Inclusive numeric range a raw answer is clamped to."""

    min: float
    max: float


@dataclass(frozen=True)
class ScoringRule:
    """How a single question's raw answer maps onto 0-100."""

    question_id: str
    type: str
    values: tuple[float, ...] = ()
    bounds: Bounds | None = None
    reverse: bool = False
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class CohortParams:
    """Assumed normal distribution of one scope's score within a cohort."""

    mean: float
    stddev: float


@dataclass(frozen=True)
class RuleSet:
    """Immutable scoring configuration: rule table plus cohort statistics.

    ``scoring`` maps category -> question_id -> ScoringRule.
    ``cohort_stats`` maps cohort key -> scope -> CohortParams; the ``default``
    key is used whenever a cohort has no entry of its own.
    """

    name: str
    version: str
    description: str = ""
    scoring: Mapping[str, Mapping[str, ScoringRule]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    cohort_stats: Mapping[str, Mapping[str, CohortParams]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def rules_for(self, category: str) -> Mapping[str, ScoringRule]:
        """Rules for one category (empty mapping when the category has none)."""
        return self.scoring.get(category, MappingProxyType({}))

    def cohort_params(self, cohort_key: str | None = None) -> Mapping[str, CohortParams]:
        """Cohort parameters for ``cohort_key``, falling back to ``default``."""
        if cohort_key and cohort_key in self.cohort_stats:
            return self.cohort_stats[cohort_key]
        return self.cohort_stats.get("default", MappingProxyType({}))

    def question_ids(self) -> list[str]:
        return [qid for rules in self.scoring.values() for qid in rules]
