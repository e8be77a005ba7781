"""End-to-end scorecard assembly: answers -> scores -> cohort percentiles.

This is the entry point callers use for a full scoring request. It normalizes
stored answers, runs the item scorer and aggregator, resolves the cohort's
distribution parameters from the rule set and packages everything in the
response shape consumers already read.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from lifescore.core.rules.models import RuleSet
from lifescore.domains.assessment.domain_logic.aggregator import (
    aggregate_answers,
    check_cohort_params,
    compute_percentiles,
)
from lifescore.domains.assessment.domain_logic.cohort import Cohort, format_percentile
from lifescore.domains.assessment.domain_logic.scoring_models import (
    CATEGORY_NAMES,
    AssessmentScores,
    Percentiles,
)

# Keys tried, in order, when an answer value is a structured record
_SCALAR_KEYS = ("value", "score", "index")


# ---------------------------------------------------------------------------
# Answer normalization
# ---------------------------------------------------------------------------

def scalar_answer(value: Any) -> Any:
    """Reduce a stored answer value to a string/number scalar (None if impossible)."""
    if isinstance(value, Mapping):
        for key in _SCALAR_KEYS:
            if key in value:
                return scalar_answer(value[key])
        return None
    if isinstance(value, (list, tuple)):
        return scalar_answer(value[0]) if value else None
    return value


def normalize_answers(answers: Iterable[Any]) -> list[tuple[str, Any]]:
    """Turn answer records into ``(question_id, scalar)`` pairs.

    Accepts ``{"question_id"|"questionId": ..., "value": ...}`` mappings and
    2-item pairs. Entries without a string question id are dropped.
    """
    pairs: list[tuple[str, Any]] = []
    for answer in answers:
        if isinstance(answer, Mapping):
            qid = answer.get("question_id", answer.get("questionId"))
            value = answer.get("value")
        elif isinstance(answer, (list, tuple)) and len(answer) == 2:
            qid, value = answer
        else:
            continue
        if not isinstance(qid, str):
            continue
        pairs.append((qid, scalar_answer(value)))
    return pairs


def answers_digest(pairs: list[tuple[str, Any]]) -> str:
    """SHA-256 of the canonical JSON of normalized answers.

    Order-insensitive, so re-submitting the same answers yields the same digest.
    """
    try:
        canonical = json.dumps(
            sorted(([qid, value] for qid, value in pairs), key=lambda p: (p[0], repr(p[1]))),
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )
    except (TypeError, ValueError):
        return ""
    return hashlib.sha256(canonical.encode()).hexdigest()


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class Scorecard:
    """Scores, percentiles and provenance for one assessment."""

    scores: AssessmentScores
    percentiles: Percentiles
    cohort: Cohort | None = None
    scored_items: int = 0
    skipped_items: list[str] = field(default_factory=list)
    answers_digest: str = ""
    ruleset_name: str = ""
    ruleset_version: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the scoring endpoint's response shape."""
        categories = self.scores.categories.as_dict()
        out: dict[str, Any] = {}
        if self.cohort is not None:
            out["cohort"] = self.cohort.as_dict()
        out["overall"] = {
            "score_0_100": self.scores.overall,
            "percentile": self.percentiles.overall,
            "percentile_label": format_percentile(self.percentiles.overall),
        }
        out["categories"] = [
            {
                "id": name,
                "score_0_100": categories[name],
                "percentile": self.percentiles.for_category(name),
                "percentile_label": format_percentile(self.percentiles.for_category(name)),
            }
            for name in CATEGORY_NAMES
        ]
        out["scored_items"] = self.scored_items
        out["skipped_items"] = list(self.skipped_items)
        out["answers_digest"] = self.answers_digest
        out["ruleset"] = {"name": self.ruleset_name, "version": self.ruleset_version}
        return out


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

def build_scorecard(
    answers: Iterable[Any],
    ruleset: RuleSet,
    *,
    cohort: Cohort | None = None,
    cohort_stats: Mapping[str, Any] | None = None,
) -> Scorecard:
    """Score an assessment and rank it within a cohort.

    Args:
        answers: Stored answer records or ``(question_id, value)`` pairs.
        ruleset: Rule table and cohort statistics to score against.
        cohort: Respondent's cohort; selects the rule set's cohort entry.
        cohort_stats: Explicit scope -> {mean, stddev} parameters; overrides
            the rule set's cohort table when given.

    Never raises for malformed answers. Raises ValueError when explicit
    ``cohort_stats`` lack a scope or carry a stddev that is not positive.
    """
    pairs = normalize_answers(answers)

    scores, skipped = aggregate_answers(pairs, ruleset)

    if cohort_stats is not None:
        check_cohort_params(cohort_stats)
        params = cohort_stats
    else:
        params = ruleset.cohort_params(cohort.key if cohort is not None else None)
    percentiles = compute_percentiles(scores, params)

    return Scorecard(
        scores=scores,
        percentiles=percentiles,
        cohort=cohort,
        scored_items=len(pairs) - len(skipped),
        skipped_items=skipped,
        answers_digest=answers_digest(pairs),
        ruleset_name=ruleset.name,
        ruleset_version=ruleset.version,
    )
