"""Category aggregation and cohort percentile mapping.

``compute_scores`` averages item sub-scores per life category (neutral 50 for
categories without answers) and takes the unweighted mean of the four as the
overall score. ``compute_percentiles`` places each score on the cohort's
assumed normal distribution.

All computation is deterministic: no I/O, no shared state.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

from lifescore.core.rules.models import CohortParams, RuleSet
from lifescore.domains.assessment.domain_logic.item_scorer import (
    get_question_category,
    score_item,
)
from lifescore.domains.assessment.domain_logic.scoring_models import (
    CATEGORY_NAMES,
    COHORT_SCOPES,
    MAX_PERCENTILE,
    MIN_PERCENTILE,
    NEUTRAL_SCORE,
    OVERALL_SCOPE,
    AssessmentScores,
    CategoryScores,
    Percentiles,
)

logger = logging.getLogger(__name__)

# Abramowitz & Stegun 7.1.26 (max abs error 1.5e-7). Stored percentiles
# depend on these exact coefficients.
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911


def _answer_pair(answer: Any) -> tuple[Any, Any]:
    """Accept (question_id, value) pairs or {question_id|questionId, value} records."""
    if isinstance(answer, Mapping):
        qid = answer.get("question_id", answer.get("questionId"))
        return qid, answer.get("value")
    try:
        qid, value = answer
    except (TypeError, ValueError):
        return None, None
    return qid, value


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------

def aggregate_answers(
    answers: Iterable[Any],
    rules: RuleSet | Mapping[str, Any],
) -> tuple[AssessmentScores, list[str]]:
    """Score each answer once and aggregate the results.

    Returns the AssessmentScores plus the question ids that could not be
    scored, in input order. A category with no scored answers is exactly
    NEUTRAL_SCORE and still counts toward the overall mean.
    """
    sums = {name: 0.0 for name in CATEGORY_NAMES}
    counts = {name: 0 for name in CATEGORY_NAMES}
    skipped: list[str] = []

    for answer in answers:
        question_id, value = _answer_pair(answer)
        score = score_item(rules, question_id, value)
        if score is None:
            logger.debug("Skipping unscorable answer for %r", question_id)
            if isinstance(question_id, str):
                skipped.append(question_id)
            continue
        category = get_question_category(question_id)
        sums[category] += score
        counts[category] += 1

    averaged = {
        name: sums[name] / counts[name] if counts[name] > 0 else NEUTRAL_SCORE
        for name in CATEGORY_NAMES
    }
    overall = sum(averaged.values()) / len(CATEGORY_NAMES)

    return AssessmentScores(categories=CategoryScores(**averaged), overall=overall), skipped


def compute_scores(
    answers: Iterable[Any],
    rules: RuleSet | Mapping[str, Any],
) -> AssessmentScores:
    """Aggregate answers into category scores and an overall score.

    Args:
        answers: ``(question_id, value)`` pairs or answer records.
        rules: A RuleSet or a raw ``category -> question_id -> rule`` mapping.
    """
    scores, _ = aggregate_answers(answers, rules)
    return scores


# ---------------------------------------------------------------------------
# Percentiles
# ---------------------------------------------------------------------------

def normal_cdf(x: float) -> float:
    """Standard normal CDF via the Abramowitz-Stegun erf approximation."""
    sign = -1 if x < 0 else 1
    x = abs(x) / math.sqrt(2.0)

    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - (((((_A5 * t + _A4) * t) + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x)

    return 0.5 * (1.0 + sign * y)


def score_to_percentile(score: float, mean: float, stddev: float) -> float:
    """Percentile of ``score`` under N(mean, stddev), clamped to [0.1, 99.9].

    stddev must be positive. Zero raises ZeroDivisionError and a negative
    value silently inverts the ranking, so parameters from outside the rule
    set loader go through check_cohort_params first.
    """
    z = (score - mean) / stddev
    percentile = normal_cdf(z) * 100
    return max(MIN_PERCENTILE, min(MAX_PERCENTILE, percentile))


def _params(cohort_params: Mapping[str, Any], scope: str) -> tuple[float, float]:
    entry = cohort_params[scope]
    if isinstance(entry, CohortParams):
        return entry.mean, entry.stddev
    return float(entry["mean"]), float(entry["stddev"])


def compute_percentiles(
    scores: AssessmentScores,
    cohort_params: Mapping[str, Any],
) -> Percentiles:
    """Map overall and category scores to cohort percentiles.

    Args:
        scores: Output of compute_scores.
        cohort_params: scope -> CohortParams (or ``{"mean", "stddev"}``) for
            ``overall`` and each of the four categories.
    """
    categories = scores.categories
    return Percentiles(
        overall=score_to_percentile(scores.overall, *_params(cohort_params, OVERALL_SCOPE)),
        financial=score_to_percentile(
            categories.financial, *_params(cohort_params, "financial")
        ),
        health=score_to_percentile(
            categories.health_fitness, *_params(cohort_params, "health_fitness")
        ),
        social=score_to_percentile(categories.social, *_params(cohort_params, "social")),
        romantic=score_to_percentile(categories.romantic, *_params(cohort_params, "romantic")),
    )


def check_cohort_params(cohort_params: Mapping[str, Any]) -> None:
    """Reject cohort parameters that cannot describe a normal distribution.

    Raises ValueError for a missing scope or a stddev that is not positive.
    """
    for scope in COHORT_SCOPES:
        try:
            _, stddev = _params(cohort_params, scope)
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"cohort parameters for {scope!r} are missing or malformed") from exc
        if not stddev > 0:
            raise ValueError(f"cohort stddev for {scope!r} must be positive, got {stddev:g}")
