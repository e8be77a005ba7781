"""Deterministic item scoring: one raw answer -> 0-100 sub-score.

``score_item`` resolves the question's category from its id prefix, looks up
the scoring rule and dispatches on the rule type. It never raises for
malformed answers: unparsable values fall back to the rule type's default,
out-of-range values are clamped, and unknown rule types score neutral.

Rules may be ``ScoringRule`` instances (from the YAML loader) or the raw
tagged records ``{"type": ..., ...}`` a caller passes directly.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

from lifescore.core.rules.models import RuleSet, ScoringRule
from lifescore.domains.assessment.domain_logic.scoring_models import (
    CATEGORY_PREFIXES,
    LINEAR_MAP_MISSING,
    MAX_SCORE,
    MIN_SCORE,
    NEUTRAL_SCORE,
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _clamp(value: float, lo: float = MIN_SCORE, hi: float = MAX_SCORE) -> float:
    """Clamp a value to [lo, hi]."""
    return max(lo, min(hi, value))


def _num(val: Any, default: float | None = None) -> float | None:
    """Safely convert to a finite float, returning default otherwise."""
    if val is None or isinstance(val, bool):
        return default
    try:
        result = float(val)
    except (TypeError, ValueError):
        return default
    return result if math.isfinite(result) else default


def _parse_index(raw_value: Any, truncate: bool = False) -> int | None:
    """Parse an answer into a list index.

    Strings use their leading integer ("7", " 3 ", "4 stars"); anything
    without one is index 0, as are missing and non-numeric values.
    Fractional numbers are truncated when ``truncate`` is set and name no
    entry otherwise. Returns None when the answer names no entry.
    """
    if isinstance(raw_value, str):
        match = _LEADING_INT.match(raw_value)
        index = int(match.group(1)) if match else 0
    elif isinstance(raw_value, bool) or raw_value is None:
        index = 0
    elif isinstance(raw_value, (int, float)):
        if not math.isfinite(raw_value):
            return None
        if raw_value != int(raw_value) and not truncate:
            return None
        index = int(raw_value)
    else:
        index = 0
    return index if index >= 0 else None


def _pick(
    values: list[float] | tuple[float, ...],
    raw_value: Any,
    default: float,
    truncate: bool = False,
) -> float:
    """Shared indexing for linear_map and optimal_range."""
    if not values:
        return default
    index = _parse_index(raw_value, truncate)
    if index is None:
        return default
    entry = _num(values[min(index, len(values) - 1)])
    return entry if entry else default


# ---------------------------------------------------------------------------
# Rule types
# ---------------------------------------------------------------------------

def map_linear(raw_value: Any, values: list[float] | tuple[float, ...]) -> float:
    """Index ``values`` by the answer; missing or zero entries score 0."""
    return _pick(values, raw_value, LINEAR_MAP_MISSING)


def map_log_transform(raw_value: Any, lo: float, hi: float, reverse: bool = False) -> float:
    """Logarithmic position of the clamped answer within [lo, hi], as 0-100.

    The lower anchor is ``ln(max(1, lo) + 1)``; anything at or below it
    scores 0 (100 when reversed).
    """
    value = _clamp(_num(raw_value, default=lo), lo, hi)
    log_min = math.log(max(1.0, lo) + 1)
    log_max = math.log(hi + 1) if hi > -1 else log_min
    if log_max <= log_min:
        return NEUTRAL_SCORE

    # Values under the anchor clamp to 0 anyway; this keeps log() in domain.
    log_value = math.log(max(value, max(1.0, lo)) + 1)
    score = (log_value - log_min) / (log_max - log_min) * 100
    if reverse:
        score = 100 - score
    return _clamp(score)


def map_percentage(raw_value: Any, lo: float, hi: float) -> float:
    """Clamped answer as a share of ``hi``."""
    if hi == 0:
        return NEUTRAL_SCORE
    value = _clamp(_num(raw_value, default=lo), lo, hi)
    return value / hi * 100


def map_optimal_range(raw_value: Any, values: list[float] | tuple[float, ...]) -> float:
    """Like map_linear, but fractional answers truncate and missing entries are neutral."""
    return _pick(values, raw_value, NEUTRAL_SCORE, truncate=True)


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def get_question_category(question_id: Any) -> str | None:
    """Category for a question id, from its first ``_``-delimited token."""
    if not isinstance(question_id, str):
        return None
    return CATEGORY_PREFIXES.get(question_id.split("_", 1)[0])


def _category_table(rules: RuleSet | Mapping[str, Any], category: str) -> Mapping[str, Any]:
    if isinstance(rules, RuleSet):
        return rules.rules_for(category)
    table = rules.get(category) if isinstance(rules, Mapping) else None
    return table if isinstance(table, Mapping) else {}


def _bounds(rule: ScoringRule | Mapping[str, Any]) -> tuple[float, float] | None:
    if isinstance(rule, ScoringRule):
        return (rule.bounds.min, rule.bounds.max) if rule.bounds else None
    raw = rule.get("bounds")
    if not isinstance(raw, Mapping):
        return None
    lo = _num(raw.get("min"))
    hi = _num(raw.get("max"))
    if lo is None or hi is None:
        return None
    return lo, hi


def _values(rule: ScoringRule | Mapping[str, Any]) -> list[float] | tuple[float, ...]:
    if isinstance(rule, ScoringRule):
        return rule.values
    raw = rule.get("values")
    return list(raw) if isinstance(raw, (list, tuple)) else []


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def score_rule(rule: ScoringRule | Mapping[str, Any], raw_value: Any) -> float:
    """Score a raw answer under one rule."""
    rule_type = rule.type if isinstance(rule, ScoringRule) else rule.get("type")

    if rule_type == "linear_map":
        return map_linear(raw_value, _values(rule))

    if rule_type == "optimal_range":
        return map_optimal_range(raw_value, _values(rule))

    if rule_type in ("log_transform", "percentage"):
        bounds = _bounds(rule)
        if bounds is None:
            return NEUTRAL_SCORE
        lo, hi = bounds
        if rule_type == "percentage":
            return map_percentage(raw_value, lo, hi)
        reverse = rule.reverse if isinstance(rule, ScoringRule) else bool(rule.get("reverse", False))
        return map_log_transform(raw_value, lo, hi, reverse)

    # ratio and anything unrecognized
    return NEUTRAL_SCORE


def score_item(
    category_rules: RuleSet | Mapping[str, Any],
    question_id: str,
    raw_value: Any,
) -> float | None:
    """Score one answer.

    Returns None when the question's category cannot be resolved or no rule
    exists for it; such answers are excluded from aggregation.
    """
    category = get_question_category(question_id)
    if category is None:
        return None

    rule = _category_table(category_rules, category).get(question_id)
    if not isinstance(rule, (ScoringRule, Mapping)):
        return None

    return score_rule(rule, raw_value)
