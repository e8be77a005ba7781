"""Rule set loader: reads and validates YAML scoring configuration from disk."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from lifescore.core.rules.models import Bounds, CohortParams, RuleSet, ScoringRule
from lifescore.core.rules.registry import RuleSetRegistry
from lifescore.domains.assessment.domain_logic.scoring_models import (
    CATEGORY_NAMES,
    CATEGORY_PREFIXES,
    COHORT_SCOPES,
    RULE_TYPES,
)

logger = logging.getLogger(__name__)

_INDEXED_TYPES = ("linear_map", "optimal_range")
_BOUNDED_TYPES = ("log_transform", "percentage")
_RULE_FIELDS = {"type", "values", "bounds", "reverse"}


class RuleSetError(ValueError):
    """Raised when a rule set definition is invalid."""


def _number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RuleSetError(f"{where}: expected a number, got {value!r}")
    if not math.isfinite(value):
        raise RuleSetError(f"{where}: expected a finite number, got {value!r}")
    return float(value)


def load_ruleset_directory(directory: str | Path, registry: RuleSetRegistry) -> int:
    """Load all YAML rule sets from a directory (recursively).

    Returns the number of rule sets loaded.
    Skips files starting with underscore.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Rule set directory does not exist: %s", directory)
        return 0

    count = 0
    for path in sorted(directory.rglob("*.yaml")):
        if path.name.startswith("_"):
            continue
        try:
            ruleset = load_ruleset_file(path)
            registry.register(ruleset)
            count += 1
            logger.info(
                "Loaded rule set: %s (v%s, %d questions)",
                ruleset.name,
                ruleset.version,
                len(ruleset.question_ids()),
            )
        except Exception:
            logger.exception("Failed to load rule set from %s", path)
    return count


def load_ruleset_file(path: Path) -> RuleSet:
    """Parse a YAML file into a validated RuleSet."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise RuleSetError(f"{path}: expected a mapping at the top level")
    data.setdefault("name", path.stem)
    return load_ruleset(data)


def load_ruleset(data: dict[str, Any]) -> RuleSet:
    """Build a validated RuleSet from a parsed document."""
    name = str(data.get("name", "")).strip()
    if not name:
        raise RuleSetError("Rule set is missing a name")

    scoring_data = data.get("scoring") or {}
    if not isinstance(scoring_data, dict):
        raise RuleSetError(f"{name}: 'scoring' must be a mapping")

    scoring: dict[str, MappingProxyType] = {}
    for category, questions in scoring_data.items():
        if category not in CATEGORY_NAMES:
            raise RuleSetError(f"{name}: unknown category {category!r}")
        if not isinstance(questions, dict):
            raise RuleSetError(f"{name}.{category}: expected a mapping of question rules")
        scoring[category] = MappingProxyType({
            qid: _parse_rule(f"{name}.{category}", category, qid, rule)
            for qid, rule in questions.items()
        })

    cohort_data = data.get("cohort_stats") or {}
    if not isinstance(cohort_data, dict):
        raise RuleSetError(f"{name}: 'cohort_stats' must be a mapping")
    cohort_stats = MappingProxyType({
        str(key): _parse_cohort(f"{name}.cohort_stats.{key}", entry)
        for key, entry in cohort_data.items()
    })
    if "default" not in cohort_stats:
        raise RuleSetError(f"{name}: cohort_stats must define a 'default' cohort")

    return RuleSet(
        name=name,
        version=str(data.get("version", "0.0.0")),
        description=str(data.get("description", "")).strip(),
        scoring=MappingProxyType(scoring),
        cohort_stats=cohort_stats,
    )


def _parse_rule(where: str, category: str, question_id: Any, data: Any) -> ScoringRule:
    if not isinstance(question_id, str):
        raise RuleSetError(f"{where}: question ids must be strings, got {question_id!r}")
    where = f"{where}.{question_id}"
    prefix_category = CATEGORY_PREFIXES.get(question_id.split("_", 1)[0])
    if prefix_category != category:
        raise RuleSetError(
            f"{where}: question id prefix resolves to {prefix_category!r}, not {category!r}"
        )
    if not isinstance(data, dict) or not data.get("type"):
        raise RuleSetError(f"{where}: rule must be a mapping with a 'type'")

    rule_type = str(data["type"])
    if rule_type not in RULE_TYPES:
        logger.warning("%s: unknown rule type %r will score neutral", where, rule_type)

    values: tuple[float, ...] = ()
    if rule_type in _INDEXED_TYPES:
        raw_values = data.get("values")
        if not isinstance(raw_values, list) or not raw_values:
            raise RuleSetError(f"{where}: {rule_type} needs a non-empty 'values' list")
        values = tuple(_number(v, f"{where}.values[{i}]") for i, v in enumerate(raw_values))

    bounds: Bounds | None = None
    if rule_type in _BOUNDED_TYPES:
        raw_bounds = data.get("bounds")
        if not isinstance(raw_bounds, dict):
            raise RuleSetError(f"{where}: {rule_type} needs 'bounds' with min and max")
        lo = _number(raw_bounds.get("min"), f"{where}.bounds.min")
        hi = _number(raw_bounds.get("max"), f"{where}.bounds.max")
        if hi <= lo:
            raise RuleSetError(f"{where}: bounds.max must be greater than bounds.min")
        if rule_type == "percentage" and lo < 0:
            raise RuleSetError(f"{where}: percentage bounds.min must not be negative")
        bounds = Bounds(min=lo, max=hi)

    return ScoringRule(
        question_id=question_id,
        type=rule_type,
        values=values,
        bounds=bounds,
        reverse=bool(data.get("reverse", False)),
        extra=MappingProxyType({k: v for k, v in data.items() if k not in _RULE_FIELDS}),
    )


def _parse_cohort(where: str, data: Any) -> MappingProxyType:
    if not isinstance(data, dict):
        raise RuleSetError(f"{where}: expected a mapping of scopes")
    params: dict[str, CohortParams] = {}
    for scope in COHORT_SCOPES:
        entry = data.get(scope)
        if not isinstance(entry, dict):
            raise RuleSetError(f"{where}: missing scope {scope!r}")
        mean = _number(entry.get("mean"), f"{where}.{scope}.mean")
        stddev = _number(entry.get("stddev"), f"{where}.{scope}.stddev")
        if stddev <= 0:
            raise RuleSetError(f"{where}.{scope}: stddev must be positive, got {stddev:g}")
        params[scope] = CohortParams(mean=mean, stddev=stddev)
    return MappingProxyType(params)
