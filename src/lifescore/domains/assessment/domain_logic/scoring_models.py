"""Assessment scoring models and domain constants."""

from __future__ import annotations

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Domain constants (used by item_scorer, aggregator and the MCP tools)
# ---------------------------------------------------------------------------

CATEGORY_NAMES = [
    "financial",
    "health_fitness",
    "social",
    "romantic",
]

# First "_"-delimited token of a question id -> category
CATEGORY_PREFIXES = {
    "fin": "financial",
    "health": "health_fitness",
    "social": "social",
    "rom": "romantic",
}

# Percentile payloads use a shorter key for health_fitness.
PERCENTILE_KEYS = {
    "financial": "financial",
    "health_fitness": "health",
    "social": "social",
    "romantic": "romantic",
}

OVERALL_SCOPE = "overall"
COHORT_SCOPES = [OVERALL_SCOPE, *CATEGORY_NAMES]

RULE_TYPES = (
    "linear_map",
    "log_transform",
    "percentage",
    "optimal_range",
    "ratio",
)

# ---------------------------------------------------------------------------
# Fallback values
# ---------------------------------------------------------------------------

NEUTRAL_SCORE = 50.0            # Unscored category / ratio / unknown rule type
LINEAR_MAP_MISSING = 0.0        # linear_map entry absent or falsy
MIN_SCORE = 0.0
MAX_SCORE = 100.0

MIN_PERCENTILE = 0.1
MAX_PERCENTILE = 99.9


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CategoryScores:
    """Mean sub-score per life category (0-100)."""

    financial: float = NEUTRAL_SCORE
    health_fitness: float = NEUTRAL_SCORE
    social: float = NEUTRAL_SCORE
    romantic: float = NEUTRAL_SCORE

    def as_dict(self) -> dict[str, float]:
        """Return scores keyed by CATEGORY_NAMES."""
        return {name: getattr(self, name) for name in CATEGORY_NAMES}


@dataclass(frozen=True)
class AssessmentScores:
    """Category scores plus their unweighted overall mean."""

    categories: CategoryScores
    overall: float

    def as_dict(self) -> dict:
        return {"categories": self.categories.as_dict(), "overall": self.overall}


@dataclass(frozen=True)
class Percentiles:
    """Cohort-relative percentiles (0.1-99.9). Note ``health``, not ``health_fitness``."""

    overall: float
    financial: float
    health: float
    social: float
    romantic: float

    def as_dict(self) -> dict[str, float]:
        return {
            "overall": self.overall,
            "financial": self.financial,
            "health": self.health,
            "social": self.social,
            "romantic": self.romantic,
        }

    def for_category(self, category: str) -> float:
        """Look up a percentile by its score-side category name."""
        return getattr(self, PERCENTILE_KEYS[category])
