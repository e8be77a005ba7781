"""Shared test fixtures for Life Scorecard tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RULES_DIR", "")
    monkeypatch.setenv("DEFAULT_RULESET", "default")
    monkeypatch.setenv("SCORECARD_HOST", "127.0.0.1")
    monkeypatch.setenv("SCORECARD_ALLOW_INSECURE_BIND", "false")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from lifescore.core.rules.loader import load_ruleset, load_ruleset_file  # noqa: E402
from lifescore.core.rules.models import RuleSet  # noqa: E402
from lifescore.core.rules.registry import RuleSetRegistry  # noqa: E402

BUNDLED_RULES_DIR = _SRC_DIR / "lifescore" / "domains" / "assessment" / "rules"

PLACEHOLDER_COHORT: dict[str, dict[str, float]] = {
    "overall": {"mean": 50, "stddev": 15},
    "financial": {"mean": 50, "stddev": 20},
    "health_fitness": {"mean": 50, "stddev": 20},
    "social": {"mean": 50, "stddev": 20},
    "romantic": {"mean": 50, "stddev": 20},
}


def make_ruleset_doc(
    name: str = "test_rules",
    scoring: dict[str, Any] | None = None,
    cohort_stats: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create a rule set document with sensible defaults."""
    return {
        "name": name,
        "version": "1.0.0",
        "description": f"Test rule set {name}",
        "scoring": scoring if scoring is not None else {
            "financial": {
                "fin_savings": {"type": "percentage", "bounds": {"min": 0, "max": 20000}},
                "fin_income": {
                    "type": "log_transform",
                    "bounds": {"min": 0, "max": 500000},
                    "reverse": False,
                },
            },
            "health_fitness": {
                "health_exercise": {"type": "linear_map", "values": [10, 20, 30]},
            },
            "social": {
                "social_friends": {"type": "optimal_range", "values": [20, 60, 100]},
            },
            "romantic": {
                "rom_balance": {"type": "ratio"},
            },
        },
        "cohort_stats": cohort_stats if cohort_stats is not None else {
            "default": PLACEHOLDER_COHORT,
        },
    }


@pytest.fixture
def ruleset_doc() -> dict[str, Any]:
    """A fresh, valid rule set document tests may mutate."""
    return make_ruleset_doc()


@pytest.fixture
def test_ruleset() -> RuleSet:
    """A small validated rule set covering every rule type."""
    return load_ruleset(make_ruleset_doc())


@pytest.fixture
def default_ruleset() -> RuleSet:
    """The bundled default rule set."""
    return load_ruleset_file(BUNDLED_RULES_DIR / "default.yaml")


@pytest.fixture
def registry(test_ruleset: RuleSet, default_ruleset: RuleSet) -> RuleSetRegistry:
    """Registry holding the bundled default and the small test rule set."""
    reg = RuleSetRegistry()
    reg.register(default_ruleset)
    reg.register(test_ruleset)
    return reg
