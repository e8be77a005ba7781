"""MCP tools for assessment scoring and cohort lookup."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP

if TYPE_CHECKING:
    from lifescore.core.rules.models import RuleSet
    from lifescore.core.rules.registry import RuleSetRegistry

from lifescore.domains.assessment.domain_logic.cohort import Cohort
from lifescore.domains.assessment.domain_logic.item_scorer import (
    get_question_category,
    score_item,
)
from lifescore.domains.assessment.domain_logic.scorecard import build_scorecard, scalar_answer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _resolve_ruleset(registry: RuleSetRegistry, name: str | None, default: str) -> RuleSet:
    """Look up the requested rule set (or the configured default)."""
    wanted = name or default
    ruleset = registry.get(wanted)
    if ruleset is None:
        available = ", ".join(registry.names()) or "none"
        raise ValueError(f"Unknown rule set {wanted!r} (available: {available})")
    return ruleset


def _validate_age(age: int) -> int:
    if age < 0 or age > 130:
        raise ValueError("age must be between 0 and 130")
    return age


def register_scoring_tools(
    mcp: FastMCP,
    registry: RuleSetRegistry,
    default_ruleset: str,
) -> None:
    """Register scoring tools on the MCP server."""

    @mcp.tool
    async def score_assessment(
        answers: list[dict[str, Any]],
        age: int | None = None,
        sex: str = "",
        country: str = "",
        ruleset: str = "",
    ) -> str:
        """Score a completed assessment and rank it within the respondent's cohort.

        Args:
            answers: Answer records, each {"question_id": "...", "value": ...}.
            age: Respondent age in years. Selects the cohort when given.
            sex: Respondent sex/gender label used in the cohort key.
            country: Country code (e.g. 'US', 'DE'); mapped to a region.
            ruleset: Name of the rule set to score with. Defaults to the configured one.
        """
        start_time = time.monotonic()
        rules = _resolve_ruleset(registry, ruleset, default_ruleset)
        cohort = (
            Cohort.from_profile(_validate_age(age), sex, country) if age is not None else None
        )

        scorecard = build_scorecard(answers, rules, cohort=cohort)
        elapsed_ms = (time.monotonic() - start_time) * 1000

        logger.info(
            "Scored assessment with %s v%s: %d scored, %d skipped (%.1f ms)",
            rules.name,
            rules.version,
            scorecard.scored_items,
            len(scorecard.skipped_items),
            elapsed_ms,
        )
        return json.dumps(scorecard.to_dict())

    @mcp.tool
    async def score_answer(question_id: str, value: Any = None, ruleset: str = "") -> str:
        """Score a single answer under its question's rule.

        Args:
            question_id: Question identifier (e.g. 'fin_income').
            value: Raw answer value, or a structured record reduced the same way
                score_assessment reduces it.
            ruleset: Name of the rule set to score with.
        """
        rules = _resolve_ruleset(registry, ruleset, default_ruleset)
        return json.dumps({
            "question_id": question_id,
            "category": get_question_category(question_id),
            "score": score_item(rules, question_id, scalar_answer(value)),
        })

    @mcp.tool
    def cohort_lookup(age: int, sex: str = "", country: str = "") -> str:
        """Resolve the demographic cohort a respondent is compared against.

        Args:
            age: Age in years.
            sex: Sex/gender label.
            country: Country code (e.g. 'US', 'FR').
        """
        cohort = Cohort.from_profile(_validate_age(age), sex, country)
        return json.dumps({**cohort.as_dict(), "cohort_key": cohort.key})
