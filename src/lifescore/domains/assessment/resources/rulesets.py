"""MCP Resources for rule set discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

from lifescore.domains.assessment.domain_logic.scoring_models import CATEGORY_NAMES

if TYPE_CHECKING:
    from lifescore.core.rules.registry import RuleSetRegistry


def register_ruleset_resources(mcp: FastMCP, registry: RuleSetRegistry) -> None:
    """Register rule set discovery resources on the MCP server."""

    @mcp.resource("rules://assessment/registry")
    def ruleset_registry_resource() -> str:
        """Discover the loaded scoring rule sets."""
        rulesets = registry.all()
        return json.dumps(
            {
                "ruleset_count": len(rulesets),
                "rulesets": [
                    {
                        "name": r.name,
                        "version": r.version,
                        "description": r.description,
                        "questions": {
                            category: sorted(r.rules_for(category))
                            for category in CATEGORY_NAMES
                        },
                        "cohort_keys": sorted(r.cohort_stats),
                    }
                    for r in rulesets
                ],
            },
            indent=2,
        )
