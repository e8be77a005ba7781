"""Life Scorecard MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastmcp import FastMCP

from lifescore.core.config.settings import get_settings
from lifescore.core.rules.loader import load_ruleset_directory
from lifescore.core.rules.registry import RuleSetRegistry
from lifescore.domains.assessment.prompts.assessment_prompts import register_assessment_prompts
from lifescore.domains.assessment.resources.rulesets import register_ruleset_resources
from lifescore.domains.assessment.tools.scoring_tools import register_scoring_tools

logger = logging.getLogger(__name__)

# Bundled rule set YAML lives under src/lifescore/domains/assessment/rules/
_RULES_DIR = Path(__file__).resolve().parent.parent.parent / "domains" / "assessment" / "rules"

VERSION = "0.1.0"


def create_app(*, registry_override: RuleSetRegistry | None = None) -> FastMCP:
    """Create and configure the Life Scorecard MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads scoring rule sets into a registry (unless one is injected)
    3. Registers all tools, resources, and prompts
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "Life Scorecard",
        instructions=(
            "Life scorecard assessment server. Scores questionnaire answers per "
            "life category (financial, health & fitness, social, romantic) on a "
            "0-100 scale and ranks them against the respondent's demographic cohort."
        ),
    )

    # --- Initialize rule sets ---
    if registry_override is not None:
        registry = registry_override
    else:
        registry = RuleSetRegistry()
        rules_dir = Path(settings.rules_dir).expanduser() if settings.rules_dir else _RULES_DIR
        loaded = load_ruleset_directory(rules_dir, registry)
        logger.info("Loaded %d rule sets from %s", loaded, rules_dir)

    if registry.get(settings.default_ruleset) is None:
        logger.warning(
            "Default rule set %r is not loaded; callers must name a rule set explicitly",
            settings.default_ruleset,
        )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "Life Scorecard",
            "version": VERSION,
            "rulesets_loaded": len(registry),
            "default_ruleset": settings.default_ruleset,
        }

    register_scoring_tools(server, registry, settings.default_ruleset)
    logger.info("Scoring tools registered")

    # --- Register resources ---
    register_ruleset_resources(server, registry)

    # --- Register prompts ---
    register_assessment_prompts(server)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
