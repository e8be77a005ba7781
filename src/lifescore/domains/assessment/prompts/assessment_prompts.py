"""MCP Prompts: interaction templates for reviewing a scorecard."""

from __future__ import annotations

from fastmcp import FastMCP


def register_assessment_prompts(mcp: FastMCP) -> None:
    """Register assessment domain MCP prompts."""

    @mcp.prompt()
    def assessment_review_prompt(focus: str = "overall") -> str:
        """Prompt template for walking through a scored assessment."""
        return f"""I just completed the life scorecard assessment. Focusing on {focus}, please:

1. Explain my overall score and percentile in plain language
2. Compare my financial, health & fitness, social and romantic scores
3. Point out which category pulls my overall percentile down the most
4. Note any category that was scored neutral because I skipped its questions
5. Suggest one concrete thing to work on this month

Percentiles compare me with people of my age band, sex and region."""
