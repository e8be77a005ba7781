"""Rule set registry: in-memory index for loaded rule sets."""

from __future__ import annotations

import logging

from lifescore.core.rules.models import RuleSet

logger = logging.getLogger(__name__)


class RuleSetRegistry:
    """In-memory registry of all loaded rule sets, keyed by name."""

    def __init__(self) -> None:
        self._rulesets: dict[str, RuleSet] = {}

    def register(self, ruleset: RuleSet) -> None:
        """Add a rule set; names must be unique."""
        if ruleset.name in self._rulesets:
            raise ValueError(f"Duplicate rule set registered: {ruleset.name!r}")
        self._rulesets[ruleset.name] = ruleset

    def get(self, name: str) -> RuleSet | None:
        """Look up a rule set by name."""
        return self._rulesets.get(name)

    def names(self) -> list[str]:
        return sorted(self._rulesets)

    def all(self) -> list[RuleSet]:
        """Return all registered rule sets."""
        return list(self._rulesets.values())

    def __len__(self) -> int:
        return len(self._rulesets)
