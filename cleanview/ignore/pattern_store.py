"""
In-memory record of collected ignore rules and where they came from
"""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Rule:
    """One ignore rule paired with its origin"""
    pattern: str
    source: str


class PatternStore:
    """
    Ordered collection of Rules.

    Discovery order is preserved and duplicates from different sources
    are kept as separate entries.
    """

    def __init__(self):
        self._rules: List[Rule] = []

    def add(self, pattern: str, source: str) -> Rule:
        rule = Rule(pattern=pattern, source=source)
        self._rules.append(rule)
        return rule

    def clear(self):
        self._rules.clear()

    def get_rules(self) -> List[Rule]:
        """Return a copy of the rules in discovery order"""
        return list(self._rules)

    def rules_from(self, source: str) -> List[Rule]:
        return [rule for rule in self._rules if rule.source == source]

    def __len__(self) -> int:
        return len(self._rules)
