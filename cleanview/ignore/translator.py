"""
Translation of gitignore rules into exclusion-map globs

The exclusion map has no negation and matches globs relative to the
workspace root, so each rule is rewritten into a single glob or dropped.
"""

from typing import Dict, Iterable, Optional, Union

from .pattern_store import Rule

RECURSIVE_PREFIX = "**/"
RECURSIVE_SUFFIX = "/**"


def translate_rule(rule: str) -> Optional[str]:
    """
    Convert one gitignore rule into an exclusion key

    Args:
        rule: Raw gitignore line

    Returns:
        The exclusion glob, or None when the rule has no equivalent
    """
    if rule.startswith('!'):
        return None

    body = rule
    if body.endswith('/'):
        body = body[:-1]

    anchored = body.startswith('/')
    if anchored:
        body = body[1:]

    # A literal name may be a directory; cover its contents too.
    # Checked on the rule body so the recursive prefix does not count.
    if '*' not in body and '?' not in body:
        body = body + RECURSIVE_SUFFIX

    if anchored:
        return body
    return RECURSIVE_PREFIX + body


def build_exclusion_map(rules: Iterable[Union[Rule, str]]) -> Dict[str, bool]:
    """
    Translate rules into an exclusion map

    Args:
        rules: Rules (or raw patterns) in discovery order

    Returns:
        Mapping of exclusion glob to True, skipping untranslatable rules
    """
    exclusions: Dict[str, bool] = {}
    for rule in rules:
        pattern = rule.pattern if isinstance(rule, Rule) else rule
        key = translate_rule(pattern)
        if key is not None:
            exclusions[key] = True
    return exclusions
