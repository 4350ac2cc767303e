"""
Tests for gitignore to exclusion glob translation
"""

import pytest

from cleanview.ignore import Rule, build_exclusion_map, translate_rule


@pytest.mark.parametrize("rule,expected", [
    ("!x", None),
    ("!important.log", None),
    ("*.log", "**/*.log"),
    ("/build", "build/**"),
    ("node_modules/", "**/node_modules/**"),
    (".DS_Store", "**/.DS_Store/**"),
    ("/docs/", "docs/**"),
    ("/out/*.map", "out/*.map"),
    ("temp?.txt", "**/temp?.txt"),
    ("logs/**", "**/logs/**"),
])
def test_translate_rule(rule, expected):
    assert translate_rule(rule) == expected


def test_translate_rule_only_strips_one_trailing_separator():
    assert translate_rule("cache//") == "**/cache//**"


def test_build_exclusion_map_skips_negations_and_keeps_order():
    rules = [
        Rule("node_modules/", ".gitignore"),
        Rule("!keep.log", ".gitignore"),
        Rule("*.log", ".gitignore"),
        Rule("*.log", "sub/.gitignore"),
        Rule("/build", "custom configuration"),
    ]

    exclusions = build_exclusion_map(rules)

    assert list(exclusions) == ["**/node_modules/**", "**/*.log", "build/**"]
    assert all(value is True for value in exclusions.values())


def test_build_exclusion_map_accepts_raw_patterns():
    assert build_exclusion_map(["*.tmp", "!x"]) == {"**/*.tmp": True}


def test_build_exclusion_map_empty():
    assert build_exclusion_map([]) == {}
