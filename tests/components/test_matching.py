"""Tests for conveyor.components.matching."""

from __future__ import annotations

import re

from conveyor.components.matching import AssetMatcher, pattern_matches
from conveyor.models import AssetStats


def test_pattern_and_ignore_scenario() -> None:
    matcher = AssetMatcher(patterns=["*.e2e.js"], ignore=["skip/"])

    matched = matcher.filter(["a.e2e.js", "skip/b.e2e.js", "c.js"])

    assert matched == ["a.e2e.js"]
    assert matcher.stats == AssetStats(total=3, processed=1, ignored=2)


def test_regex_patterns_are_searched() -> None:
    pattern = re.compile(r"\.spec\.py$")

    assert pattern_matches(pattern, "tests/api.spec.py")
    assert not pattern_matches(pattern, "tests/api.spec.pyc")


def test_plain_strings_match_as_substrings() -> None:
    assert pattern_matches("node_modules", "web/node_modules/lib/index.js")
    assert not pattern_matches("vendor/", "src/app.js")


def test_globs_match_basename_in_nested_directories() -> None:
    assert pattern_matches("test_*.py", "pkg/tests/test_api.py")
    assert not pattern_matches("test_*.py", "pkg/tests/api_test.py")


def test_empty_patterns_reject_everything() -> None:
    matcher = AssetMatcher(ignore=[re.compile(r"^build/")])

    assert matcher.filter(["src/app.py", "build/app.py"]) == []
    assert matcher.stats == AssetStats(total=2, processed=0, ignored=2)
