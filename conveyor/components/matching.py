"""Pattern and ignore matching for discovered assets."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Any, List, Sequence

from ..models import AssetStats

_GLOB_CHARS = set("*?[")


def pattern_matches(pattern: Any, value: str) -> bool:
    """Return True when ``value`` matches ``pattern``.

    Compiled regexes are searched. Strings holding glob characters are matched
    against the whole path and against its basename. Other strings match as
    substrings, so ``"skip/"`` catches everything under a ``skip`` directory.
    """
    if isinstance(pattern, re.Pattern):
        return pattern.search(value) is not None
    text = str(pattern)
    if _GLOB_CHARS.intersection(text):
        basename = value.rsplit("/", 1)[-1]
        return fnmatchcase(value, text) or fnmatchcase(basename, text)
    return text in value


@dataclass
class AssetMatcher:
    """Accept/skip decisions with running counters.

    A path is accepted only when some pattern matches it and no ignore rule
    does, so an empty pattern list accepts nothing.
    """

    patterns: Sequence[Any] = ()
    ignore: Sequence[Any] = ()
    stats: AssetStats = field(default_factory=AssetStats)

    def accepts(self, path: str) -> bool:
        matched = any(pattern_matches(p, path) for p in self.patterns)
        return matched and not any(pattern_matches(i, path) for i in self.ignore)

    def match(self, path: str) -> bool:
        """Like ``accepts`` but also updates ``stats``."""
        result = self.accepts(path)
        self.stats.total += 1
        if result:
            self.stats.processed += 1
        else:
            self.stats.ignored += 1
        return result

    def filter(self, paths: Sequence[str]) -> List[str]:
        return [path for path in paths if self.match(path)]


__all__ = ["AssetMatcher", "pattern_matches"]
