"""
Skip-pattern loading and line filtering.

Pattern files come from the shared cache. Each line of a file is one
regular expression; every match is removed from a record before it is
tokenized.
"""

import re
import logging
from typing import Iterable, Iterator, Tuple

from jarcount.common.errors import CacheReadError

logger = logging.getLogger(__name__)


class SkipPatternSet:
    """Read-only, insertion-ordered set of compiled skip patterns"""

    __slots__ = ("_patterns",)

    def __init__(self, patterns: Iterable[str] = ()):
        compiled = {}
        for pattern in patterns:
            if pattern in compiled:
                continue
            try:
                compiled[pattern] = re.compile(pattern)
            except re.error as e:
                logger.warning(f"Ignoring invalid skip pattern {pattern!r}: {e}")
        self._patterns: Tuple[re.Pattern, ...] = tuple(compiled.values())

    def __iter__(self) -> Iterator[re.Pattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, pattern: str) -> bool:
        return any(p.pattern == pattern for p in self._patterns)

    def __bool__(self) -> bool:
        return bool(self._patterns)

    def __repr__(self) -> str:
        return f"SkipPatternSet({[p.pattern for p in self._patterns]!r})"

    @property
    def sources(self) -> Tuple[str, ...]:
        """Pattern strings in application order"""
        return tuple(p.pattern for p in self._patterns)


def load_patterns(paths: Iterable[str]) -> SkipPatternSet:
    """
    Load skip patterns from local copies of cached files

    A file that cannot be read is logged and skipped, so the result may
    hold patterns from only some files, or none at all.

    Args:
        paths: Local paths of pattern files

    Returns:
        SkipPatternSet with every line of every readable file
    """
    patterns = []
    for path in paths:
        try:
            patterns.extend(_read_pattern_file(path))
        except (OSError, UnicodeDecodeError) as e:
            error = CacheReadError(str(path), str(e))
            logger.error(str(error))
            continue

    pattern_set = SkipPatternSet(patterns)
    logger.info(f"Loaded {len(pattern_set)} skip patterns")
    return pattern_set


def _read_pattern_file(path: str) -> list:
    # Read the whole file first so a failure halfway through adds nothing
    with open(path, "r", encoding="utf-8") as f:
        return [line.rstrip("\r\n") for line in f]


def filter_line(line: str, patterns: SkipPatternSet) -> str:
    """Remove every match of every pattern, in the set's insertion order"""
    for pattern in patterns:
        line = pattern.sub("", line)
    return line
