"""
Line normalization and whitespace tokenization
"""

import re
from typing import Iterator

_TOKEN = re.compile(r"\S+")


def normalize(line: str, case_sensitive: bool) -> str:
    """Return the line unchanged, or lower-cased when counting case-insensitively"""
    return line if case_sensitive else line.lower()


def tokenize(line: str) -> Iterator[str]:
    """Lazily yield the whitespace-separated tokens of a line"""
    return (match.group(0) for match in _TOKEN.finditer(line))
