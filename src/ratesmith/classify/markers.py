"""Bullet and numbering markers at the start of list lines."""

import re
from typing import Optional

from .models import ListFormat

BULLET_PATTERN = re.compile(r"^\s*(?:[•◦▪▫‣⁃●○■□·\-\*\+–—>]|o(?=\s))\s*")

NUMBERED_PATTERN = re.compile(
    r"^\s*(?:\d{1,3}[.)]|\(\d{1,3}\)|\([a-z]\)|[a-z][.)]|"
    r"(?:x|ix|iv|v?i{1,3}|vi{0,3})[.)])\s+",
    re.IGNORECASE,
)


def line_format(text: str) -> Optional[ListFormat]:
    """Return the list format a line is marked with, if any."""
    if BULLET_PATTERN.match(text):
        return ListFormat.BULLET_POINTS
    if NUMBERED_PATTERN.match(text):
        return ListFormat.NUMBERED
    return None


def strip_list_marker(text: str) -> str:
    """Remove a leading bullet or number marker."""
    stripped = BULLET_PATTERN.sub("", text, count=1)
    if stripped != text:
        return stripped.strip()
    return NUMBERED_PATTERN.sub("", text, count=1).strip()


def dominant_format(lines: list[str]) -> ListFormat:
    """Format shared by most marked lines; plain text when none are marked."""
    counts = {ListFormat.BULLET_POINTS: 0, ListFormat.NUMBERED: 0}
    for line in lines:
        fmt = line_format(line)
        if fmt is not None:
            counts[fmt] += 1
    if not any(counts.values()):
        return ListFormat.PLAIN_TEXT
    if counts[ListFormat.NUMBERED] > counts[ListFormat.BULLET_POINTS]:
        return ListFormat.NUMBERED
    return ListFormat.BULLET_POINTS
