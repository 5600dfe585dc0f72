"""In-memory worksheet grid with merged-cell resolution."""

from dataclasses import dataclass, field
from typing import Any, Optional


def cell_text(value: Any) -> str:
    """Render a raw cell value as stripped text."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def is_blank(value: Any) -> bool:
    """True when a cell holds nothing but whitespace."""
    return cell_text(value) == ""


@dataclass(frozen=True)
class MergeRange:
    """A merged block of cells, 0-based with inclusive bounds."""

    top: int
    left: int
    bottom: int
    right: int

    def contains(self, row: int, col: int) -> bool:
        return self.top <= row <= self.bottom and self.left <= col <= self.right

    @property
    def anchor(self) -> tuple[int, int]:
        return self.top, self.left


class MergeResolver:
    """Maps every cell covered by a merge to the merge's top-left anchor."""

    def __init__(self, merges: Optional[list[MergeRange]] = None):
        self._anchors: dict[tuple[int, int], tuple[int, int]] = {}
        for merge in merges or []:
            if merge.bottom < merge.top or merge.right < merge.left:
                continue
            for row in range(merge.top, merge.bottom + 1):
                for col in range(merge.left, merge.right + 1):
                    self._anchors[(row, col)] = merge.anchor

    def anchor(self, row: int, col: int) -> tuple[int, int]:
        """Return the cell that holds the value for ``(row, col)``."""
        return self._anchors.get((row, col), (row, col))

    def is_merged(self, row: int, col: int) -> bool:
        return (row, col) in self._anchors


@dataclass
class Worksheet:
    """A sheet as rows of scalar cells plus its merged ranges.

    Rows may be ragged; missing trailing cells read as blank. All reads go
    through the merge resolver, so a merged block yields its anchor value
    for every covered cell.
    """

    name: str
    rows: list[list[Any]] = field(default_factory=list)
    merges: list[MergeRange] = field(default_factory=list)

    def __post_init__(self):
        self._resolver = MergeResolver(self.merges)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def col_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    def raw(self, row: int, col: int) -> Any:
        """Value physically stored at ``(row, col)``, or None outside the grid."""
        if row < 0 or col < 0 or row >= len(self.rows):
            return None
        cells = self.rows[row]
        if col >= len(cells):
            return None
        return cells[col]

    def value(self, row: int, col: int) -> Any:
        """Logical value at ``(row, col)`` after merge resolution."""
        anchor_row, anchor_col = self._resolver.anchor(row, col)
        return self.raw(anchor_row, anchor_col)

    def text(self, row: int, col: int) -> str:
        return cell_text(self.value(row, col))

    def is_merged(self, row: int, col: int) -> bool:
        return self._resolver.is_merged(row, col)

    def row_values(self, row: int, start_col: int = 0, end_col: Optional[int] = None) -> list[Any]:
        """Resolved values of a row between two columns (end exclusive)."""
        end = self.col_count if end_col is None else min(end_col, self.col_count)
        return [self.value(row, col) for col in range(start_col, end)]

    def col_values(self, col: int, start_row: int = 0, end_row: Optional[int] = None) -> list[Any]:
        """Resolved values of a column between two rows (end exclusive)."""
        end = self.row_count if end_row is None else min(end_row, self.row_count)
        return [self.value(row, col) for row in range(start_row, end)]

    def is_blank_row(self, row: int) -> bool:
        return all(is_blank(value) for value in self.row_values(row))

    def is_blank_col(self, col: int, start_row: int = 0, end_row: Optional[int] = None) -> bool:
        return all(is_blank(value) for value in self.col_values(col, start_row, end_row))

    def is_empty(self) -> bool:
        return all(self.is_blank_row(row) for row in range(self.row_count))


def column_letter(index: int) -> str:
    """Convert a 0-based column index to a letter (0 -> "A", 26 -> "AA")."""
    letters = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def cell_reference(row: int, col: int) -> str:
    """A1-style reference for 0-based coordinates."""
    return f"{column_letter(col)}{row + 1}"
