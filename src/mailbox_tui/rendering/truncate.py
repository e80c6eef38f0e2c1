# =============================================================================
# Line Truncation
# =============================================================================
# Terminal-width aware truncation. Widths are measured in terminal cells with
# rich's cell_len, so wide characters (CJK, most emoji) count as two columns
# and a truncated line never spills past the edge of the terminal.
# =============================================================================

from rich.cells import cell_len
from rich.style import Style
from rich.text import Text

ELLIPSIS = "…"


def truncate_string(text: str, max_columns: int) -> str:
    """
    Shorten `text` to at most `max_columns` cells, ending with an ellipsis
    when anything was cut.

    Example:
        >>> truncate_string("Hello, world!", 6)
        'Hello…'
    """
    if max_columns <= 0:
        return ""
    if cell_len(text) <= max_columns:
        return text

    budget = max_columns - cell_len(ELLIPSIS)
    kept: list[str] = []
    used = 0
    for char in text:
        width = cell_len(char)
        if used + width > budget:
            break
        kept.append(char)
        used += width
    return "".join(kept) + ELLIPSIS


class TruncatedLine:
    """
    A line of styled text with a column limit, built up piece by piece.

    Every appended piece is truncated to the columns that remain, so the
    finished line never exceeds `max_columns`.

    Usage:
        >>> line = TruncatedLine(9)
        >>> line.append("hello ")
        >>> line.append("world", "red")
        >>> line.text.plain
        'hello wo…'
    """

    def __init__(self, max_columns: int) -> None:
        self.remaining_columns = max_columns
        self.text = Text()

    def append(self, chars: str, style: str | Style | None = None) -> None:
        truncated = truncate_string(chars, self.remaining_columns)
        self.remaining_columns -= cell_len(truncated)
        self.text.append(truncated, style=style)

    def __str__(self) -> str:
        return self.text.plain
