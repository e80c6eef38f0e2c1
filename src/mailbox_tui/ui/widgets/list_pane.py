# =============================================================================
# List Pane Base Widget
# =============================================================================
# A bordered Static that draws one row per item of a NavigableList, scrolled
# so the cursor stays visible. Subclasses decide how each row looks.
# =============================================================================

from typing import Any

from rich.text import Text
from textual.events import Resize
from textual.widgets import Static

from mailbox_tui.rendering import scroll_window
from mailbox_tui.tui import NavigableList

CURSOR_STYLE = "reverse"
UNFOCUSED_CURSOR_STYLE = "underline"


class ListPane(Static):
    """
    Draws a NavigableList.

    The pane keeps a reference to the list it last showed, so it can redraw
    itself when the terminal is resized.
    """

    DEFAULT_CSS = """
    ListPane {
        border: round $primary-darken-2;
        height: 1fr;
        padding: 0 1;
    }

    ListPane.focused {
        border: round $accent;
    }
    """

    TITLE = ""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__("", **kwargs)
        self._list: NavigableList | None = None
        self._focused = False

    def show(self, items: NavigableList, focused: bool) -> None:
        """Redraw the pane from `items`."""
        self._list = items
        self._focused = focused
        self.set_class(focused, "focused")
        self.border_title = self._title()
        self.update(self._render_rows())

    def on_resize(self, event: Resize) -> None:
        if self._list is not None:
            self.update(self._render_rows())

    def _title(self) -> str:
        items = self._list
        if items is None or items.cursor is None:
            position = "-"
        else:
            position = str(items.cursor + 1)
        return f"{self.TITLE} ({position}/{len(items) if items else 0})"

    def _render_rows(self) -> Text:
        items = self._list
        if items is None or not items.items:
            return Text(self.empty_text(), style="dim")

        width = max(self.content_size.width, 1)
        height = self.content_size.height or len(items)
        start, end = scroll_window(items.cursor, len(items), height)

        rows = Text()
        for index in range(start, end):
            row = self.render_row(items.items[index], width)
            if index == items.cursor:
                row.stylize(CURSOR_STYLE if self._focused else UNFOCUSED_CURSOR_STYLE)
            if index > start:
                rows.append("\n")
            rows.append_text(row)
        return rows

    def render_row(self, item: Any, width: int) -> Text:
        raise NotImplementedError

    def empty_text(self) -> str:
        return ""
