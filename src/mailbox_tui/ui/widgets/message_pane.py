# =============================================================================
# Message Pane Widget
# =============================================================================
# The right pane: the messages passing the current filter, one per line,
# composed by the MessageFormatter and truncated to the pane width.
# Selected messages are highlighted.
# =============================================================================

from typing import Any

from rich.text import Text

from mailbox_tui.core import Message
from mailbox_tui.rendering import MessageFormatter
from mailbox_tui.tui import MultiselectList
from mailbox_tui.ui.widgets.list_pane import ListPane

SELECTED_STYLE = "bold on dark_blue"


class MessagePane(ListPane):
    """Displays the message list with cursor and selection."""

    DEFAULT_CSS = """
    MessagePane {
        width: 1fr;
    }
    """

    TITLE = "Messages"

    def __init__(self, formatter: MessageFormatter | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.formatter = formatter or MessageFormatter()

    def render_row(self, item: Message, width: int) -> Text:
        row = self.formatter.with_max_columns(width).compose_line(item)
        items = self._list
        if isinstance(items, MultiselectList) and items.is_selected(item):
            row.stylize(SELECTED_STYLE)
        return row

    def empty_text(self) -> str:
        return "No messages"
