# =============================================================================
# Mailbox Pane Widget
# =============================================================================
# The left pane: every mailbox as an indented tree with message counts.
#
#   backups (12)
#     nas (9)
#     laptop (3)
#   cron (1)
# =============================================================================

from rich.text import Text

from mailbox_tui.core import MailboxNode
from mailbox_tui.rendering import TruncatedLine
from mailbox_tui.ui.widgets.list_pane import ListPane

INDENT = "  "
COUNT_STYLE = "dim"


class MailboxPane(ListPane):
    """Displays the mailbox tree list."""

    DEFAULT_CSS = """
    MailboxPane {
        width: 32;
        min-width: 20;
    }
    """

    TITLE = "Mailboxes"

    def render_row(self, item: MailboxNode, width: int) -> Text:
        line = TruncatedLine(width)
        line.append(f"{INDENT * item.depth}{item.path.leaf_name}")
        line.append(f" ({item.total_count})", COUNT_STYLE)
        return line.text

    def empty_text(self) -> str:
        return "No mailboxes"
