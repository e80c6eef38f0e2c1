# =============================================================================
# Widgets
# =============================================================================
# Reusable Textual widgets for the TUI panes.
# =============================================================================

from mailbox_tui.ui.widgets.list_pane import ListPane
from mailbox_tui.ui.widgets.mailbox_pane import MailboxPane
from mailbox_tui.ui.widgets.message_pane import MessagePane

__all__ = ["ListPane", "MailboxPane", "MessagePane"]
