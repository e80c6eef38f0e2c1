# =============================================================================
# UI Module
# =============================================================================
# Textual-based user interface.
#
# Structure:
#   - screens/: the main browsing screen
#   - widgets/: the mailbox and message panes
#
# The widgets only draw; all navigation logic lives in mailbox_tui.tui.
# =============================================================================

from mailbox_tui.ui.screens.main import MainScreen
from mailbox_tui.ui.widgets import MailboxPane, MessagePane

__all__ = ["MainScreen", "MailboxPane", "MessagePane"]
