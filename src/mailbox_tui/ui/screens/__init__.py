# =============================================================================
# UI Screens
# =============================================================================
# Full-screen views for the application. The TUI has a single screen,
# MainScreen, showing the mailbox and message panes side by side.
# =============================================================================

from mailbox_tui.ui.screens.main import MainScreen

__all__ = ["MainScreen"]
