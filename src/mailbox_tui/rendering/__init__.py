# =============================================================================
# Rendering Module
# =============================================================================
# Turns lists of messages into terminal lines.
#
#   - truncate:  cell-width aware truncation with an ellipsis
#   - formatter: line composition, per-mailbox summarization for bounded
#                output, and the scroll window used by the TUI panes
#
# Output is rich Text so the same lines can be printed by the CLI's rich
# Console or displayed in a Textual widget.
# =============================================================================

from mailbox_tui.rendering.formatter import MessageFormatter, TimestampFormat, scroll_window
from mailbox_tui.rendering.truncate import ELLIPSIS, TruncatedLine, truncate_string

__all__ = [
    "ELLIPSIS",
    "MessageFormatter",
    "TimestampFormat",
    "TruncatedLine",
    "scroll_window",
    "truncate_string",
]
