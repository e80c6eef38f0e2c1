# =============================================================================
# TUI State Module
# =============================================================================
# The terminal UI's logic, independent of Textual:
#   - navigable_list: cursor and selection bookkeeping for each pane
#   - controller: the session state machine (operations in, effects out)
#   - keymap: key names to operations
#   - worker: serialized, staleness-aware storage requests
#
# The Textual widgets in mailbox_tui.ui only draw this state and forward keys.
# =============================================================================

from mailbox_tui.tui.controller import (
    Effect,
    EffectKind,
    NavigationController,
    Operation,
    Pane,
    SessionState,
)
from mailbox_tui.tui.keymap import resolve_key
from mailbox_tui.tui.navigable_list import MultiselectList, NavigableList, TreeList
from mailbox_tui.tui.worker import RequestCounter, StorageWorker

__all__ = [
    "Effect",
    "EffectKind",
    "MultiselectList",
    "NavigableList",
    "NavigationController",
    "Operation",
    "Pane",
    "RequestCounter",
    "SessionState",
    "StorageWorker",
    "TreeList",
    "resolve_key",
]
