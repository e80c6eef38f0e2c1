# =============================================================================
# Mailbox Core Module
# =============================================================================
# Core domain models and the filtering engine. Pure Python with no I/O and no
# third-party dependencies, so everything here can be imported from the CLI,
# the REST server and the TUI alike.
#
#   - MailboxPath: A validated "/"-delimited mailbox name
#   - Message / NewMessage / State: Stored and pending messages
#   - MessageFilter: The shared id/mailbox/state predicate
#   - MailboxTree: Hierarchical mailbox index with counts
#   - OverrideResolver: Per-mailbox rules applied at creation time
# =============================================================================

from mailbox_tui.core.filter import FilterError, MessageFilter, mailbox_matches
from mailbox_tui.core.mailbox import MailboxPath, MailboxPathError
from mailbox_tui.core.mailbox_tree import MailboxNode, MailboxTree
from mailbox_tui.core.message import MailboxInfo, Message, NewMessage, State
from mailbox_tui.core.overrides import OverrideResolver, OverrideTarget

__all__ = [
    "FilterError",
    "MailboxInfo",
    "MailboxNode",
    "MailboxPath",
    "MailboxPathError",
    "MailboxTree",
    "Message",
    "MessageFilter",
    "NewMessage",
    "OverrideResolver",
    "OverrideTarget",
    "State",
    "mailbox_matches",
]
