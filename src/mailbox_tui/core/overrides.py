# =============================================================================
# Override Rules
# =============================================================================
# Users can force the initial state of new messages per mailbox subtree, or
# drop them entirely, from the [overrides] table of the config file:
#
#   [overrides]
#   "backups" = "read"
#   "backups/errors" = "unread"
#   "noisy/cron" = "ignored"
#
# The deepest matching rule wins, so "backups/errors/net" above is unread
# while "backups/ok" is read. An "ignored" rule silently discards the message.
# =============================================================================

import logging
from enum import Enum
from typing import Mapping

from mailbox_tui.core.mailbox import MailboxPath
from mailbox_tui.core.message import NewMessage, State

logger = logging.getLogger(__name__)


class OverrideTarget(Enum):
    """What an override rule does to new messages in its subtree."""
    UNREAD = "unread"
    READ = "read"
    ARCHIVED = "archived"
    IGNORED = "ignored"

    @property
    def state(self) -> State | None:
        """The forced state, or None for IGNORED."""
        if self is OverrideTarget.IGNORED:
            return None
        return State(self.value)


class OverrideResolver:
    """
    Resolves a mailbox to its effective override rule.

    Usage:
        >>> resolver = OverrideResolver({
        ...     MailboxPath("x"): OverrideTarget.READ,
        ...     MailboxPath("x/err"): OverrideTarget.ARCHIVED,
        ... })
        >>> resolver.resolve(MailboxPath("x/err/net"))
        <OverrideTarget.ARCHIVED: 'archived'>
    """

    def __init__(self, rules: Mapping[MailboxPath, OverrideTarget] | None = None) -> None:
        self._rules: dict[MailboxPath, OverrideTarget] = dict(rules or {})

    @property
    def rules(self) -> dict[MailboxPath, OverrideTarget]:
        return dict(self._rules)

    def resolve(self, mailbox: MailboxPath) -> OverrideTarget | None:
        """
        Find the rule for the deepest ancestor-or-self of `mailbox`.

        Returns:
            The winning target, or None if no rule applies.
        """
        # Deepest first. Keys are unique paths, so at most one rule exists per
        # depth along a single ancestor chain; the sort keeps the pick stable.
        candidates = sorted(
            (path for path in self._rules if path.contains(mailbox)),
            key=lambda path: (-len(path.segments), path),
        )
        if not candidates:
            return None
        return self._rules[candidates[0]]

    def apply(self, message: NewMessage) -> NewMessage | None:
        """
        Apply the override rules to a message before it is stored.

        Returns:
            The message with its state replaced by the winning rule, the
            unchanged message if no rule applies, or None if the message is
            ignored and must not be stored.
        """
        target = self.resolve(message.mailbox)
        if target is None:
            return message
        if target is OverrideTarget.IGNORED:
            logger.debug(f"Ignoring new message in {message.mailbox}")
            return None
        return NewMessage(mailbox=message.mailbox, content=message.content, state=target.state)

    def __len__(self) -> int:
        return len(self._rules)
