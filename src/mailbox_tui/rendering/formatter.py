# =============================================================================
# Message Formatter
# =============================================================================
# Composes the text shown for each message and fits a list of messages into a
# bounded number of terminal lines.
#
# A single message is rendered as:
#
#   * Nightly backup failed [backups/nas] @ 5 minutes ago
#   ^ state marker          ^ mailbox       ^ timestamp
#
# When the line is too wide only the content is shortened; the mailbox and
# timestamp are always shown in full.
#
# When more messages match than there are lines available, the lines are
# shared out between mailboxes one at a time, newest mailbox first, and each
# mailbox that couldn't show everything says how many messages it hid:
#
#   * disk full [alerts] @ 2 minutes ago (+3 older messages)
#   * ok [backups] @ 1 hour ago
#   (+7 older messages in cron, deploy, and 2 other mailboxes)
# =============================================================================

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

import humanize
from rich.cells import cell_len
from rich.text import Text

from mailbox_tui.core import MailboxPath, Message, State
from mailbox_tui.rendering.truncate import truncate_string


class TimestampFormat(Enum):
    """How message timestamps are displayed."""
    RELATIVE = "relative"  # "5 minutes ago", for terminals
    LOCAL = "local"        # local time with UTC offset, for redirected output
    UTC = "utc"


# Styles applied when color is enabled
UNREAD_STYLE = "bold red"
MAILBOX_STYLE = "bold green"
TIMESTAMP_STYLE = "yellow"


@dataclass
class _MailboxGroup:
    """The messages of one mailbox, in display order (newest first)."""
    name: MailboxPath
    messages: list[Message]
    allocated_lines: int = 0

    @property
    def newest(self) -> datetime:
        return self.messages[0].created_at

    @property
    def hidden_count(self) -> int:
        return len(self.messages) - self.allocated_lines


def pluralize(word: str, count: int) -> str:
    """Pluralize "message" or "mailbox" unless count is exactly 1."""
    if count == 1:
        return word
    return word + ("es" if word.endswith("x") else "s")


def summarize_mailboxes(names: list[MailboxPath]) -> str:
    """
    Human-readable list of mailbox names.

    Example:
        >>> summarize_mailboxes([MailboxPath(n) for n in "abcde"])
        'a, b, and 3 other mailboxes'
    """
    names = [str(name) for name in names]
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    if len(names) == 3:
        return f"{names[0]}, {names[1]}, and {names[2]}"
    others = len(names) - 2
    return f"{names[0]}, {names[1]}, and {others} other {pluralize('mailbox', others)}"


def scroll_window(cursor: int | None, count: int, height: int) -> tuple[int, int]:
    """
    Rows of a list to display so that the cursor stays on screen.

    The window starts at the top and only scrolls once the cursor moves
    past the last visible row.

    Returns:
        (start, end) indexes, end exclusive.
    """
    if height <= 0 or count <= 0:
        return 0, 0
    start = 0 if cursor is None else max(0, cursor - height + 1)
    return start, min(count, start + height)


@dataclass(frozen=True)
class MessageFormatter:
    """
    Formats single messages and lists of messages.

    Formatters are immutable and configured with the `with_*` methods:

        >>> formatter = (
        ...     MessageFormatter()
        ...     .with_color(False)
        ...     .with_timestamp_format(TimestampFormat.UTC)
        ...     .with_max_lines(4)
        ... )
        >>> print(formatter.format_messages(messages), end="")

    Attributes:
        color: Style the marker, mailbox and timestamp.
        timestamp_format: How timestamps are displayed.
        max_columns: Line width limit, or None to never truncate.
        max_lines: Line count limit, or None to show every message.
        now: Reference time for relative timestamps (defaults to the
             current time; fixed in tests).
    """
    color: bool = True
    timestamp_format: TimestampFormat = TimestampFormat.RELATIVE
    max_columns: int | None = None
    max_lines: int | None = None
    now: datetime | None = field(default=None, compare=False)

    def with_color(self, color: bool) -> "MessageFormatter":
        return replace(self, color=color)

    def with_timestamp_format(self, timestamp_format: TimestampFormat) -> "MessageFormatter":
        return replace(self, timestamp_format=timestamp_format)

    def with_max_columns(self, max_columns: int | None) -> "MessageFormatter":
        return replace(self, max_columns=max_columns)

    def with_max_lines(self, max_lines: int | None) -> "MessageFormatter":
        return replace(self, max_lines=max_lines)

    def with_now(self, now: datetime | None) -> "MessageFormatter":
        return replace(self, now=now)

    def full_output(self) -> "MessageFormatter":
        """A copy that neither truncates nor summarizes."""
        return replace(self, max_columns=None, max_lines=None)

    # -------------------------------------------------------------------------
    # Single messages
    # -------------------------------------------------------------------------

    def format_timestamp(self, timestamp: datetime) -> str:
        if self.timestamp_format is TimestampFormat.RELATIVE:
            now = self.now or datetime.now(timezone.utc)
            return humanize.naturaltime(now - timestamp)
        if self.timestamp_format is TimestampFormat.LOCAL:
            return timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S %z")
        return timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    def compose_line(self, message: Message, hint: str = "") -> Text:
        """
        Build the styled line for one message.

        Args:
            message: The message to show.
            hint: Extra text appended after the timestamp, such as
                  " (+3 older messages)". Never truncated.
        """
        marker = message.state.marker
        prefix = f"{marker} "
        suffix_parts = [
            (" [", None),
            (str(message.mailbox), MAILBOX_STYLE),
            ("] @ ", None),
            (self.format_timestamp(message.created_at), TIMESTAMP_STYLE),
            (hint, None),
        ]

        content = message.content
        if self.max_columns is not None:
            suffix_width = sum(cell_len(part) for part, _ in suffix_parts)
            budget = self.max_columns - cell_len(prefix) - suffix_width
            # Always keep at least the ellipsis so a shortened message is visible as such
            content = truncate_string(content, max(budget, 1))

        line = Text()
        marker_style = UNREAD_STYLE if message.state is State.UNREAD else None
        line.append(marker, style=marker_style if self.color else None)
        line.append(" ")
        line.append(content)
        for part, style in suffix_parts:
            line.append(part, style=style if self.color else None)
        return line

    def format_message(self, message: Message) -> str:
        """Plain text for one message, without a trailing newline."""
        return self.compose_line(message).plain

    # -------------------------------------------------------------------------
    # Lists of messages
    # -------------------------------------------------------------------------

    def render_lines(self, messages: Iterable[Message]) -> list[Text]:
        """
        Lay out messages grouped by mailbox within `max_lines`.

        Returns:
            One Text per output line.
        """
        groups = self._group(messages)
        total = sum(len(group.messages) for group in groups)
        max_lines = total if self.max_lines is None else min(total, self.max_lines)
        if max_lines <= 0:
            return []

        # Share the lines out one per mailbox per pass, newest mailbox first
        line = 0
        while line < max_lines:
            for group in groups:
                if group.allocated_lines < len(group.messages):
                    group.allocated_lines += 1
                    line += 1
                if line >= max_lines:
                    break

        # Too many mailboxes for one line each: the last line summarizes the rest
        if len(groups) > max_lines:
            displayed, hidden = groups[:max_lines - 1], groups[max_lines - 1:]
        else:
            displayed, hidden = groups, []

        lines: list[Text] = []
        for group in displayed:
            shown = group.messages[:group.allocated_lines]
            for index, message in enumerate(shown):
                hint = ""
                if group.hidden_count > 0 and index == len(shown) - 1:
                    hint = (
                        f" (+{group.hidden_count} older "
                        f"{pluralize('message', group.hidden_count)})"
                    )
                lines.append(self.compose_line(message, hint))

        if hidden:
            hidden_messages = sum(len(group.messages) for group in hidden)
            names = summarize_mailboxes([group.name for group in hidden])
            summary = (
                f"(+{hidden_messages} older "
                f"{pluralize('message', hidden_messages)} in {names})"
            )
            if self.max_columns is not None:
                summary = truncate_string(summary, self.max_columns)
            lines.append(Text(summary))

        return lines

    def format_messages(self, messages: Iterable[Message]) -> str:
        """Plain text for a list of messages, one per line, newline-terminated."""
        return "".join(f"{line.plain}\n" for line in self.render_lines(messages))

    @staticmethod
    def _group(messages: Iterable[Message]) -> list[_MailboxGroup]:
        by_mailbox: dict[MailboxPath, list[Message]] = {}
        for message in messages:
            by_mailbox.setdefault(message.mailbox, []).append(message)

        # Stable sorts: equal timestamps keep their incoming order
        groups = [
            _MailboxGroup(name, sorted(group, key=lambda m: m.created_at, reverse=True))
            for name, group in by_mailbox.items()
        ]
        groups.sort(key=lambda group: group.name)
        groups.sort(key=lambda group: group.newest, reverse=True)
        return groups
