# =============================================================================
# Message Filter
# =============================================================================
# The one predicate every access path uses to decide which messages an
# operation touches. The CLI builds filters from flags, the REST server from
# query parameters and the TUI from its pane/toggle state, but they all end up
# here so that "mailbox foo, unread only" means exactly the same thing
# everywhere.
#
# A filter has three optional dimensions:
#   - ids:     message ids
#   - mailbox: a mailbox path, matching itself and all descendants
#   - states:  message states
# An absent dimension matches everything; present ones are ANDed together.
# =============================================================================

from dataclasses import dataclass
from typing import Any, Iterable

from mailbox_tui.core.mailbox import MailboxPath, MailboxPathError
from mailbox_tui.core.message import Message, State


class FilterError(ValueError):
    """Raised when filter query input (ids, mailbox, states) is malformed."""
    pass


def mailbox_matches(candidate: MailboxPath, filter_path: MailboxPath) -> bool:
    """
    Segment-exact prefix match between a message's mailbox and a filter path.

    Example:
        >>> foo = MailboxPath("foo")
        >>> mailbox_matches(MailboxPath("foo/bar"), foo)
        True
        >>> mailbox_matches(MailboxPath("foobar"), foo)
        False
    """
    return filter_path.contains(candidate)


def _split_list(value: str) -> list[str]:
    # "" is how to_query writes an empty set
    return value.split(",") if value else []


@dataclass(frozen=True)
class MessageFilter:
    """
    An immutable message filter.

    Filters are built with the `with_*` methods, each returning a new filter:

        >>> f = MessageFilter().with_mailbox(MailboxPath("backups"))
        >>> f = f.with_states([State.UNREAD, State.READ])

    Attributes:
        ids: Message ids to match, or None for any id.
        mailbox: Mailbox subtree to match, or None for any mailbox.
        states: States to match, or None for any state.
    """
    ids: frozenset[int] | None = None
    mailbox: MailboxPath | None = None
    states: frozenset[State] | None = None

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def with_ids(self, ids: Iterable[int]) -> "MessageFilter":
        return MessageFilter(frozenset(ids), self.mailbox, self.states)

    def with_mailbox(self, mailbox: MailboxPath | None) -> "MessageFilter":
        """Restrict to a mailbox subtree. Passing None removes the restriction."""
        return MessageFilter(self.ids, mailbox, self.states)

    def with_states(self, states: Iterable[State]) -> "MessageFilter":
        return MessageFilter(self.ids, self.mailbox, frozenset(states))

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def matches_all(self) -> bool:
        """True if no dimension is restricted, i.e. the filter matches every message."""
        return self.ids is None and self.mailbox is None and self.states is None

    def matches(self, message: Message) -> bool:
        """Determine whether a message passes the filter."""
        if self.ids is not None and message.id not in self.ids:
            return False
        if self.mailbox is not None and not mailbox_matches(message.mailbox, self.mailbox):
            return False
        if self.states is not None and message.state not in self.states:
            return False
        return True

    def apply(self, messages: Iterable[Message]) -> list[Message]:
        """Return the matching messages, preserving their order."""
        return [message for message in messages if self.matches(message)]

    # -------------------------------------------------------------------------
    # Query surface (CLI flags and REST query parameters)
    # -------------------------------------------------------------------------

    @classmethod
    def from_query(
        cls,
        ids: str | None = None,
        mailbox: str | None = None,
        states: str | None = None,
    ) -> "MessageFilter":
        """
        Parse the textual query surface.

        Args:
            ids: Comma-separated integers, e.g. "1,2,3". An empty string
                 is the empty set and matches nothing.
            mailbox: A single mailbox path.
            states: Comma-separated subset of "unread,read,archived".
                    Empty means no state, as for ids.

        Raises:
            FilterError: If any part is malformed.
        """
        message_filter = cls()
        if ids is not None:
            try:
                message_filter = message_filter.with_ids(
                    int(part) for part in _split_list(ids)
                )
            except ValueError:
                raise FilterError(f"Failed to parse ids: {ids!r}") from None
        if mailbox is not None:
            try:
                message_filter = message_filter.with_mailbox(MailboxPath(mailbox))
            except MailboxPathError as e:
                raise FilterError(f"Failed to parse mailbox: {e}") from None
        if states is not None:
            try:
                message_filter = message_filter.with_states(
                    State.parse(part) for part in _split_list(states)
                )
            except ValueError:
                raise FilterError(f"Failed to parse states: {states!r}") from None
        return message_filter

    def to_query(self) -> dict[str, str]:
        """Render the filter as query parameters accepted by `from_query`."""
        params: dict[str, str] = {}
        if self.ids is not None:
            params["ids"] = ",".join(str(i) for i in sorted(self.ids))
        if self.mailbox is not None:
            params["mailbox"] = str(self.mailbox)
        if self.states is not None:
            params["states"] = ",".join(
                state.value for state in State if state in self.states
            )
        return params

    def to_sql(self) -> tuple[str, list[Any]]:
        """
        Render the filter as an SQLite WHERE clause and its parameters.

        Mailbox matching compares the leading characters with "prefix/"
        instead of using LIKE, so names containing "_" can't act as wildcards.

        Returns:
            (clause, params). The clause is "1" when the filter matches all.
        """
        clauses: list[str] = []
        params: list[Any] = []
        if self.ids is not None:
            if self.ids:
                clauses.append(f"id IN ({', '.join('?' for _ in self.ids)})")
                params.extend(sorted(self.ids))
            else:
                clauses.append("0")
        if self.mailbox is not None:
            prefix = f"{self.mailbox}/"
            clauses.append("(mailbox = ? OR substr(mailbox, 1, ?) = ?)")
            params.extend([str(self.mailbox), len(prefix), prefix])
        if self.states is not None:
            if self.states:
                clauses.append(f"state IN ({', '.join('?' for _ in self.states)})")
                params.extend(sorted(state.db_value for state in self.states))
            else:
                clauses.append("0")
        if not clauses:
            return "1", []
        return " AND ".join(clauses), params
