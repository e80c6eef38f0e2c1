# =============================================================================
# Message Model
# =============================================================================
# A message is a short line of text that a script deposited into a mailbox,
# e.g. "Nightly backup failed" in "backups/nas". Everything about a message is
# immutable except its state, which moves between unread, read and archived
# only when the user (or an API client) asks for it.
# =============================================================================

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from mailbox_tui.core.mailbox import MailboxPath


class State(Enum):
    """
    The lifecycle stage of a message.

    The value is the lowercase name used on the command line, in config
    files and in the REST API.
    """
    UNREAD = "unread"
    READ = "read"
    ARCHIVED = "archived"

    @classmethod
    def parse(cls, value: str) -> "State":
        """
        Parse a state name ("unread", "read", "archived").

        Raises:
            ValueError: If the name is unknown.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Invalid message state {value!r}") from None

    @classmethod
    def from_db(cls, value: int) -> "State":
        """Convert the integer stored in SQLite back into a State."""
        if not isinstance(value, int) or not 0 <= value < len(_DB_STATES):
            raise ValueError(f"Invalid message state {value}")
        return _DB_STATES[value]

    @property
    def db_value(self) -> int:
        """The integer persisted in SQLite (0 = unread, 1 = read, 2 = archived)."""
        return _DB_STATES.index(self)

    @property
    def marker(self) -> str:
        """Single-character indicator shown in front of a message."""
        return _MARKERS[self]


_DB_STATES = [State.UNREAD, State.READ, State.ARCHIVED]
_MARKERS = {State.UNREAD: "*", State.READ: " ", State.ARCHIVED: "-"}


@dataclass(frozen=True)
class Message:
    """
    A stored message.

    Attributes:
        id: Primary key assigned by storage.
        created_at: When the message was stored (timezone-aware UTC).
        mailbox: The mailbox the message lives in.
        content: The message text.
        state: Current lifecycle state.
    """
    id: int
    created_at: datetime
    mailbox: MailboxPath
    content: str
    state: State = State.UNREAD

    def with_state(self, state: State) -> "Message":
        """Return a copy of this message in a different state."""
        return replace(self, state=state)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the REST API."""
        return {
            "id": self.id,
            "timestamp": self.created_at.astimezone(timezone.utc).isoformat(),
            "mailbox": str(self.mailbox),
            "content": self.content,
            "state": self.state.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Deserialize a message returned by the REST API."""
        created_at = datetime.fromisoformat(data["timestamp"])
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return cls(
            id=int(data["id"]),
            created_at=created_at,
            mailbox=MailboxPath(data["mailbox"]),
            content=data["content"],
            state=State.parse(data["state"]),
        )

    def __repr__(self) -> str:
        return (
            f"Message(id={self.id}, mailbox={str(self.mailbox)!r}, "
            f"state={self.state.value}, content={self.content!r})"
        )


@dataclass(frozen=True)
class NewMessage:
    """
    A message that has not been stored yet.

    `state` is the state the caller asked for. None means the storage
    default (unread). Override rules may replace it before storage.
    """
    mailbox: MailboxPath
    content: str
    state: State | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NewMessage":
        """
        Build a NewMessage from a JSON object.

        Unknown keys are rejected so that typos don't silently drop data.

        Raises:
            ValueError: If a field is missing, unknown or invalid.
        """
        if not isinstance(data, dict):
            raise ValueError("message must be a JSON object")
        unknown = set(data) - {"mailbox", "content", "state"}
        if unknown:
            raise ValueError(f"unknown field(s): {', '.join(sorted(unknown))}")
        if "mailbox" not in data or "content" not in data:
            raise ValueError("message requires mailbox and content")
        if not isinstance(data["content"], str):
            raise ValueError("content must be a string")
        if not data["content"]:
            raise ValueError("content must not be empty")
        state = data.get("state")
        if state is not None and not isinstance(state, str):
            raise ValueError("state must be a string")
        return cls(
            mailbox=MailboxPath(data["mailbox"]),
            content=data["content"],
            state=State.parse(state) if state is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"mailbox": str(self.mailbox), "content": self.content}
        if self.state is not None:
            data["state"] = self.state.value
        return data


@dataclass(frozen=True)
class MailboxInfo:
    """The number of messages stored directly in one mailbox."""
    mailbox: MailboxPath
    message_count: int
