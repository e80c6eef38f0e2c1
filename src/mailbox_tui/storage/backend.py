# =============================================================================
# Storage Backend Interface
# =============================================================================
# Every place messages can live implements the same five operations:
#
#   add_messages     store new messages, returning them with ids and timestamps
#   load_messages    messages matching a filter
#   change_state     set the state of matching messages, returning them
#   delete_messages  remove matching messages, returning them
#   load_mailboxes   per-mailbox message counts for matching messages
#
# Messages are always returned newest first (ties broken by id, highest
# first). Backends do no validation of their own; MessageStore handles that.
# =============================================================================

from typing import Protocol

from mailbox_tui.core import MailboxInfo, Message, MessageFilter, NewMessage, State


class Backend(Protocol):
    """Structural interface shared by the SQLite and HTTP backends."""

    async def add_messages(self, messages: list[NewMessage]) -> list[Message]: ...

    async def load_messages(self, message_filter: MessageFilter) -> list[Message]: ...

    async def change_state(
        self, message_filter: MessageFilter, new_state: State
    ) -> list[Message]: ...

    async def delete_messages(self, message_filter: MessageFilter) -> list[Message]: ...

    async def load_mailboxes(self, message_filter: MessageFilter) -> list[MailboxInfo]: ...

    async def close(self) -> None: ...


# =============================================================================
# Exceptions
# =============================================================================

class StorageError(Exception):
    """
    Raised when a storage operation fails.

    Attributes:
        status: HTTP status code for remote backends, None otherwise.
        body: Response body for remote backends, None otherwise.
    """

    def __init__(self, message: str, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class ValidationError(StorageError):
    """Raised when a request is rejected before it reaches the backend."""
    pass


class UnrestrictedDeleteError(ValidationError):
    """Raised when asked to delete with a filter that matches every message."""

    def __init__(self) -> None:
        super().__init__("Filter is required")
