# =============================================================================
# Message Store
# =============================================================================
# The front door to storage used by the CLI, the TUI, the importer and the
# REST server. It validates requests, applies override rules to new
# messages, and forwards everything else to the configured backend.
# =============================================================================

import logging
from pathlib import Path

import aiosqlite

from mailbox_tui.config import Config
from mailbox_tui.core import (
    MailboxInfo,
    MailboxPath,
    Message,
    MessageFilter,
    NewMessage,
    OverrideResolver,
    State,
)
from mailbox_tui.storage.backend import (
    Backend,
    StorageError,
    UnrestrictedDeleteError,
    ValidationError,
)
from mailbox_tui.storage.database import Database
from mailbox_tui.storage.http_backend import HttpBackend
from mailbox_tui.storage.repository import Repository

logger = logging.getLogger(__name__)


class MessageStore:
    """
    Validating facade over a storage backend.

    Usage:
        >>> store = await open_store(Config.load())
        >>> await store.add_message(MailboxPath("backups"), "done")
        >>> await store.change_state(MessageFilter().with_ids([1]), State.READ)
        >>> await store.close()

    Attributes:
        backend: Where messages are actually stored.
        resolver: Override rules applied to new messages.
    """

    def __init__(self, backend: Backend, resolver: OverrideResolver | None = None) -> None:
        self.backend = backend
        self.resolver = resolver or OverrideResolver()

    async def close(self) -> None:
        await self.backend.close()

    async def add_messages(self, messages: list[NewMessage]) -> list[Message]:
        """
        Store messages after applying override rules.

        Ignored messages are silently dropped, so the result can be shorter
        than the input.

        Raises:
            ValidationError: If any message has empty content.
        """
        for message in messages:
            if not message.content:
                raise ValidationError(f"Message in {message.mailbox} has no content")

        kept = [
            resolved for resolved in (self.resolver.apply(message) for message in messages)
            if resolved is not None
        ]
        if len(kept) < len(messages):
            logger.info(f"Ignored {len(messages) - len(kept)} message(s) by override rule")
        if not kept:
            return []
        return await self.backend.add_messages(kept)

    async def add_message(
        self, mailbox: MailboxPath, content: str, state: State | None = None
    ) -> Message | None:
        """Store one message. Returns None if an override rule ignored it."""
        added = await self.add_messages([NewMessage(mailbox, content, state)])
        return added[0] if added else None

    async def load_messages(self, message_filter: MessageFilter) -> list[Message]:
        return await self.backend.load_messages(message_filter)

    async def change_state(
        self, message_filter: MessageFilter, new_state: State
    ) -> list[Message]:
        return await self.backend.change_state(message_filter, new_state)

    async def delete_messages(self, message_filter: MessageFilter) -> list[Message]:
        """
        Delete matching messages.

        Raises:
            UnrestrictedDeleteError: If the filter would match every message.
        """
        if message_filter.matches_all():
            raise UnrestrictedDeleteError()
        return await self.backend.delete_messages(message_filter)

    async def load_mailboxes(self, message_filter: MessageFilter) -> list[MailboxInfo]:
        return await self.backend.load_mailboxes(message_filter)


async def open_store(
    config: Config,
    db_path: Path | str | None = None,
    apply_overrides: bool = True,
) -> MessageStore:
    """
    Create a MessageStore for the configured database provider.

    Args:
        config: Loaded configuration.
        db_path: SQLite file to use instead of the default location.
        apply_overrides: Whether new messages go through the override rules.
    """
    resolver = config.resolver() if apply_overrides else None

    if config.database.provider == "http":
        logger.info(f"Using remote store at {config.database.url}")
        return MessageStore(HttpBackend(config.database.url, config.database.token), resolver)

    database = Database(db_path)
    try:
        await database.connect()
    except (OSError, aiosqlite.Error) as e:
        raise StorageError(f"Failed to open database {database.db_path}: {e}") from e
    return MessageStore(Repository(database), resolver)
