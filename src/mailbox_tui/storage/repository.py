# =============================================================================
# SQLite Repository
# =============================================================================
# The local storage backend. Converts between Message objects and rows of the
# messages table, and turns MessageFilters into WHERE clauses.
#
# Timestamps are stored as UTC text ("2024-05-01 12:30:00.000000") so that
# ordering by the column orders by time.
# =============================================================================

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, AsyncIterator

import aiosqlite

from mailbox_tui.core import MailboxInfo, MailboxPath, Message, MessageFilter, NewMessage, State
from mailbox_tui.storage.backend import StorageError

if TYPE_CHECKING:
    from mailbox_tui.storage.database import Database

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

# Newest first; messages added in one batch share a timestamp
ORDER_BY = "ORDER BY timestamp DESC, id DESC"


class Repository:
    """
    SQLite implementation of the storage backend.

    Usage:
        >>> repo = Repository(database)
        >>> await repo.add_messages([NewMessage(MailboxPath("a"), "hi")])
        >>> await repo.load_messages(MessageFilter().with_states([State.UNREAD]))

    Attributes:
        db: Database instance for executing queries.
    """

    def __init__(self, db: "Database") -> None:
        """
        Initialize the repository.

        Args:
            db: Connected Database instance.
        """
        self.db = db

    async def close(self) -> None:
        await self.db.close()

    @asynccontextmanager
    async def _errors(self, action: str) -> AsyncIterator[None]:
        """Re-raise SQLite failures as StorageError."""
        try:
            yield
        except aiosqlite.Error as e:
            logger.error(f"Failed to {action}: {e}")
            raise StorageError(f"Failed to {action}: {e}") from e

    # =========================================================================
    # Message Operations
    # =========================================================================

    async def add_messages(self, messages: list[NewMessage]) -> list[Message]:
        """
        Store new messages.

        The batch is inserted in reverse so that, once loaded newest first,
        the messages come back in the order they were given.

        Returns:
            The stored messages, in input order.
        """
        if not messages:
            return []

        now = datetime.now(timezone.utc)
        timestamp = now.strftime(TIMESTAMP_FORMAT)
        stored: list[Message] = []
        async with self._errors("add messages"):
            for message in reversed(messages):
                state = message.state or State.UNREAD
                cursor = await self.db.conn.execute(
                    "INSERT INTO messages (timestamp, mailbox, content, state) VALUES (?, ?, ?, ?)",
                    (timestamp, str(message.mailbox), message.content, state.db_value)
                )
                stored.append(Message(
                    id=cursor.lastrowid,
                    created_at=self._parse_timestamp(timestamp),
                    mailbox=message.mailbox,
                    content=message.content,
                    state=state,
                ))
            await self.db.conn.commit()

        stored.reverse()
        logger.debug(f"Added {len(stored)} message(s)")
        return stored

    async def load_messages(self, message_filter: MessageFilter) -> list[Message]:
        """Messages matching the filter, newest first."""
        where, params = message_filter.to_sql()
        async with self._errors("load messages"):
            async with self.db.conn.execute(
                f"SELECT id, timestamp, mailbox, content, state FROM messages "
                f"WHERE {where} {ORDER_BY}",
                params
            ) as cursor:
                rows = await cursor.fetchall()
        return [self._row_to_message(row) for row in rows]

    async def change_state(
        self, message_filter: MessageFilter, new_state: State
    ) -> list[Message]:
        """
        Set the state of every matching message.

        Returns:
            The changed messages with their new state, newest first.
        """
        matched = await self.load_messages(message_filter)
        if not matched:
            return []

        ids = [message.id for message in matched]
        async with self._errors("change message states"):
            await self.db.conn.execute(
                f"UPDATE messages SET state = ? WHERE id IN ({', '.join('?' for _ in ids)})",
                [new_state.db_value, *ids]
            )
            await self.db.conn.commit()

        logger.debug(f"Changed {len(ids)} message(s) to {new_state.value}")
        return [message.with_state(new_state) for message in matched]

    async def delete_messages(self, message_filter: MessageFilter) -> list[Message]:
        """
        Delete every matching message.

        Returns:
            The deleted messages, newest first.
        """
        matched = await self.load_messages(message_filter)
        if not matched:
            return []

        ids = [message.id for message in matched]
        async with self._errors("delete messages"):
            await self.db.conn.execute(
                f"DELETE FROM messages WHERE id IN ({', '.join('?' for _ in ids)})",
                ids
            )
            await self.db.conn.commit()

        logger.debug(f"Deleted {len(ids)} message(s)")
        return matched

    async def load_mailboxes(self, message_filter: MessageFilter) -> list[MailboxInfo]:
        """Number of matching messages in each mailbox, ordered by name."""
        where, params = message_filter.to_sql()
        async with self._errors("load mailboxes"):
            async with self.db.conn.execute(
                f"SELECT mailbox, COUNT(id) FROM messages WHERE {where} "
                f"GROUP BY mailbox ORDER BY mailbox",
                params
            ) as cursor:
                rows = await cursor.fetchall()
        return [MailboxInfo(MailboxPath(row[0]), row[1]) for row in rows]

    # =========================================================================
    # Row Conversion
    # =========================================================================

    @staticmethod
    def _parse_timestamp(value: str) -> datetime:
        """Parse a stored timestamp into an aware UTC datetime."""
        timestamp = datetime.fromisoformat(value)
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return timestamp

    def _row_to_message(self, row) -> Message:
        """Convert a database row to a Message object."""
        return Message(
            id=row[0],
            created_at=self._parse_timestamp(row[1]),
            mailbox=MailboxPath(row[2]),
            content=row[3],
            state=State.from_db(row[4]),
        )
