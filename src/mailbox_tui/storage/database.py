# =============================================================================
# Database Connection and Schema Management
# =============================================================================
# Opens the SQLite database and creates or upgrades its schema.
#
# Schema overview:
#   - messages: id, timestamp (UTC text), mailbox, content, state (0-2)
#   - schema_version: single-row version tracking
#
# Uses aiosqlite for async operations, with WAL mode so the CLI can add
# messages while the TUI has the database open.
# =============================================================================

import logging
from pathlib import Path

import aiosqlite

from mailbox_tui.config import Config


logger = logging.getLogger(__name__)

# Bump together with _create_schema
SCHEMA_VERSION = 1

SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    mailbox TEXT NOT NULL CHECK (LENGTH(mailbox) > 0),
    content TEXT NOT NULL CHECK (LENGTH(content) > 0),
    state INTEGER NOT NULL DEFAULT 0 CHECK (state BETWEEN 0 AND 2)
);

CREATE INDEX IF NOT EXISTS idx_messages_timestamp ON messages(timestamp DESC);
CREATE INDEX IF NOT EXISTS idx_messages_mailbox ON messages(mailbox);
"""


class Database:
    """
    The SQLite file behind the local message store.

    Usage:
        >>> database = Database(":memory:")
        >>> await database.connect()
        >>> async with database.conn.execute("SELECT COUNT(*) FROM messages") as cursor:
        ...     (count,) = await cursor.fetchone()
        >>> await database.close()

    Attributes:
        db_path: The database file, or ":memory:" for a throwaway database.
    """

    def __init__(self, db_path: Path | str | None = None) -> None:
        """
        Args:
            db_path: Where the database lives. Defaults to mailbox.db in the
                     XDG data directory.
        """
        self.db_path = db_path or Config.database_path()
        self._connection: aiosqlite.Connection | None = None

    @property
    def in_memory(self) -> bool:
        return str(self.db_path) == ":memory:"

    async def connect(self) -> None:
        """Open (creating if needed) the database and bring its schema up to date."""
        if not self.in_memory:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Opening database {self.db_path}")
        self._connection = await aiosqlite.connect(self.db_path)

        # Lets `mailbox add` write while the TUI holds the database open
        if not self.in_memory:
            await self._connection.execute("PRAGMA journal_mode = WAL")

        await self._init_schema()

    async def close(self) -> None:
        if self._connection:
            await self._connection.close()
            self._connection = None

    @property
    def conn(self) -> aiosqlite.Connection:
        """
        The open connection.

        Raises:
            RuntimeError: If connect() hasn't been called.
        """
        if self._connection is None:
            raise RuntimeError("Database is not open; call connect() first")
        return self._connection

    async def _schema_version(self) -> int:
        try:
            async with self.conn.execute("SELECT MAX(version) FROM schema_version") as cursor:
                row = await cursor.fetchone()
        except aiosqlite.OperationalError:
            # No schema_version table yet: a new database
            return 0
        return row[0] or 0

    async def _init_schema(self) -> None:
        version = await self._schema_version()
        if version > SCHEMA_VERSION:
            logger.warning(
                f"Database schema version {version} is newer than this release ({SCHEMA_VERSION})"
            )
        elif version < SCHEMA_VERSION:
            logger.info(f"Creating database schema version {SCHEMA_VERSION}")
            await self._create_schema()

    async def _create_schema(self) -> None:
        await self.conn.executescript(SCHEMA)
        await self.conn.execute("DELETE FROM schema_version")
        await self.conn.execute(
            "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
        )
        await self.conn.commit()
