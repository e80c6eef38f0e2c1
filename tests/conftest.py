# =============================================================================
# Pytest Configuration and Fixtures
# =============================================================================
# Shared fixtures for the mailbox test suite.
#
# Every test runs with the XDG directories pointed into its own temporary
# directory, so nothing ever touches the real config or database.
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from mailbox_tui.core import MailboxPath, Message, State
from mailbox_tui.rendering import MessageFormatter, TimestampFormat
from mailbox_tui.storage import Database, MessageStore, Repository

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def xdg_dirs(tmp_path, monkeypatch):
    """Point all XDG directories at a temporary location."""
    dirs = {}
    for var, name in [
        ("XDG_CONFIG_HOME", "config"),
        ("XDG_DATA_HOME", "data"),
        ("XDG_STATE_HOME", "state"),
    ]:
        dirs[name] = tmp_path / name
        monkeypatch.setenv(var, str(dirs[name]))
    monkeypatch.delenv("MAILBOX_AUTH_TOKEN", raising=False)
    return dirs


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_message():
    """
    Factory for stored messages.

    Messages default to unread and are timestamped `minutes_ago` before NOW.
    """

    def make(
        id: int,
        mailbox: str = "inbox",
        content: str | None = None,
        state: State = State.UNREAD,
        minutes_ago: int = 0,
    ) -> Message:
        return Message(
            id=id,
            created_at=NOW - timedelta(minutes=minutes_ago),
            mailbox=MailboxPath(mailbox),
            content=content if content is not None else f"message {id}",
            state=state,
        )

    return make


@pytest.fixture
def plain_formatter():
    """A formatter with no color and fixed UTC timestamps."""
    return (
        MessageFormatter()
        .with_color(False)
        .with_timestamp_format(TimestampFormat.UTC)
        .with_now(NOW)
    )


@pytest_asyncio.fixture
async def repository():
    """A Repository over a fresh in-memory database."""
    database = Database(":memory:")
    await database.connect()
    repo = Repository(database)
    yield repo
    await repo.close()


@pytest_asyncio.fixture
async def store(repository):
    """A MessageStore without override rules over the in-memory database."""
    return MessageStore(repository)
