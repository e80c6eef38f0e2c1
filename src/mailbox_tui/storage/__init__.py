# =============================================================================
# Storage Module
# =============================================================================
# Handles persistent storage of messages.
#
# Provides:
#   - Database: aiosqlite connection and schema management
#   - Repository: the local SQLite backend
#   - HttpBackend: a client for a remote `mailbox server`
#   - MessageStore: validation and override rules in front of either backend
#
# The database lives in the XDG data directory (~/.local/share/mailbox/).
# =============================================================================

from mailbox_tui.storage.backend import (
    Backend,
    StorageError,
    UnrestrictedDeleteError,
    ValidationError,
)
from mailbox_tui.storage.database import Database
from mailbox_tui.storage.http_backend import HttpBackend
from mailbox_tui.storage.repository import Repository
from mailbox_tui.storage.store import MessageStore, open_store

__all__ = [
    "Backend",
    "Database",
    "HttpBackend",
    "MessageStore",
    "Repository",
    "StorageError",
    "UnrestrictedDeleteError",
    "ValidationError",
    "open_store",
]
