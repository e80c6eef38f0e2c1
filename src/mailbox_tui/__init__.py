# =============================================================================
# Mailbox: A Local Inbox for Scripts and Services
# =============================================================================
#
# Scripts, cron jobs and servers drop short messages into named, nested
# mailboxes ("backups/nas", "alerts/disk"); you read them later from the
# command line or a two-pane terminal UI.
#
# Features:
#   - Hierarchical mailboxes with unread/read/archived states
#   - Per-mailbox override rules applied when messages arrive
#   - Local SQLite storage, or a remote store over HTTP
#   - A REST server for sharing one store between machines
#   - XDG Base Directory compliant
#
# =============================================================================

__version__ = "0.1.0"
__app_name__ = "mailbox"

# Main entry point - this is what gets called by the 'mailbox' command
from mailbox_tui.app import main

__all__ = ["main", "__version__", "__app_name__"]
