# =============================================================================
# Server Module
# =============================================================================
# FastAPI REST surface over a local message store, run with uvicorn by
# `mailbox server`.
# =============================================================================

from mailbox_tui.server.app import create_app, run_server

__all__ = ["create_app", "run_server"]
