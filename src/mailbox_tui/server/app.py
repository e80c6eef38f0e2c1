# =============================================================================
# REST Server
# =============================================================================
# Serves a local message store over HTTP so other machines can use it with
# the "http" database provider.
#
#   GET    /api/mailboxes   {"mailbox": count} for matching messages
#   GET    /api/messages    matching messages, newest first
#   POST   /api/messages    add one message or a list of messages
#   PUT    /api/messages    {"new_state": "read"} for matching messages
#   DELETE /api/messages    delete matching messages (a filter is required)
#
# Every endpoint takes the filter query parameters ids, mailbox and states.
# When a token is configured, requests must send "Authorization: Bearer
# <token>".
# =============================================================================

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from fastapi import APIRouter, Body, Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import uvicorn

from mailbox_tui import __version__
from mailbox_tui.config import Config
from mailbox_tui.core import FilterError, MessageFilter, NewMessage, State
from mailbox_tui.storage import (
    MessageStore,
    StorageError,
    ValidationError,
    open_store,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class StateChange(BaseModel):
    """Body of PUT /messages."""
    new_state: State


# ── dependencies ───────────────────────────────────────────────────────────────

def get_store(request: Request) -> MessageStore:
    return request.app.state.store


def check_token(request: Request, authorization: str | None = Header(default=None)) -> None:
    """Reject requests without the configured bearer token."""
    token = request.app.state.token
    if token and authorization != f"Bearer {token}":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


def get_filter(
    ids: str | None = Query(default=None, description="Comma-separated message ids"),
    mailbox: str | None = Query(default=None, description="Mailbox, including descendants"),
    states: str | None = Query(default=None, description="Comma-separated states"),
) -> MessageFilter:
    try:
        return MessageFilter.from_query(ids=ids, mailbox=mailbox, states=states)
    except FilterError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


# ── endpoints ──────────────────────────────────────────────────────────────────

@router.get("/mailboxes")
async def read_mailboxes(
    message_filter: MessageFilter = Depends(get_filter),
    store: MessageStore = Depends(get_store),
) -> dict[str, int]:
    mailboxes = await store.load_mailboxes(message_filter)
    return {str(info.mailbox): info.message_count for info in mailboxes}


@router.get("/messages")
async def read_messages(
    message_filter: MessageFilter = Depends(get_filter),
    store: MessageStore = Depends(get_store),
) -> list[dict[str, Any]]:
    messages = await store.load_messages(message_filter)
    return [message.to_dict() for message in messages]


@router.post("/messages")
async def create_messages(
    body: Any = Body(...),
    store: MessageStore = Depends(get_store),
) -> list[dict[str, Any]]:
    items = body if isinstance(body, list) else [body]
    try:
        new_messages = [NewMessage.from_dict(item) for item in items]
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    messages = await store.add_messages(new_messages)
    logger.info(f"Added {len(messages)} message(s)")
    return [message.to_dict() for message in messages]


@router.put("/messages")
async def update_messages(
    change: StateChange,
    message_filter: MessageFilter = Depends(get_filter),
    store: MessageStore = Depends(get_store),
) -> list[dict[str, Any]]:
    messages = await store.change_state(message_filter, change.new_state)
    return [message.to_dict() for message in messages]


@router.delete("/messages")
async def delete_messages(
    message_filter: MessageFilter = Depends(get_filter),
    store: MessageStore = Depends(get_store),
) -> list[dict[str, Any]]:
    messages = await store.delete_messages(message_filter)
    return [message.to_dict() for message in messages]


# ── app ────────────────────────────────────────────────────────────────────────

def create_app(
    db_path: Path | str | None = None,
    token: str | None = None,
    store: MessageStore | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        db_path: SQLite file to serve. Defaults to the XDG data location.
        token: Bearer token required on every request, or None for no auth.
        store: An already-open store to serve instead of opening one.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = store is None
        # The server always serves the local database, and stores messages
        # exactly as clients send them; clients apply their own overrides
        app.state.store = store or await open_store(Config(), db_path, apply_overrides=False)
        logger.info("Mailbox server started")
        try:
            yield
        finally:
            if owned:
                await app.state.store.close()

    app = FastAPI(title="Mailbox API", version=__version__, lifespan=lifespan)
    app.state.token = token

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        # Covers UnrestrictedDeleteError ("Filter is required")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)}
        )

    app.include_router(router, prefix="/api", dependencies=[Depends(check_token)])
    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 8080,
    token: str | None = None,
    db_path: Path | str | None = None,
    debug: bool = False,
) -> None:
    """Serve the API with uvicorn until interrupted."""
    logger.info(f"Serving on http://{host}:{port}/api")
    uvicorn.run(
        create_app(db_path=db_path, token=token),
        host=host,
        port=port,
        log_level="debug" if debug else "info",
    )
