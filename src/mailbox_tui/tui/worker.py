# =============================================================================
# Storage Worker
# =============================================================================
# Sits between the TUI screen and the MessageStore and enforces two rules:
#
#   - Mutations (state changes, deletes) run one at a time, in the order
#     they were requested. Later ones wait for earlier ones to finish.
#   - Loads may overlap, but only the most recently started load of each
#     kind is used. Older results are discarded when they arrive, so a slow
#     response can never overwrite a newer one.
# =============================================================================

import asyncio
import logging

from mailbox_tui.core import MailboxInfo, Message, MessageFilter, State
from mailbox_tui.storage import MessageStore

logger = logging.getLogger(__name__)


class RequestCounter:
    """
    Hands out increasing request ids and tells whether an id is the latest.

    Usage:
        >>> counter = RequestCounter()
        >>> first, second = counter.next(), counter.next()
        >>> counter.is_latest(first), counter.is_latest(second)
        (False, True)
    """

    def __init__(self) -> None:
        self._latest = 0

    def next(self) -> int:
        self._latest += 1
        return self._latest

    def is_latest(self, request_id: int) -> bool:
        return request_id == self._latest


class StorageWorker:
    """
    Serializes storage access for the TUI.

    Load methods return None when their result is stale.
    """

    def __init__(self, store: MessageStore) -> None:
        self.store = store
        self._mutation_lock = asyncio.Lock()
        self._mailbox_requests = RequestCounter()
        self._message_requests = RequestCounter()
        self._pending = 0

    @property
    def busy(self) -> bool:
        """Whether any storage request is in flight."""
        return self._pending > 0

    async def load_mailboxes(self, message_filter: MessageFilter) -> list[MailboxInfo] | None:
        request_id = self._mailbox_requests.next()
        self._pending += 1
        try:
            mailboxes = await self.store.load_mailboxes(message_filter)
        finally:
            self._pending -= 1
        if not self._mailbox_requests.is_latest(request_id):
            logger.debug(f"Discarding stale mailbox load {request_id}")
            return None
        return mailboxes

    async def load_messages(self, message_filter: MessageFilter) -> list[Message] | None:
        request_id = self._message_requests.next()
        self._pending += 1
        try:
            messages = await self.store.load_messages(message_filter)
        finally:
            self._pending -= 1
        if not self._message_requests.is_latest(request_id):
            logger.debug(f"Discarding stale message load {request_id}")
            return None
        return messages

    async def change_state(self, message_filter: MessageFilter, new_state: State) -> list[Message]:
        self._pending += 1
        try:
            async with self._mutation_lock:
                return await self.store.change_state(message_filter, new_state)
        finally:
            self._pending -= 1

    async def delete_messages(self, message_filter: MessageFilter) -> list[Message]:
        self._pending += 1
        try:
            async with self._mutation_lock:
                return await self.store.delete_messages(message_filter)
        finally:
            self._pending -= 1
