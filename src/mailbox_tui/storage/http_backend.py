# =============================================================================
# HTTP Backend
# =============================================================================
# Talks to a remote `mailbox server` over its REST API, so several machines
# can share one store:
#
#   GET    {url}/messages?ids=&mailbox=&states=
#   POST   {url}/messages                 body: [{"mailbox", "content", "state"}]
#   PUT    {url}/messages?...             body: {"new_state": "read"}
#   DELETE {url}/messages?...
#   GET    {url}/mailboxes?...            -> {"mailbox": count}
#
# Filters travel as the same query parameters the CLI accepts.
# =============================================================================

import logging
from typing import Any

import httpx

from mailbox_tui.core import MailboxInfo, MailboxPath, Message, MessageFilter, NewMessage, State
from mailbox_tui.storage.backend import StorageError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class HttpBackend:
    """
    Remote storage backend.

    Usage:
        >>> backend = HttpBackend("https://mailbox.example.com/api", token="secret")
        >>> messages = await backend.load_messages(MessageFilter())
        >>> await backend.close()

    Args:
        api_url: Base URL of the API, without a trailing slash.
        token: Optional bearer token.
        transport: Custom httpx transport (used by tests).
    """

    def __init__(
        self,
        api_url: str,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=DEFAULT_TIMEOUT,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        message_filter: MessageFilter | None = None,
        body: Any = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON response.

        Raises:
            StorageError: On connection failures, non-2xx responses or
                          malformed JSON.
        """
        url = f"{self.api_url}{path}"
        params = message_filter.to_query() if message_filter is not None else None
        try:
            response = await self._client.request(method, url, params=params, json=body)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise StorageError(f"Request to {url} failed: {e}") from e

        if not response.is_success:
            logger.error(f"{method} {url} returned {response.status_code}")
            raise StorageError(
                f"Request to {url} failed with status code {response.status_code}\n\n"
                f"Response: {response.text}",
                status=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise StorageError(f"Invalid JSON in response from {url}") from e

    def _parse_messages(self, data: Any) -> list[Message]:
        try:
            return [Message.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Invalid message in response: {e}") from e

    # =========================================================================
    # Backend Operations
    # =========================================================================

    async def add_messages(self, messages: list[NewMessage]) -> list[Message]:
        if not messages:
            return []
        data = await self._request(
            "POST", "/messages", body=[message.to_dict() for message in messages]
        )
        return self._parse_messages(data)

    async def load_messages(self, message_filter: MessageFilter) -> list[Message]:
        return self._parse_messages(await self._request("GET", "/messages", message_filter))

    async def change_state(
        self, message_filter: MessageFilter, new_state: State
    ) -> list[Message]:
        data = await self._request(
            "PUT", "/messages", message_filter, body={"new_state": new_state.value}
        )
        return self._parse_messages(data)

    async def delete_messages(self, message_filter: MessageFilter) -> list[Message]:
        return self._parse_messages(await self._request("DELETE", "/messages", message_filter))

    async def load_mailboxes(self, message_filter: MessageFilter) -> list[MailboxInfo]:
        data = await self._request("GET", "/mailboxes", message_filter)
        try:
            return [MailboxInfo(MailboxPath(name), int(count)) for name, count in data.items()]
        except (AttributeError, TypeError, ValueError) as e:
            raise StorageError(f"Invalid mailbox list in response: {e}") from e
