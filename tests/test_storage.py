# =============================================================================
# Storage Tests
# =============================================================================
# The SQLite repository, the MessageStore facade and the HTTP backend.
# =============================================================================

import json

import httpx
import pytest

from mailbox_tui.config import Config
from mailbox_tui.core import (
    MailboxPath,
    MessageFilter,
    NewMessage,
    OverrideResolver,
    OverrideTarget,
    State,
)
from mailbox_tui.storage import (
    HttpBackend,
    MessageStore,
    StorageError,
    UnrestrictedDeleteError,
    ValidationError,
    open_store,
)


def new(mailbox, content, state=None):
    return NewMessage(MailboxPath(mailbox), content, state)


def contents(messages):
    return [message.content for message in messages]


# =============================================================================
# Repository
# =============================================================================

class TestRepository:
    async def test_batch_comes_back_in_input_order(self, repository):
        added = await repository.add_messages([new("a", "1"), new("a", "2"), new("a", "3")])
        assert contents(added) == ["1", "2", "3"]
        loaded = await repository.load_messages(MessageFilter())
        assert contents(loaded) == ["1", "2", "3"]
        assert [m.id for m in loaded] == [m.id for m in added]

    async def test_newer_messages_come_first(self, repository):
        await repository.add_messages([new("a", "old")])
        await repository.add_messages([new("a", "new")])
        assert contents(await repository.load_messages(MessageFilter())) == ["new", "old"]

    async def test_default_state_is_unread(self, repository):
        added = await repository.add_messages([new("a", "x"), new("a", "y", State.ARCHIVED)])
        assert [m.state for m in added] == [State.UNREAD, State.ARCHIVED]
        assert added[0].created_at.tzinfo is not None

    async def test_mailbox_filter_matches_subtree(self, repository):
        await repository.add_messages([
            new("a", "a"),
            new("a/b", "a/b"),
            new("ab", "ab"),
            new("a_b/c", "a_b/c"),
            new("axb/c", "axb/c"),
        ])
        loaded = await repository.load_messages(MessageFilter().with_mailbox(MailboxPath("a")))
        assert sorted(contents(loaded)) == ["a", "a/b"]
        loaded = await repository.load_messages(MessageFilter().with_mailbox(MailboxPath("a_b")))
        assert contents(loaded) == ["a_b/c"]

    async def test_state_and_id_filters(self, repository):
        added = await repository.add_messages([
            new("a", "1"),
            new("a", "2", State.READ),
            new("a", "3", State.ARCHIVED),
        ])
        unarchived = MessageFilter().with_states([State.UNREAD, State.READ])
        assert contents(await repository.load_messages(unarchived)) == ["1", "2"]
        by_id = MessageFilter().with_ids([added[2].id])
        assert contents(await repository.load_messages(by_id)) == ["3"]
        assert await repository.load_messages(MessageFilter().with_states([])) == []
        assert await repository.load_messages(MessageFilter().with_ids([])) == []

    async def test_change_state(self, repository):
        await repository.add_messages([new("a", "1"), new("b", "2")])
        changed = await repository.change_state(
            MessageFilter().with_mailbox(MailboxPath("a")), State.READ
        )
        assert contents(changed) == ["1"]
        assert changed[0].state is State.READ

        read = await repository.load_messages(MessageFilter().with_states([State.READ]))
        assert contents(read) == ["1"]

    async def test_change_state_without_matches(self, repository):
        assert await repository.change_state(MessageFilter().with_ids([99]), State.READ) == []

    async def test_delete(self, repository):
        await repository.add_messages([new("a", "1"), new("b", "2")])
        deleted = await repository.delete_messages(MessageFilter().with_mailbox(MailboxPath("b")))
        assert contents(deleted) == ["2"]
        assert contents(await repository.load_messages(MessageFilter())) == ["1"]

    async def test_load_mailboxes(self, repository):
        await repository.add_messages([
            new("b", "1"),
            new("a/x", "2"),
            new("a/x", "3", State.ARCHIVED),
            new("a", "4"),
        ])
        infos = await repository.load_mailboxes(MessageFilter().with_states([State.UNREAD]))
        assert [(str(info.mailbox), info.message_count) for info in infos] == [
            ("a", 1), ("a/x", 1), ("b", 1)
        ]


# =============================================================================
# MessageStore
# =============================================================================

class TestMessageStore:
    async def test_overrides_apply_on_add(self, repository):
        store = MessageStore(repository, OverrideResolver({
            MailboxPath("cron"): OverrideTarget.READ,
            MailboxPath("cron/noise"): OverrideTarget.IGNORED,
        }))
        added = await store.add_messages([
            new("cron/backup", "done", State.UNREAD),
            new("cron/noise", "tick"),
            new("alerts", "disk"),
        ])
        assert [(m.content, m.state) for m in added] == [
            ("done", State.READ), ("disk", State.UNREAD)
        ]
        assert len(await store.load_messages(MessageFilter())) == 2

    async def test_ignored_single_message(self, repository):
        store = MessageStore(repository, OverrideResolver({
            MailboxPath("noise"): OverrideTarget.IGNORED,
        }))
        assert await store.add_message(MailboxPath("noise"), "tick") is None

    async def test_empty_content_is_rejected(self, store):
        with pytest.raises(ValidationError):
            await store.add_messages([new("a", "ok"), new("a", "")])
        assert await store.load_messages(MessageFilter()) == []

    async def test_unrestricted_delete_is_rejected(self, store):
        await store.add_messages([new("a", "x")])
        with pytest.raises(UnrestrictedDeleteError):
            await store.delete_messages(MessageFilter())
        assert len(await store.load_messages(MessageFilter())) == 1

    async def test_delete_with_any_restriction(self, store):
        await store.add_messages([new("a", "x", State.ARCHIVED)])
        deleted = await store.delete_messages(MessageFilter().with_states([State.ARCHIVED]))
        assert contents(deleted) == ["x"]

    async def test_open_store_creates_sqlite_file(self, tmp_path):
        db_path = tmp_path / "data" / "test.db"
        store = await open_store(Config(), db_path)
        try:
            await store.add_message(MailboxPath("a"), "x")
        finally:
            await store.close()
        assert db_path.exists()

        store = await open_store(Config(), db_path)
        try:
            assert contents(await store.load_messages(MessageFilter())) == ["x"]
        finally:
            await store.close()


# =============================================================================
# HTTP Backend
# =============================================================================

MESSAGE_JSON = {
    "id": 7,
    "timestamp": "2024-05-01T12:00:00+00:00",
    "mailbox": "a/b",
    "content": "hello",
    "state": "unread",
}


def backend_with(handler, token="secret"):
    return HttpBackend(
        "http://mailbox.test/api/",
        token=token,
        transport=httpx.MockTransport(handler),
    )


class TestHttpBackend:
    async def test_load_messages_sends_filter_and_token(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=[MESSAGE_JSON])

        backend = backend_with(handler)
        try:
            messages = await backend.load_messages(
                MessageFilter().with_mailbox(MailboxPath("a")).with_states([State.UNREAD])
            )
        finally:
            await backend.close()

        assert messages[0].id == 7
        assert messages[0].mailbox == MailboxPath("a/b")
        request = requests[0]
        assert request.method == "GET"
        assert request.url.path == "/api/messages"
        assert request.url.params["mailbox"] == "a"
        assert request.url.params["states"] == "unread"
        assert request.headers["Authorization"] == "Bearer secret"

    async def test_change_state_sends_body(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=[{**MESSAGE_JSON, "state": "read"}])

        backend = backend_with(handler)
        try:
            changed = await backend.change_state(MessageFilter().with_ids([7]), State.READ)
        finally:
            await backend.close()
        assert bodies == [{"new_state": "read"}]
        assert changed[0].state is State.READ

    async def test_add_messages_posts_a_list(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=[MESSAGE_JSON])

        backend = backend_with(handler, token=None)
        try:
            await backend.add_messages([new("a/b", "hello")])
        finally:
            await backend.close()
        assert bodies == [[{"mailbox": "a/b", "content": "hello"}]]

    async def test_load_mailboxes(self):
        backend = backend_with(lambda request: httpx.Response(200, json={"a": 2, "a/b": 1}))
        try:
            infos = await backend.load_mailboxes(MessageFilter())
        finally:
            await backend.close()
        assert [(str(i.mailbox), i.message_count) for i in infos] == [("a", 2), ("a/b", 1)]

    async def test_error_status_raises(self):
        backend = backend_with(lambda request: httpx.Response(500, text="boom"))
        try:
            with pytest.raises(StorageError) as excinfo:
                await backend.load_messages(MessageFilter())
        finally:
            await backend.close()
        assert excinfo.value.status == 500
        assert excinfo.value.body == "boom"

    async def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        backend = backend_with(handler)
        try:
            with pytest.raises(StorageError):
                await backend.load_mailboxes(MessageFilter())
        finally:
            await backend.close()

    async def test_malformed_response_raises(self):
        backend = backend_with(lambda request: httpx.Response(200, json=[{"id": 1}]))
        try:
            with pytest.raises(StorageError):
                await backend.load_messages(MessageFilter())
        finally:
            await backend.close()
