# =============================================================================
# Navigation Controller
# =============================================================================
# The state machine behind the TUI. It owns the session state (focused pane,
# cursors, selection, active state filter) and turns each Operation into:
#
#   1. an immediate, synchronous change to that state, and
#   2. a list of Effects for the screen to carry out: storage calls, reloads,
#      opening a URL, quitting.
#
# Nothing here awaits or touches storage, so every transition can be tested
# without a terminal or database. When a storage call completes, the screen
# reports the result back through the `replace_*` / `apply_*` methods.
# =============================================================================

import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto

from mailbox_tui.core import (
    MailboxInfo,
    MailboxPath,
    MailboxTree,
    Message,
    MessageFilter,
    State,
)
from mailbox_tui.tui.navigable_list import MultiselectList, TreeList

logger = logging.getLogger(__name__)

# How far page-style movement jumps
PAGE_SIZE = 10

URL_PATTERN = re.compile(r"https?://[^\s<>\"']+")


class Pane(Enum):
    """The two TUI panes."""
    MAILBOXES = "mailboxes"
    MESSAGES = "messages"


class Operation(Enum):
    """Everything a key press can ask the controller to do."""
    QUIT = auto()

    # Focus
    FOCUS_MAILBOXES = auto()
    FOCUS_MESSAGES = auto()
    SWITCH_PANE = auto()

    # Reloading and the state filter
    REFRESH = auto()
    TOGGLE_UNREAD_FILTER = auto()
    TOGGLE_READ_FILTER = auto()
    TOGGLE_ARCHIVED_FILTER = auto()

    # Cursor movement
    CURSOR_NEXT = auto()
    CURSOR_PREVIOUS = auto()
    CURSOR_PAGE_DOWN = auto()
    CURSOR_PAGE_UP = auto()
    CURSOR_FIRST = auto()
    CURSOR_LAST = auto()
    CURSOR_PARENT = auto()
    NEXT_SIBLING = auto()
    PREVIOUS_SIBLING = auto()
    REMOVE_CURSOR = auto()

    # Selection
    TOGGLE_SELECTED = auto()
    SELECT_ALL = auto()
    DESELECT_ALL = auto()
    TOGGLE_SELECT_ON_MOVE = auto()
    TOGGLE_DESELECT_ON_MOVE = auto()

    # Actions
    MARK_UNREAD = auto()
    MARK_READ = auto()
    MARK_ARCHIVED = auto()
    DELETE = auto()
    OPEN_URL = auto()


class EffectKind(Enum):
    """Work the screen performs after a transition."""
    QUIT = auto()
    RELOAD_MAILBOXES = auto()
    RELOAD_MESSAGES = auto()
    CHANGE_STATE = auto()
    DELETE = auto()
    OPEN_URL = auto()


@dataclass(frozen=True)
class Effect:
    """
    A side effect requested by a transition.

    Attributes:
        kind: What to do.
        filter: Which messages to load, change or delete.
        state: The new state for CHANGE_STATE.
        url: The address for OPEN_URL.
    """
    kind: EffectKind
    filter: MessageFilter | None = None
    state: State | None = None
    url: str | None = None


_FILTER_TOGGLES = {
    Operation.TOGGLE_UNREAD_FILTER: State.UNREAD,
    Operation.TOGGLE_READ_FILTER: State.READ,
    Operation.TOGGLE_ARCHIVED_FILTER: State.ARCHIVED,
}

_STATE_CHANGES = {
    Operation.MARK_UNREAD: State.UNREAD,
    Operation.MARK_READ: State.READ,
    Operation.MARK_ARCHIVED: State.ARCHIVED,
}


@dataclass
class SessionState:
    """
    Everything the TUI knows about the current session.

    Created at startup from the command line's initial filter, changed only
    by NavigationController, and discarded at exit.

    Attributes:
        focus: The pane receiving navigation keys.
        mailboxes: The mailbox pane's tree list and cursor.
        messages: The message pane's list, cursor and selection.
        active_states: States shown in both panes.
    """
    focus: Pane = Pane.MESSAGES
    mailboxes: TreeList = field(default_factory=TreeList)
    messages: MultiselectList[Message] = field(
        default_factory=lambda: MultiselectList(key=lambda message: message.id)
    )
    active_states: set[State] = field(
        default_factory=lambda: {State.UNREAD, State.READ}
    )

    @property
    def selection(self) -> set[int]:
        return self.messages.selected

    @property
    def select_on_move(self) -> bool:
        return self.messages.select_on_move

    @property
    def deselect_on_move(self) -> bool:
        return self.messages.deselect_on_move


class NavigationController:
    """
    Applies operations to a SessionState.

    Usage:
        >>> controller = NavigationController(SessionState(), initial_mailbox=None)
        >>> effects = controller.startup()
        >>> controller.replace_mailboxes(infos)
        >>> controller.replace_messages(messages)
        >>> effects = controller.handle(Operation.MARK_READ)
    """

    def __init__(
        self,
        state: SessionState | None = None,
        initial_mailbox: MailboxPath | None = None,
    ) -> None:
        self.state = state or SessionState()
        # Applied once the first mailbox list arrives
        self._pending_mailbox = initial_mailbox

    # =========================================================================
    # Filters
    # =========================================================================

    @property
    def active_mailbox(self) -> MailboxPath | None:
        node = self.state.mailboxes.cursor_item
        if node is not None:
            return node.path
        return self._pending_mailbox

    def display_filter(self) -> MessageFilter:
        """Which messages the message pane shows."""
        return (
            MessageFilter()
            .with_mailbox(self.active_mailbox)
            .with_states(self.state.active_states)
        )

    def mailbox_filter(self) -> MessageFilter:
        """Which messages count towards the mailbox pane."""
        return MessageFilter().with_states(self.state.active_states)

    def action_ids(self) -> set[int]:
        """
        The messages an action applies to: the selection if there is one,
        otherwise the message under the cursor, otherwise nothing.
        """
        messages = self.state.messages
        if messages.selected:
            return set(messages.selected)
        current = messages.cursor_item
        return {current.id} if current is not None else set()

    # =========================================================================
    # Transitions
    # =========================================================================

    def startup(self) -> list[Effect]:
        """Effects that populate both panes when the TUI opens."""
        return self._reload_all()

    def handle(self, operation: Operation) -> list[Effect]:
        """
        Apply one operation.

        Operations that make no sense in the focused pane are no-ops, never
        errors.

        Returns:
            The effects the screen must carry out.
        """
        if operation is Operation.QUIT:
            return [Effect(EffectKind.QUIT)]
        if operation is Operation.FOCUS_MAILBOXES:
            self.state.focus = Pane.MAILBOXES
            return []
        if operation is Operation.FOCUS_MESSAGES:
            self.state.focus = Pane.MESSAGES
            return []
        if operation is Operation.SWITCH_PANE:
            self.state.focus = (
                Pane.MESSAGES if self.state.focus is Pane.MAILBOXES else Pane.MAILBOXES
            )
            return []
        if operation is Operation.REFRESH:
            return self._reload_all()
        if operation in _FILTER_TOGGLES:
            return self._toggle_state_filter(_FILTER_TOGGLES[operation])

        if self.state.focus is Pane.MAILBOXES:
            return self._handle_mailbox_pane(operation)
        return self._handle_message_pane(operation)

    def _handle_mailbox_pane(self, operation: Operation) -> list[Effect]:
        mailboxes = self.state.mailboxes
        old_mailbox = self.active_mailbox

        if operation in _STATE_CHANGES:
            if old_mailbox is None:
                return []
            return [Effect(
                EffectKind.CHANGE_STATE,
                filter=MessageFilter().with_mailbox(old_mailbox),
                state=_STATE_CHANGES[operation],
            )]

        if operation is Operation.CURSOR_NEXT:
            mailboxes.move(1)
        elif operation is Operation.CURSOR_PREVIOUS:
            mailboxes.move(-1)
        elif operation is Operation.CURSOR_PAGE_DOWN:
            mailboxes.move(PAGE_SIZE)
        elif operation is Operation.CURSOR_PAGE_UP:
            mailboxes.move(-PAGE_SIZE)
        elif operation is Operation.CURSOR_FIRST:
            mailboxes.first()
        elif operation is Operation.CURSOR_LAST:
            mailboxes.last()
        elif operation is Operation.CURSOR_PARENT:
            mailboxes.parent()
        elif operation is Operation.NEXT_SIBLING:
            mailboxes.next_sibling()
        elif operation is Operation.PREVIOUS_SIBLING:
            mailboxes.previous_sibling()
        elif operation is Operation.REMOVE_CURSOR:
            mailboxes.remove_cursor()
        else:
            return []

        return self._after_mailbox_move(old_mailbox)

    def _after_mailbox_move(self, old_mailbox: MailboxPath | None) -> list[Effect]:
        """
        React to the mailbox cursor moving.

        Narrowing into a descendant can be done by filtering the loaded
        messages; anything else needs a reload.
        """
        new_mailbox = self.active_mailbox
        if new_mailbox == old_mailbox:
            return []
        if new_mailbox is not None and (old_mailbox is None or old_mailbox.contains(new_mailbox)):
            messages = self.state.messages
            messages.replace_items(self.display_filter().apply(messages.items))
            return []
        return self._reload_all()

    def _handle_message_pane(self, operation: Operation) -> list[Effect]:
        messages = self.state.messages

        if operation in _STATE_CHANGES:
            ids = self.action_ids()
            if not ids:
                return []
            return [Effect(
                EffectKind.CHANGE_STATE,
                filter=MessageFilter().with_ids(ids),
                state=_STATE_CHANGES[operation],
            )]
        if operation is Operation.DELETE:
            ids = self.action_ids()
            if not ids:
                return []
            return [Effect(EffectKind.DELETE, filter=MessageFilter().with_ids(ids))]
        if operation is Operation.OPEN_URL:
            url = self.cursor_url()
            return [Effect(EffectKind.OPEN_URL, url=url)] if url else []

        if operation is Operation.CURSOR_NEXT:
            messages.move(1)
        elif operation is Operation.CURSOR_PREVIOUS:
            messages.move(-1)
        elif operation is Operation.CURSOR_PAGE_DOWN:
            messages.move(PAGE_SIZE)
        elif operation is Operation.CURSOR_PAGE_UP:
            messages.move(-PAGE_SIZE)
        elif operation is Operation.CURSOR_FIRST:
            messages.first()
        elif operation is Operation.CURSOR_LAST:
            messages.last()
        elif operation is Operation.REMOVE_CURSOR:
            messages.remove_cursor()
        elif operation is Operation.TOGGLE_SELECTED:
            messages.toggle_cursor_selected()
        elif operation is Operation.SELECT_ALL:
            messages.set_all_selected(True)
        elif operation is Operation.DESELECT_ALL:
            messages.set_all_selected(False)
        elif operation is Operation.TOGGLE_SELECT_ON_MOVE:
            messages.select_on_move = not messages.select_on_move
        elif operation is Operation.TOGGLE_DESELECT_ON_MOVE:
            messages.deselect_on_move = not messages.deselect_on_move
        return []

    def _toggle_state_filter(self, state: State) -> list[Effect]:
        self.state.active_states ^= {state}
        return self._reload_all()

    def _reload_all(self) -> list[Effect]:
        return [
            Effect(EffectKind.RELOAD_MAILBOXES, filter=self.mailbox_filter()),
            Effect(EffectKind.RELOAD_MESSAGES, filter=self.display_filter()),
        ]

    def cursor_url(self) -> str | None:
        """The first URL in the message under the cursor."""
        current = self.state.messages.cursor_item
        if current is None:
            return None
        match = URL_PATTERN.search(current.content)
        return match.group(0) if match else None

    # =========================================================================
    # Storage Results
    # =========================================================================

    def replace_mailboxes(self, infos: list[MailboxInfo]) -> list[Effect]:
        """
        Install a freshly loaded mailbox list.

        Returns:
            A message reload if the active mailbox changed as a result,
            e.g. because it no longer exists.
        """
        old_filter = self.display_filter()
        mailboxes = self.state.mailboxes
        mailboxes.replace_tree(MailboxTree.from_counts(infos))

        if self._pending_mailbox is not None:
            mailboxes.set_cursor(mailboxes.index_of(self._pending_mailbox))
            if mailboxes.cursor is None:
                logger.info(f"Initial mailbox {self._pending_mailbox} has no messages")
            self._pending_mailbox = None

        new_filter = self.display_filter()
        if new_filter != old_filter:
            return [Effect(EffectKind.RELOAD_MESSAGES, filter=new_filter)]
        return []

    def replace_messages(self, messages: list[Message]) -> None:
        """Install a freshly loaded message list."""
        self.state.messages.replace_items(messages)

    def apply_state_changed(self, changed: list[Message]) -> list[Effect]:
        """
        Reflect a completed state change.

        Changed messages that no longer pass the display filter leave the
        list straight away; both panes are then reloaded.

        Only messages that were on display are taken out of the mailbox
        counts. A whole-mailbox change also returns messages that were
        hidden, and so never counted, before it ran.
        """
        by_id = {message.id: message for message in changed}
        shown = {message.id for message in self.state.messages.items}
        display_filter = self.display_filter()
        updated = [by_id.get(message.id, message) for message in self.state.messages.items]
        self.state.messages.replace_items(display_filter.apply(updated))

        mailbox_filter = self.mailbox_filter()
        self._forget_messages([
            message for message in changed
            if message.id in shown and not mailbox_filter.matches(message)
        ])
        return self._reload_all()

    def apply_deleted(self, deleted: list[Message]) -> list[Effect]:
        """
        Reflect a completed delete: drop the messages from the list and the
        selection, re-clamp the cursor, then reload both panes.
        """
        ids = {message.id for message in deleted}
        messages = self.state.messages
        messages.replace_items(message for message in messages.items if message.id not in ids)
        self._forget_messages(deleted)
        return self._reload_all()

    def _forget_messages(self, removed: list[Message]) -> None:
        """Take messages out of the mailbox counts until the next reload."""
        if not removed:
            return
        mailboxes = self.state.mailboxes
        mailboxes.tree.remove_messages(removed)
        mailboxes.replace_tree(mailboxes.tree)
