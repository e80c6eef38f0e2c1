# =============================================================================
# Main Screen
# =============================================================================
# The only view of the TUI:
#   - Left panel: mailbox tree with counts
#   - Right panel: messages in the selected mailbox
#   - Bottom line: active filters, selection modes and loading state
#
# Key presses go through the keymap to the NavigationController, which
# updates the session state synchronously and hands back effects. Effects
# that need storage run as Textual workers through the StorageWorker; when
# they finish their results are fed back into the controller and the panes
# are redrawn.
# =============================================================================

import logging
import webbrowser
from pathlib import Path

from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import Click, Key, MouseScrollDown, MouseScrollUp
from textual.screen import Screen
from textual.widgets import Header, Static

from mailbox_tui.config import Config
from mailbox_tui.core import MailboxPath, MessageFilter, State
from mailbox_tui.rendering import MessageFormatter
from mailbox_tui.storage import MessageStore, StorageError, open_store
from mailbox_tui.tui import (
    Effect,
    EffectKind,
    NavigationController,
    Operation,
    Pane,
    SessionState,
    StorageWorker,
    resolve_key,
)
from mailbox_tui.ui.widgets import MailboxPane, MessagePane

logger = logging.getLogger(__name__)


class MainScreen(Screen):
    """
    The mailbox browsing screen.

    Keybindings are listed in mailbox_tui.tui.keymap. They are dispatched
    from on_key rather than through BINDINGS because the same key means
    different things depending on the focused pane.
    """

    CSS = """
    #main-container {
        height: 1fr;
    }

    #status-line {
        height: 1;
        background: $surface-darken-2;
        color: $text-muted;
        padding: 0 1;
    }
    """

    def __init__(
        self,
        config: Config,
        db_path: Path | str | None = None,
        initial_mailbox: MailboxPath | None = None,
        initial_states: set[State] | None = None,
        formatter: MessageFormatter | None = None,
    ) -> None:
        """
        Initialize the main screen.

        Args:
            config: Loaded configuration (database provider and overrides).
            db_path: SQLite file to use instead of the default location.
            initial_mailbox: Mailbox to select once mailboxes are loaded.
            initial_states: Message states to show initially.
            formatter: Formatter for message lines.
        """
        super().__init__()
        self._config = config
        self._db_path = db_path
        self._store: MessageStore | None = None
        self._worker: StorageWorker | None = None
        self._formatter = formatter or MessageFormatter()

        state = SessionState()
        if initial_states is not None:
            state.active_states = set(initial_states)
        self.controller = NavigationController(state, initial_mailbox)

    def compose(self) -> ComposeResult:
        """
        Compose the screen layout.

        +--------------------------------------------------+
        |                    Header                        |
        +--------------+-----------------------------------+
        |  Mailboxes   |  Messages                         |
        |              |                                   |
        +--------------+-----------------------------------+
        | Status                                           |
        +--------------------------------------------------+
        """
        yield Header()
        with Horizontal(id="main-container"):
            yield MailboxPane(id="mailbox-pane")
            yield MessagePane(self._formatter, id="message-pane")
        yield Static("Loading...", id="status-line")

    async def on_mount(self) -> None:
        """Open storage and load both panes."""
        try:
            self._store = await open_store(self._config, self._db_path)
        except StorageError as e:
            self.notify(f"Failed to open storage: {e}", severity="error", timeout=10)
            return
        self._worker = StorageWorker(self._store)
        self.run_effects(self.controller.startup())
        self.redraw()

    async def on_unmount(self) -> None:
        """Close storage."""
        if self._store:
            await self._store.close()
            self._store = None

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def on_key(self, event: Key) -> None:
        """Translate a key press into a controller operation."""
        operation = resolve_key(self.controller.state.focus, event.key)
        if operation is None and event.character and event.character.isprintable():
            # Shifted letters arrive as "shift+j" on some terminals
            operation = resolve_key(self.controller.state.focus, event.character)
        if operation is None:
            return

        event.stop()
        event.prevent_default()
        logger.debug(f"Key {event.key!r} -> {operation.name}")
        self.perform(operation)

    def on_mouse_scroll_down(self, event: MouseScrollDown) -> None:
        """The wheel moves the cursor of the focused pane."""
        event.stop()
        self.perform(Operation.CURSOR_NEXT)

    def on_mouse_scroll_up(self, event: MouseScrollUp) -> None:
        event.stop()
        self.perform(Operation.CURSOR_PREVIOUS)

    def on_click(self, event: Click) -> None:
        """Clicking a pane focuses it."""
        if event.widget is None:
            return
        for widget in event.widget.ancestors_with_self:
            if isinstance(widget, MailboxPane):
                self.perform(Operation.FOCUS_MAILBOXES)
                return
            if isinstance(widget, MessagePane):
                self.perform(Operation.FOCUS_MESSAGES)
                return

    def perform(self, operation: Operation) -> None:
        self.run_effects(self.controller.handle(operation))
        self.redraw()

    # -------------------------------------------------------------------------
    # Effects
    # -------------------------------------------------------------------------

    def run_effects(self, effects: list[Effect]) -> None:
        """Carry out the effects requested by a transition."""
        for effect in effects:
            if effect.kind is EffectKind.QUIT:
                self.app.exit()
            elif effect.kind is EffectKind.OPEN_URL and effect.url:
                self.open_url(effect.url)
            elif self._worker is None:
                continue
            elif effect.kind is EffectKind.RELOAD_MAILBOXES:
                self.load_mailboxes(effect.filter)
            elif effect.kind is EffectKind.RELOAD_MESSAGES:
                self.load_messages(effect.filter)
            elif effect.kind is EffectKind.CHANGE_STATE:
                self.change_state(effect.filter, effect.state)
            elif effect.kind is EffectKind.DELETE:
                self.delete_messages(effect.filter)

    def open_url(self, url: str) -> None:
        logger.info(f"Opening {url}")
        if webbrowser.open(url):
            self.notify(f"Opened {url}", timeout=3)
        else:
            self.notify(f"Could not open {url}", severity="warning")

    @work(exclusive=False, group="storage")
    async def load_mailboxes(self, message_filter: MessageFilter) -> None:
        self.redraw()
        try:
            mailboxes = await self._worker.load_mailboxes(message_filter)
        except StorageError as e:
            self.notify(f"Failed to load mailboxes: {e}", severity="error")
            return
        finally:
            self.redraw()
        if mailboxes is None:
            return
        self.run_effects(self.controller.replace_mailboxes(mailboxes))
        self.redraw()

    @work(exclusive=False, group="storage")
    async def load_messages(self, message_filter: MessageFilter) -> None:
        self.redraw()
        try:
            messages = await self._worker.load_messages(message_filter)
        except StorageError as e:
            self.notify(f"Failed to load messages: {e}", severity="error")
            return
        finally:
            self.redraw()
        if messages is None:
            return
        self.controller.replace_messages(messages)
        self.redraw()

    @work(exclusive=False, group="storage")
    async def change_state(self, message_filter: MessageFilter, new_state: State) -> None:
        self.redraw()
        try:
            changed = await self._worker.change_state(message_filter, new_state)
        except StorageError as e:
            self.notify(f"Failed to change messages: {e}", severity="error")
            return
        finally:
            self.redraw()
        self.notify(f"Marked {len(changed)} message(s) {new_state.value}", timeout=2)
        self.run_effects(self.controller.apply_state_changed(changed))
        self.redraw()

    @work(exclusive=False, group="storage")
    async def delete_messages(self, message_filter: MessageFilter) -> None:
        self.redraw()
        try:
            deleted = await self._worker.delete_messages(message_filter)
        except StorageError as e:
            self.notify(f"Failed to delete messages: {e}", severity="error")
            return
        finally:
            self.redraw()
        self.notify(f"Deleted {len(deleted)} message(s)", timeout=2)
        self.run_effects(self.controller.apply_deleted(deleted))
        self.redraw()

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    def redraw(self) -> None:
        """Redraw both panes and the status line from the session state."""
        state = self.controller.state
        self.query_one("#mailbox-pane", MailboxPane).show(
            state.mailboxes, state.focus is Pane.MAILBOXES
        )
        self.query_one("#message-pane", MessagePane).show(
            state.messages, state.focus is Pane.MESSAGES
        )
        self.query_one("#status-line", Static).update(self.status_text())

    def status_text(self) -> str:
        state = self.controller.state
        shown = [s.value for s in State if s in state.active_states]
        parts = [f"Showing: {', '.join(shown) if shown else 'nothing'}"]
        if state.selection:
            parts.append(f"{len(state.selection)} selected")
        if state.select_on_move:
            parts.append("select-on-move")
        if state.deselect_on_move:
            parts.append("deselect-on-move")
        if self._worker is not None and self._worker.busy:
            parts.append("loading...")
        return " | ".join(parts)
