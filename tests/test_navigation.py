# =============================================================================
# Navigation Tests
# =============================================================================
# Cursor lists, the NavigationController state machine and the keymap. None
# of these need a terminal or a database.
# =============================================================================

import pytest

from mailbox_tui.core import MailboxInfo, MailboxPath, MailboxTree, State
from mailbox_tui.tui import (
    EffectKind,
    NavigationController,
    Operation,
    Pane,
    SessionState,
    resolve_key,
)
from mailbox_tui.tui.navigable_list import MultiselectList, NavigableList, TreeList


def int_list(items, cursor=None):
    items_list = NavigableList(key=lambda item: item)
    items_list.items = list(items)
    items_list.cursor = cursor
    return items_list


def kinds(effects):
    return [effect.kind for effect in effects]


# =============================================================================
# Lists
# =============================================================================

class TestNavigableList:
    def test_move_clamps(self):
        items = int_list([1, 2, 3], cursor=1)
        items.move(10)
        assert items.cursor == 2
        items.move(-10)
        assert items.cursor == 0

    def test_move_without_cursor_lands_on_first(self):
        items = int_list([1, 2, 3])
        items.move(-1)
        assert items.cursor == 0

    def test_empty_list_has_no_cursor(self):
        items = int_list([])
        items.move(1)
        items.last()
        assert items.cursor is None
        assert items.cursor_item is None

    def test_first_and_last(self):
        items = int_list([1, 2, 3])
        items.last()
        assert items.cursor_item == 3
        items.first()
        assert items.cursor_item == 1

    def test_replace_keeps_cursor_on_surviving_item(self):
        items = int_list([1, 2, 3, 4], cursor=2)
        items.replace_items([0, 1, 2, 3, 4])
        assert items.cursor_item == 3

    def test_replace_moves_to_next_surviving_item(self):
        items = int_list([1, 2, 3, 4], cursor=1)
        items.replace_items([1, 3, 4])
        assert items.cursor_item == 3

    def test_replace_clamps_when_nothing_after_cursor_survives(self):
        items = int_list([1, 2, 3, 4], cursor=3)
        items.replace_items([1, 2])
        assert items.cursor == 1

    def test_replace_with_nothing_clears_cursor(self):
        items = int_list([1, 2], cursor=0)
        items.replace_items([])
        assert items.cursor is None

    def test_replace_without_cursor_stays_without_cursor(self):
        items = int_list([1, 2])
        items.replace_items([2, 3])
        assert items.cursor is None


class TestMultiselectList:
    @pytest.fixture
    def items(self):
        items = MultiselectList(key=lambda item: item)
        items.replace_items([10, 20, 30])
        return items

    def test_toggle_selected(self, items):
        items.first()
        items.toggle_cursor_selected()
        assert items.selected == {10}
        items.toggle_cursor_selected()
        assert items.selected == set()

    def test_select_all_and_deselect_all(self, items):
        items.set_all_selected(True)
        assert items.selected_items == [10, 20, 30]
        items.set_all_selected(False)
        assert items.selected == set()

    def test_select_on_move(self, items):
        items.select_on_move = True
        items.move(1)
        items.move(1)
        assert items.selected == {10, 20}

    def test_deselect_on_move_releases_the_item_left(self, items):
        items.set_all_selected(True)
        items.first()
        items.deselect_on_move = True
        items.move(1)
        assert items.selected == {20, 30}

    def test_both_move_flags_hand_the_selection_along(self, items):
        items.first()
        items.toggle_cursor_selected()
        items.select_on_move = True
        items.deselect_on_move = True
        items.move(1)
        assert items.selected == {20}

    def test_select_on_move_alone_keeps_the_item_left(self, items):
        items.first()
        items.toggle_cursor_selected()
        items.select_on_move = True
        items.move(1)
        assert items.selected == {10, 20}

    def test_no_move_at_the_end_changes_nothing(self, items):
        items.last()
        items.select_on_move = True
        items.deselect_on_move = True
        items.move(1)
        assert items.selected == set()

    def test_reload_drops_missing_selection_without_moving(self, items):
        items.set_all_selected(True)
        items.select_on_move = True
        items.replace_items([20, 30, 40])
        assert items.selected == {20, 30}


class TestTreeList:
    @pytest.fixture
    def mailboxes(self):
        mailboxes = TreeList()
        mailboxes.replace_tree(MailboxTree.from_counts([
            MailboxInfo(MailboxPath(name), 1) for name in ["a", "a/b", "a/b/c", "d"]
        ]))
        return mailboxes

    def test_sibling_jumps(self, mailboxes):
        mailboxes.first()
        mailboxes.next_sibling()
        assert str(mailboxes.cursor_item.path) == "d"
        mailboxes.previous_sibling()
        assert str(mailboxes.cursor_item.path) == "a"

    def test_parent(self, mailboxes):
        mailboxes.set_cursor(mailboxes.index_of(MailboxPath("a/b/c")))
        mailboxes.parent()
        assert str(mailboxes.cursor_item.path) == "a/b"

    def test_parent_of_root_stays(self, mailboxes):
        mailboxes.first()
        mailboxes.parent()
        assert str(mailboxes.cursor_item.path) == "a"

    def test_jumps_without_cursor_go_to_first(self, mailboxes):
        mailboxes.next_sibling()
        assert mailboxes.cursor == 0


# =============================================================================
# Controller
# =============================================================================

@pytest.fixture
def infos():
    return [
        MailboxInfo(MailboxPath("a"), 1),
        MailboxInfo(MailboxPath("a/b"), 1),
        MailboxInfo(MailboxPath("d"), 1),
    ]


@pytest.fixture
def messages(make_message):
    return [
        make_message(3, "a", "see https://example.com/x for details"),
        make_message(2, "a/b", minutes_ago=1),
        make_message(1, "d", minutes_ago=2),
    ]


@pytest.fixture
def controller(infos, messages):
    controller = NavigationController()
    controller.replace_mailboxes(infos)
    controller.replace_messages(messages)
    return controller


class TestNavigationController:
    def test_startup_reloads_both_panes(self):
        controller = NavigationController()
        effects = controller.startup()
        assert kinds(effects) == [EffectKind.RELOAD_MAILBOXES, EffectKind.RELOAD_MESSAGES]
        assert effects[0].filter.states == {State.UNREAD, State.READ}
        assert effects[1].filter.mailbox is None

    def test_initial_mailbox_is_selected_once_loaded(self, infos):
        controller = NavigationController(initial_mailbox=MailboxPath("a/b"))
        assert controller.display_filter().mailbox == MailboxPath("a/b")
        assert controller.replace_mailboxes(infos) == []
        assert str(controller.state.mailboxes.cursor_item.path) == "a/b"

    def test_missing_initial_mailbox_falls_back_to_all(self, infos):
        controller = NavigationController(initial_mailbox=MailboxPath("zzz"))
        effects = controller.replace_mailboxes(infos)
        assert kinds(effects) == [EffectKind.RELOAD_MESSAGES]
        assert effects[0].filter.mailbox is None

    def test_focus_switching(self, controller):
        controller.handle(Operation.SWITCH_PANE)
        assert controller.state.focus is Pane.MAILBOXES
        controller.handle(Operation.FOCUS_MESSAGES)
        assert controller.state.focus is Pane.MESSAGES

    def test_quit(self, controller):
        assert kinds(controller.handle(Operation.QUIT)) == [EffectKind.QUIT]

    def test_mark_read_uses_cursor(self, controller):
        controller.handle(Operation.CURSOR_NEXT)
        effects = controller.handle(Operation.MARK_READ)
        assert kinds(effects) == [EffectKind.CHANGE_STATE]
        assert effects[0].filter.ids == {3}
        assert effects[0].state is State.READ

    def test_actions_prefer_selection(self, controller):
        controller.handle(Operation.SELECT_ALL)
        controller.handle(Operation.CURSOR_NEXT)
        effects = controller.handle(Operation.DELETE)
        assert effects[0].filter.ids == {1, 2, 3}

    def test_actions_without_target_do_nothing(self, controller):
        assert controller.handle(Operation.MARK_ARCHIVED) == []
        assert controller.handle(Operation.DELETE) == []

    def test_state_filter_toggle_reloads(self, controller):
        effects = controller.handle(Operation.TOGGLE_ARCHIVED_FILTER)
        assert controller.state.active_states == set(State)
        assert kinds(effects) == [EffectKind.RELOAD_MAILBOXES, EffectKind.RELOAD_MESSAGES]
        controller.handle(Operation.TOGGLE_UNREAD_FILTER)
        assert controller.state.active_states == {State.READ, State.ARCHIVED}

    def test_moving_into_a_child_filters_locally(self, controller):
        controller.handle(Operation.FOCUS_MAILBOXES)
        assert controller.handle(Operation.CURSOR_NEXT) == []
        assert [m.id for m in controller.state.messages.items] == [3, 2]
        assert controller.handle(Operation.CURSOR_NEXT) == []
        assert [m.id for m in controller.state.messages.items] == [2]

    def test_moving_elsewhere_reloads(self, controller):
        controller.handle(Operation.FOCUS_MAILBOXES)
        controller.handle(Operation.CURSOR_LAST)
        effects = controller.handle(Operation.PREVIOUS_SIBLING)
        assert kinds(effects) == [EffectKind.RELOAD_MAILBOXES, EffectKind.RELOAD_MESSAGES]
        assert effects[1].filter.mailbox == MailboxPath("a")

    def test_remove_mailbox_cursor_shows_everything(self, controller):
        controller.handle(Operation.FOCUS_MAILBOXES)
        controller.handle(Operation.CURSOR_FIRST)
        effects = controller.handle(Operation.REMOVE_CURSOR)
        assert effects[1].filter.mailbox is None

    def test_mailbox_pane_marks_whole_mailbox(self, controller):
        controller.handle(Operation.FOCUS_MAILBOXES)
        controller.handle(Operation.CURSOR_FIRST)
        effects = controller.handle(Operation.MARK_ARCHIVED)
        assert kinds(effects) == [EffectKind.CHANGE_STATE]
        assert effects[0].filter.mailbox == MailboxPath("a")
        assert effects[0].filter.states is None

    def test_message_operations_are_ignored_in_mailbox_pane(self, controller):
        controller.handle(Operation.FOCUS_MAILBOXES)
        assert controller.handle(Operation.SELECT_ALL) == []
        assert controller.state.selection == set()

    def test_open_url(self, controller):
        controller.handle(Operation.CURSOR_FIRST)
        effects = controller.handle(Operation.OPEN_URL)
        assert effects[0].url == "https://example.com/x"
        controller.handle(Operation.CURSOR_NEXT)
        assert controller.handle(Operation.OPEN_URL) == []

    def test_move_flag_toggles(self, controller):
        controller.handle(Operation.TOGGLE_SELECT_ON_MOVE)
        controller.handle(Operation.TOGGLE_DESELECT_ON_MOVE)
        assert controller.state.select_on_move
        assert controller.state.deselect_on_move

    def test_state_change_removes_hidden_messages(self, controller, messages):
        controller.state.active_states = {State.UNREAD}
        controller.handle(Operation.CURSOR_FIRST)
        effects = controller.apply_state_changed([messages[0].with_state(State.READ)])
        assert [m.id for m in controller.state.messages.items] == [2, 1]
        assert controller.state.messages.cursor_item.id == 2
        assert controller.state.mailboxes.tree.get(MailboxPath("a")).total_count == 1
        assert kinds(effects) == [EffectKind.RELOAD_MAILBOXES, EffectKind.RELOAD_MESSAGES]

    def test_state_change_updates_visible_messages(self, controller, messages):
        controller.apply_state_changed([messages[1].with_state(State.READ)])
        assert controller.state.messages.items[1].state is State.READ

    def test_delete_prunes_list_and_selection(self, controller, messages):
        controller.handle(Operation.SELECT_ALL)
        controller.apply_deleted(messages[:2])
        assert [m.id for m in controller.state.messages.items] == [1]
        assert controller.state.selection == {1}
        assert MailboxPath("a") not in controller.state.mailboxes.tree


    def test_mailbox_change_only_uncounts_messages_that_were_shown(self, make_message):
        controller = NavigationController()
        controller.replace_mailboxes([
            MailboxInfo(MailboxPath("x/a"), 1),
            MailboxInfo(MailboxPath("x/a/b"), 1),
            MailboxInfo(MailboxPath("x/c"), 2),
        ])
        controller.replace_messages([
            make_message(1, "x/a"),
            make_message(2, "x/a/b", minutes_ago=1),
            make_message(3, "x/c", minutes_ago=2),
            make_message(4, "x/c", minutes_ago=3),
        ])
        controller.handle(Operation.FOCUS_MAILBOXES)
        controller.handle(Operation.CURSOR_NEXT)
        controller.handle(Operation.CURSOR_NEXT)
        assert controller.active_mailbox == MailboxPath("x/a")

        # 10-14 were archived already, so the pane never counted them
        changed = [
            make_message(i, "x/a", state=State.ARCHIVED) for i in (1, 10, 11, 12, 13, 14)
        ] + [make_message(2, "x/a/b", state=State.ARCHIVED)]
        controller.apply_state_changed(changed)

        tree = controller.state.mailboxes.tree
        assert tree.get(MailboxPath("x")).total_count == 2
        assert tree.get(MailboxPath("x/c")).total_count == 2
        assert controller.state.messages.items == []

class TestSessionState:
    def test_defaults(self):
        state = SessionState()
        assert state.focus is Pane.MESSAGES
        assert state.messages.cursor is None
        assert state.mailboxes.cursor is None
        assert state.selection == set()


# =============================================================================
# Keymap
# =============================================================================

class TestKeymap:
    @pytest.mark.parametrize("focus, key, operation", [
        (Pane.MESSAGES, "q", Operation.QUIT),
        (Pane.MAILBOXES, "ctrl+a", Operation.TOGGLE_ARCHIVED_FILTER),
        (Pane.MESSAGES, "J", Operation.CURSOR_LAST),
        (Pane.MESSAGES, "K", Operation.CURSOR_FIRST),
        (Pane.MAILBOXES, "K", Operation.CURSOR_PARENT),
        (Pane.MESSAGES, "ctrl+j", Operation.CURSOR_PAGE_DOWN),
        (Pane.MAILBOXES, "ctrl+j", Operation.NEXT_SIBLING),
        (Pane.MESSAGES, "space", Operation.TOGGLE_SELECTED),
        (Pane.MESSAGES, "ctrl+x", Operation.DELETE),
        (Pane.MAILBOXES, "r", Operation.MARK_READ),
    ])
    def test_resolve(self, focus, key, operation):
        assert resolve_key(focus, key) is operation

    def test_unbound_keys(self):
        assert resolve_key(Pane.MAILBOXES, "g") is None
        assert resolve_key(Pane.MESSAGES, "z") is None
