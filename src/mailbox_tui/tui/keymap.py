# =============================================================================
# Key Bindings
# =============================================================================
# Maps Textual key names to controller operations. Global keys work in
# either pane; the rest depend on which pane has focus.
#
# Global:
#   q             quit
#   1 / 2         focus mailboxes / messages
#   left, right   switch pane
#   R             reload both panes
#   ctrl+u/r/a    show or hide unread / read / archived messages
#
# Mailbox pane:
#   j, k, down, up         next / previous mailbox
#   ctrl+j, ctrl+k         next / previous mailbox at the same depth
#   K                      parent mailbox
#   escape                 no mailbox (show all)
#   u, r, a                mark every message in the mailbox unread / read / archived
#
# Message pane:
#   j, k, down, up         next / previous message
#   ctrl+j, ctrl+k         ten messages down / up (also pagedown, pageup)
#   J, K                   last / first message
#   escape                 remove the cursor
#   space                  toggle selection
#   g, G                   select / deselect all visible messages
#   ctrl+s, ctrl+d         toggle select-on-move / deselect-on-move
#   u, r, a                mark unread / read / archived
#   ctrl+x                 delete
#   enter                  open the first URL in the message
# =============================================================================

from mailbox_tui.tui.controller import Operation, Pane

GLOBAL_KEYS: dict[str, Operation] = {
    "q": Operation.QUIT,
    "1": Operation.FOCUS_MAILBOXES,
    "2": Operation.FOCUS_MESSAGES,
    "left": Operation.SWITCH_PANE,
    "right": Operation.SWITCH_PANE,
    "R": Operation.REFRESH,
    "ctrl+u": Operation.TOGGLE_UNREAD_FILTER,
    "ctrl+r": Operation.TOGGLE_READ_FILTER,
    "ctrl+a": Operation.TOGGLE_ARCHIVED_FILTER,
}

MAILBOX_KEYS: dict[str, Operation] = {
    "j": Operation.CURSOR_NEXT,
    "down": Operation.CURSOR_NEXT,
    "k": Operation.CURSOR_PREVIOUS,
    "up": Operation.CURSOR_PREVIOUS,
    "ctrl+j": Operation.NEXT_SIBLING,
    "ctrl+down": Operation.NEXT_SIBLING,
    "ctrl+k": Operation.PREVIOUS_SIBLING,
    "ctrl+up": Operation.PREVIOUS_SIBLING,
    "K": Operation.CURSOR_PARENT,
    "escape": Operation.REMOVE_CURSOR,
    "u": Operation.MARK_UNREAD,
    "r": Operation.MARK_READ,
    "a": Operation.MARK_ARCHIVED,
}

MESSAGE_KEYS: dict[str, Operation] = {
    "j": Operation.CURSOR_NEXT,
    "down": Operation.CURSOR_NEXT,
    "k": Operation.CURSOR_PREVIOUS,
    "up": Operation.CURSOR_PREVIOUS,
    "ctrl+j": Operation.CURSOR_PAGE_DOWN,
    "ctrl+down": Operation.CURSOR_PAGE_DOWN,
    "pagedown": Operation.CURSOR_PAGE_DOWN,
    "ctrl+k": Operation.CURSOR_PAGE_UP,
    "ctrl+up": Operation.CURSOR_PAGE_UP,
    "pageup": Operation.CURSOR_PAGE_UP,
    "J": Operation.CURSOR_LAST,
    "K": Operation.CURSOR_FIRST,
    "escape": Operation.REMOVE_CURSOR,
    "space": Operation.TOGGLE_SELECTED,
    "g": Operation.SELECT_ALL,
    "G": Operation.DESELECT_ALL,
    "ctrl+s": Operation.TOGGLE_SELECT_ON_MOVE,
    "ctrl+d": Operation.TOGGLE_DESELECT_ON_MOVE,
    "u": Operation.MARK_UNREAD,
    "r": Operation.MARK_READ,
    "a": Operation.MARK_ARCHIVED,
    "ctrl+x": Operation.DELETE,
    "enter": Operation.OPEN_URL,
}

PANE_KEYS: dict[Pane, dict[str, Operation]] = {
    Pane.MAILBOXES: MAILBOX_KEYS,
    Pane.MESSAGES: MESSAGE_KEYS,
}


def resolve_key(focus: Pane, key: str) -> Operation | None:
    """
    Look up the operation for a key press.

    Global keys take precedence over pane keys.

    Args:
        focus: The focused pane.
        key: Textual key name, e.g. "j", "ctrl+x", "escape".
    """
    operation = GLOBAL_KEYS.get(key)
    if operation is not None:
        return operation
    return PANE_KEYS[focus].get(key)
