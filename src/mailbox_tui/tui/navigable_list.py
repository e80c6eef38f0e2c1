# =============================================================================
# Navigable Lists
# =============================================================================
# The cursor and selection bookkeeping behind the two TUI panes.
#
#   NavigableList     items plus an optional cursor index
#   MultiselectList   adds a set of selected keys and select/deselect-on-move
#   TreeList          mailbox nodes with sibling and parent jumps
#
# Every movement is total: the cursor clamps at both ends and an empty list
# always has no cursor.
# =============================================================================

from typing import Callable, Generic, Hashable, Iterable, TypeVar

from mailbox_tui.core import MailboxNode, MailboxTree

T = TypeVar("T")


class NavigableList(Generic[T]):
    """
    A list of items with a cursor.

    Items are identified by a key (message id, mailbox path) so that the
    cursor can follow an item when the list is reloaded.

    Attributes:
        items: The visible items, in display order.
        cursor: Index of the highlighted item, or None.
    """

    def __init__(self, key: Callable[[T], Hashable]) -> None:
        self.key = key
        self.items: list[T] = []
        self.cursor: int | None = None

    def __len__(self) -> int:
        return len(self.items)

    @property
    def cursor_item(self) -> T | None:
        if self.cursor is None or not 0 <= self.cursor < len(self.items):
            return None
        return self.items[self.cursor]

    def set_cursor(self, cursor: int | None) -> None:
        """Place the cursor. Subclasses hook in here to react to moves."""
        self.cursor = cursor

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    def first(self) -> None:
        self.set_cursor(0 if self.items else None)

    def last(self) -> None:
        self.set_cursor(len(self.items) - 1 if self.items else None)

    def move(self, delta: int) -> None:
        """
        Move the cursor by `delta`, clamping at both ends.

        Without a cursor any move lands on the first item.
        """
        if not self.items:
            self.set_cursor(None)
        elif self.cursor is None:
            self.set_cursor(0)
        else:
            self.set_cursor(max(0, min(self.cursor + delta, len(self.items) - 1)))

    def remove_cursor(self) -> None:
        self.set_cursor(None)

    def index_of(self, key: Hashable) -> int | None:
        for index, item in enumerate(self.items):
            if self.key(item) == key:
                return index
        return None

    # -------------------------------------------------------------------------
    # Reloading
    # -------------------------------------------------------------------------

    def replace_items(self, items: Iterable[T]) -> None:
        """
        Swap in a new list of items, keeping the cursor in place.

        The cursor stays on its item if the item survived, otherwise it moves
        to the next old item that survived, otherwise it clamps its old index
        to the new length. An empty list has no cursor.
        """
        candidates = (
            [self.key(item) for item in self.items[self.cursor:]]
            if self.cursor is not None else []
        )
        old_cursor = self.cursor
        self.items = list(items)

        positions = {self.key(item): index for index, item in enumerate(self.items)}
        new_cursor = next((positions[k] for k in candidates if k in positions), None)
        if new_cursor is None and old_cursor is not None and self.items:
            new_cursor = min(old_cursor, len(self.items) - 1)
        self.cursor = new_cursor


class MultiselectList(NavigableList[T]):
    """
    A navigable list whose items can be selected for batch operations.

    With `select_on_move` set, moving the cursor selects the item it lands
    on; with `deselect_on_move` set, it deselects the item it leaves. Both
    can be active together.
    """

    def __init__(self, key: Callable[[T], Hashable]) -> None:
        super().__init__(key)
        self.selected: set[Hashable] = set()
        self.select_on_move = False
        self.deselect_on_move = False

    def set_cursor(self, cursor: int | None) -> None:
        previous = self.cursor_item
        moved = cursor != self.cursor
        super().set_cursor(cursor)
        if not moved:
            return
        if self.deselect_on_move and previous is not None:
            self.selected.discard(self.key(previous))
        current = self.cursor_item
        if self.select_on_move and current is not None:
            self.selected.add(self.key(current))

    def is_selected(self, item: T) -> bool:
        return self.key(item) in self.selected

    @property
    def selected_items(self) -> list[T]:
        """Selected items in display order."""
        return [item for item in self.items if self.key(item) in self.selected]

    def toggle_cursor_selected(self) -> None:
        item = self.cursor_item
        if item is None:
            return
        key = self.key(item)
        if key in self.selected:
            self.selected.remove(key)
        else:
            self.selected.add(key)

    def set_all_selected(self, selected: bool) -> None:
        """Select or deselect every visible item."""
        keys = {self.key(item) for item in self.items}
        if selected:
            self.selected |= keys
        else:
            self.selected -= keys

    def replace_items(self, items: Iterable[T]) -> None:
        """
        Swap in new items. Selected keys that are no longer present are
        dropped, and reloading never counts as a cursor move.
        """
        # The base class assigns the cursor directly, so the move flags stay quiet
        super().replace_items(items)
        keys = {self.key(item) for item in self.items}
        self.selected &= keys


class TreeList(NavigableList[MailboxNode]):
    """
    The mailbox pane: a MailboxTree flattened into pre-order.
    """

    def __init__(self) -> None:
        super().__init__(key=lambda node: node.path)
        self.tree = MailboxTree()

    def replace_tree(self, tree: MailboxTree) -> None:
        self.tree = tree
        self.replace_items(tree.nodes())

    def _jump_to(self, node: MailboxNode | None) -> None:
        if node is None:
            return
        index = self.index_of(node.path)
        if index is not None:
            self.set_cursor(index)

    def next_sibling(self) -> None:
        """Jump forward to the next mailbox at the same depth or shallower."""
        current = self.cursor_item
        if current is None:
            self.first()
            return
        self._jump_to(self.tree.same_depth_neighbor(current.path, 1))

    def previous_sibling(self) -> None:
        """Jump back to the previous mailbox at the same depth or shallower."""
        current = self.cursor_item
        if current is None:
            self.first()
            return
        self._jump_to(self.tree.same_depth_neighbor(current.path, -1))

    def parent(self) -> None:
        """Move to the mailbox containing the current one."""
        current = self.cursor_item
        if current is None:
            self.first()
            return
        parent = MailboxTree.parent(current.path)
        if parent is not None:
            self._jump_to(self.tree.get(parent))
