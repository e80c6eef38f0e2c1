# =============================================================================
# Mailbox Tree
# =============================================================================
# A hierarchical index of every mailbox that holds messages, with counts.
#
# The tree is stored as a flat dictionary keyed by full path rather than as
# linked parent/child nodes. Parents, children and siblings are computed from
# the paths themselves:
#
#   "a"      -> depth 0, total 4
#   "a/b"    -> depth 1, total 3
#   "a/b/c"  -> depth 2, total 1
#
# Sorting the keys by segment gives the pre-order traversal used by the
# mailbox pane: parents first, then their children in ascending order.
# =============================================================================

from dataclasses import dataclass
from typing import Iterable

from mailbox_tui.core.filter import mailbox_matches
from mailbox_tui.core.mailbox import MailboxPath
from mailbox_tui.core.message import MailboxInfo, Message


@dataclass(frozen=True)
class MailboxNode:
    """
    One mailbox in the tree.

    Attributes:
        path: Full mailbox path (the node's key).
        direct_count: Messages stored directly in this mailbox.
        total_count: Messages in this mailbox and all of its descendants.
    """
    path: MailboxPath
    direct_count: int = 0
    total_count: int = 0

    @property
    def depth(self) -> int:
        return self.path.depth

    @property
    def key(self) -> MailboxPath:
        return self.path


class MailboxTree:
    """
    Hierarchical mailbox index with aggregated message counts.

    Usage:
        >>> tree = MailboxTree.from_messages(messages)
        >>> [str(node.path) for node in tree.children(None)]
        ['alerts', 'backups']
        >>> tree.get(MailboxPath("backups")).total_count
        12
    """

    def __init__(self) -> None:
        self._nodes: dict[MailboxPath, MailboxNode] = {}
        self._order: list[MailboxPath] | None = None

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_messages(cls, messages: Iterable[Message]) -> "MailboxTree":
        tree = cls()
        for message in messages:
            tree.insert(message.mailbox)
        return tree

    @classmethod
    def from_counts(cls, infos: Iterable[MailboxInfo]) -> "MailboxTree":
        """Build a tree from per-mailbox counts, as returned by storage."""
        tree = cls()
        for info in infos:
            tree.insert(info.mailbox, info.message_count)
        return tree

    def insert(self, path: MailboxPath, count: int = 1) -> None:
        """
        Record `count` messages in `path`.

        The direct count grows at the path itself and the subtree count grows
        at the path and every ancestor.
        """
        if count <= 0:
            return
        for ancestor in path.ancestors():
            node = self._nodes.get(ancestor) or MailboxNode(ancestor)
            direct = node.direct_count + (count if ancestor == path else 0)
            self._nodes[ancestor] = MailboxNode(ancestor, direct, node.total_count + count)
        self._order = None

    def remove(self, path: MailboxPath, count: int = 1) -> None:
        """
        Forget `count` messages in `path`, dropping nodes that become empty.
        """
        if count <= 0 or path not in self._nodes:
            return
        for ancestor in path.ancestors():
            node = self._nodes.get(ancestor)
            if node is None:
                continue
            direct = node.direct_count
            if ancestor == path:
                direct = max(0, direct - count)
            total = max(0, node.total_count - count)
            if total == 0:
                del self._nodes[ancestor]
            else:
                self._nodes[ancestor] = MailboxNode(ancestor, direct, total)
        self._order = None

    def remove_messages(self, messages: Iterable[Message]) -> None:
        for message in messages:
            self.remove(message.mailbox)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @staticmethod
    def matches(candidate: MailboxPath, filter_path: MailboxPath) -> bool:
        """True iff `candidate` equals `filter_path` or lies beneath it."""
        return mailbox_matches(candidate, filter_path)

    def get(self, path: MailboxPath) -> MailboxNode | None:
        return self._nodes.get(path)

    def nodes(self) -> list[MailboxNode]:
        """All nodes in pre-order (children sorted ascending by segment)."""
        return [self._nodes[path] for path in self._traversal()]

    def children(self, path: MailboxPath | None) -> list[MailboxNode]:
        """
        Immediate children of `path`, ascending. None means the root level.
        """
        depth = 0 if path is None else path.depth + 1
        return [
            node for node in self.nodes()
            if node.depth == depth and (path is None or path.is_ancestor_of(node.path))
        ]

    @staticmethod
    def parent(path: MailboxPath) -> MailboxPath | None:
        return path.parent

    def same_depth_neighbor(self, path: MailboxPath, direction: int) -> MailboxNode | None:
        """
        Find the next (direction > 0) or previous (direction < 0) node in
        pre-order whose depth is at most the depth of `path`.

        This jumps to the next sibling, skipping the current node's
        descendants, or climbs out to an ancestor's sibling when no sibling
        is left. Returns None when there is nowhere to go.
        """
        order = self._traversal()
        try:
            index = order.index(path)
        except ValueError:
            return None
        step = 1 if direction > 0 else -1
        index += step
        while 0 <= index < len(order):
            candidate = order[index]
            if candidate.depth <= path.depth:
                return self._nodes[candidate]
            index += step
        return None

    def index_of(self, path: MailboxPath) -> int | None:
        """Position of `path` in the pre-order traversal."""
        try:
            return self._traversal().index(path)
        except ValueError:
            return None

    def _traversal(self) -> list[MailboxPath]:
        if self._order is None:
            self._order = sorted(self._nodes)
        return self._order

    def __contains__(self, path: object) -> bool:
        return path in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self):
        return iter(self.nodes())
