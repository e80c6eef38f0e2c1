# =============================================================================
# Mailbox Path Model
# =============================================================================
# Mailboxes are named with "/"-delimited paths like "backups/nas/errors".
# Every prefix of a path is itself a mailbox, so "backups" contains
# "backups/nas", which contains "backups/nas/errors".
#
# Paths are compared segment by segment, never as raw strings: "foo" is an
# ancestor of "foo/bar" but has nothing to do with "foobar".
# =============================================================================

from functools import total_ordering
from typing import Iterator

# Hierarchy delimiter used in every mailbox name
SEPARATOR = "/"


class MailboxPathError(ValueError):
    """Raised when a string is not a valid mailbox path."""
    pass


@total_ordering
class MailboxPath:
    """
    An immutable, validated mailbox path.

    Instances are hashable and ordered lexicographically by segment, so
    sorting a list of paths yields a pre-order traversal of the mailbox tree
    (parents before children, siblings ascending).

    Example:
        >>> path = MailboxPath("backups/nas")
        >>> path.segments
        ('backups', 'nas')
        >>> path.parent
        MailboxPath('backups')
    """

    __slots__ = ("_name", "_segments")

    def __init__(self, name: "str | MailboxPath") -> None:
        if isinstance(name, MailboxPath):
            name = name.name
        self._name = self.validate(name)
        self._segments = tuple(self._name.split(SEPARATOR))

    @staticmethod
    def validate(name: str) -> str:
        """
        Check that a string is a valid mailbox name.

        Returns:
            The unchanged name.

        Raises:
            MailboxPathError: If the name is empty, starts or ends with the
                separator, contains an empty segment, or contains "%".
        """
        if not isinstance(name, str) or not name:
            raise MailboxPathError("mailbox must not be empty")
        if name.startswith(SEPARATOR):
            raise MailboxPathError("mailbox must not start with /")
        if name.endswith(SEPARATOR):
            raise MailboxPathError("mailbox must not end with /")
        if SEPARATOR * 2 in name:
            raise MailboxPathError("mailbox must not contain //")
        # "%" is reserved so that stored names can never act as SQL wildcards
        if "%" in name:
            raise MailboxPathError("mailbox must not contain %")
        return name

    @classmethod
    def from_segments(cls, segments: "tuple[str, ...] | list[str]") -> "MailboxPath":
        """Build a path from its segments."""
        return cls(SEPARATOR.join(segments))

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        """The full display name, e.g. "backups/nas"."""
        return self._name

    @property
    def segments(self) -> tuple[str, ...]:
        return self._segments

    @property
    def depth(self) -> int:
        """Root mailbox = 0, child = 1, grandchild = 2."""
        return len(self._segments) - 1

    @property
    def leaf_name(self) -> str:
        """
        The last segment without its ancestors.

        Example:
            >>> MailboxPath("a/b/c").leaf_name
            'c'
        """
        return self._segments[-1]

    @property
    def parent(self) -> "MailboxPath | None":
        """The path without its last segment, or None for a root mailbox."""
        if len(self._segments) == 1:
            return None
        return MailboxPath.from_segments(self._segments[:-1])

    def ancestors(self) -> Iterator["MailboxPath"]:
        """
        Iterate over the path's ancestors, shallowest first, including itself.

        Example:
            >>> [str(p) for p in MailboxPath("a/b/c").ancestors()]
            ['a', 'a/b', 'a/b/c']
        """
        for index in range(1, len(self._segments) + 1):
            yield MailboxPath.from_segments(self._segments[:index])

    def contains(self, other: "MailboxPath") -> bool:
        """True if `other` is this path or one of its descendants."""
        count = len(self._segments)
        return other._segments[:count] == self._segments

    def is_ancestor_of(self, other: "MailboxPath") -> bool:
        """True if `other` is a strict descendant of this path."""
        return len(other._segments) > len(self._segments) and self.contains(other)

    # -------------------------------------------------------------------------
    # Dunder methods
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MailboxPath):
            return self._segments == other._segments
        return NotImplemented

    def __lt__(self, other: "MailboxPath") -> bool:
        if isinstance(other, MailboxPath):
            return self._segments < other._segments
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._segments)

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"MailboxPath({self._name!r})"
