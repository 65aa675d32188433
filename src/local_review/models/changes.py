"""Change-set models."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class ChangeKind(Enum):
    """How a file differs from HEAD."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True)
class DiffHunk:
    """A single hunk of a unified diff."""

    source_start: int
    source_length: int
    target_start: int
    target_length: int
    added_lines: tuple[tuple[int, str], ...] = ()  # (line in new file, content)
    removed_lines: tuple[tuple[int, str], ...] = ()  # (line in old file, content)


@dataclass(frozen=True)
class FileChange:
    """All differences for one file."""

    path: str
    change_kind: ChangeKind
    diff_hunks: tuple[DiffHunk, ...] = ()
    old_path: str | None = None
    is_binary: bool = False

    @property
    def added_lines(self) -> list[tuple[int, str]]:
        """Added lines across all hunks, in file order."""
        return [line for hunk in self.diff_hunks for line in hunk.added_lines]

    @property
    def added_line_numbers(self) -> frozenset[int]:
        """Line numbers in the new file that this change touches."""
        return frozenset(line_no for line_no, _ in self.added_lines)

    @property
    def additions(self) -> int:
        return sum(len(h.added_lines) for h in self.diff_hunks)

    @property
    def deletions(self) -> int:
        return sum(len(h.removed_lines) for h in self.diff_hunks)


@dataclass(frozen=True)
class ChangeSet:
    """Ordered, immutable set of file changes under review for one run."""

    root: str
    changes: tuple[FileChange, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.changes)

    def __iter__(self) -> Iterator[FileChange]:
        return iter(self.changes)

    @property
    def paths(self) -> list[str]:
        """Paths of every changed file."""
        return [c.path for c in self.changes]

    def get(self, path: str) -> FileChange | None:
        """Look up the change for ``path``, if any."""
        for change in self.changes:
            if change.path == path:
                return change
        return None

    @property
    def is_empty(self) -> bool:
        return not self.changes
