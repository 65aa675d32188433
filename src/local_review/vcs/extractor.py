"""Change-set extraction from a git working tree."""

import logging
from fnmatch import fnmatch
from pathlib import Path

import git
from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

from local_review.errors import NoChangesError, RepositoryError
from local_review.models.changes import ChangeKind, ChangeSet, DiffHunk, FileChange

logger = logging.getLogger(__name__)

# Object id of the empty tree; diff base for repositories without commits
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_BINARY_SNIFF_BYTES = 8000


def _strip_prefix(path: str) -> str:
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


def parse_diff(diff_text: str) -> list[FileChange]:
    """Parse a unified diff into FileChange objects, preserving file order.

    Args:
        diff_text: Raw unified diff (``git diff`` output)

    Returns:
        One FileChange per file in the diff
    """
    if not diff_text.strip():
        return []
    if not diff_text.endswith("\n"):
        diff_text += "\n"

    changes = []
    for patched_file in PatchSet(diff_text):
        old_path = None
        if patched_file.is_added_file:
            kind = ChangeKind.ADDED
        elif patched_file.is_removed_file:
            kind = ChangeKind.DELETED
        elif patched_file.is_rename:
            kind = ChangeKind.RENAMED
            old_path = _strip_prefix(patched_file.source_file)
        else:
            kind = ChangeKind.MODIFIED

        hunks = []
        for hunk in patched_file:
            added = []
            removed = []
            for line in hunk:
                if line.is_added:
                    added.append((line.target_line_no, line.value.rstrip("\n")))
                elif line.is_removed:
                    removed.append((line.source_line_no, line.value.rstrip("\n")))
            hunks.append(
                DiffHunk(
                    source_start=hunk.source_start,
                    source_length=hunk.source_length,
                    target_start=hunk.target_start,
                    target_length=hunk.target_length,
                    added_lines=tuple(added),
                    removed_lines=tuple(removed),
                )
            )

        changes.append(
            FileChange(
                path=patched_file.path,
                change_kind=kind,
                diff_hunks=tuple(hunks),
                old_path=old_path,
                is_binary=patched_file.is_binary_file,
            )
        )
    return changes


def _untracked_change(root: Path, rel_path: str) -> FileChange:
    """Represent an untracked file as a fully added file."""
    try:
        data = (root / rel_path).read_bytes()
    except OSError as e:
        logger.warning(f"Could not read untracked file {rel_path}: {e}")
        return FileChange(path=rel_path, change_kind=ChangeKind.ADDED, is_binary=True)

    if b"\0" in data[:_BINARY_SNIFF_BYTES]:
        return FileChange(path=rel_path, change_kind=ChangeKind.ADDED, is_binary=True)
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return FileChange(path=rel_path, change_kind=ChangeKind.ADDED, is_binary=True)

    lines = text.splitlines()
    if not lines:
        return FileChange(path=rel_path, change_kind=ChangeKind.ADDED)
    hunk = DiffHunk(
        source_start=0,
        source_length=0,
        target_start=1,
        target_length=len(lines),
        added_lines=tuple((i, line) for i, line in enumerate(lines, start=1)),
    )
    return FileChange(path=rel_path, change_kind=ChangeKind.ADDED, diff_hunks=(hunk,))


class ChangeSetExtractor:
    """Reads staged and unstaged changes against HEAD. Never writes."""

    def __init__(
        self,
        include_untracked: bool = True,
        ignore_patterns: list[str] | None = None,
    ) -> None:
        self.include_untracked = include_untracked
        self.ignore_patterns = ignore_patterns or []

    def extract(self, root: Path) -> ChangeSet:
        """Build the ChangeSet for the working tree containing ``root``.

        Raises:
            RepositoryError: If ``root`` is not inside a git working tree
            NoChangesError: If there is nothing to review
        """
        repo = self._open_repo(root)
        work_tree = Path(repo.working_tree_dir)

        base = "HEAD" if repo.head.is_valid() else EMPTY_TREE_SHA
        try:
            diff_text = repo.git.diff(base, "--no-color", "--no-ext-diff", "-M")
            untracked = repo.untracked_files if self.include_untracked else []
        except git.GitCommandError as e:
            raise RepositoryError(f"git diff failed in {work_tree}: {e}") from e

        try:
            changes = parse_diff(diff_text)
        except UnidiffParseError as e:
            raise RepositoryError(f"Could not parse git diff output: {e}") from e

        seen = {c.path for c in changes}
        for rel_path in untracked:
            if rel_path not in seen:
                changes.append(_untracked_change(work_tree, rel_path))

        changes = [c for c in changes if not self._is_ignored(c.path)]
        if not changes:
            raise NoChangesError(f"No uncommitted changes in {work_tree}")

        logger.info(f"Extracted {len(changes)} changed files from {work_tree}")
        return ChangeSet(root=str(work_tree), changes=tuple(changes))

    def _open_repo(self, root: Path) -> git.Repo:
        try:
            repo = git.Repo(root, search_parent_directories=True)
        except git.NoSuchPathError as e:
            raise RepositoryError(f"Path does not exist: {root}") from e
        except git.InvalidGitRepositoryError as e:
            raise RepositoryError(f"Not a git repository: {root}") from e
        if repo.bare:
            raise RepositoryError(f"Repository at {root} has no working tree")
        return repo

    def _is_ignored(self, path: str) -> bool:
        name = path.rsplit("/", 1)[-1]
        return any(fnmatch(path, p) or fnmatch(name, p) for p in self.ignore_patterns)
