"""Tests for change-set extraction."""

import pytest


class TestParseDiff:
    """Tests for unified diff parsing."""

    def test_parse_modified_file(self, sample_dotnet_diff):
        """Test parsing a modified file keeps new-file line numbers."""
        from local_review.models.changes import ChangeKind
        from local_review.vcs.extractor import parse_diff

        changes = parse_diff(sample_dotnet_diff)

        assert len(changes) == 1
        change = changes[0]
        assert change.path == "src/Api/UserController.cs"
        assert change.change_kind == ChangeKind.MODIFIED
        assert [n for n, _ in change.added_lines] == [12, 13, 14]
        assert "new HttpClient()" in change.added_lines[1][1]
        assert change.diff_hunks[0].target_start == 10

    def test_parse_added_and_deleted(self):
        """Test new and removed files are classified."""
        from conftest import SAMPLE_ADDED_DIFF, SAMPLE_DELETED_DIFF

        from local_review.models.changes import ChangeKind
        from local_review.vcs.extractor import parse_diff

        changes = parse_diff(SAMPLE_ADDED_DIFF + SAMPLE_DELETED_DIFF)

        assert [(c.path, c.change_kind) for c in changes] == [
            ("src/New.cs", ChangeKind.ADDED),
            ("src/Old.cs", ChangeKind.DELETED),
        ]
        assert changes[0].additions == 2
        assert changes[1].deletions == 2
        assert changes[1].added_lines == []

    def test_parse_empty_diff(self):
        """Test that an empty diff yields no changes."""
        from local_review.vcs.extractor import parse_diff

        assert parse_diff("") == []
        assert parse_diff("\n") == []

    def test_parse_preserves_file_order(self, sample_dotnet_diff, sample_angular_diff):
        """Test files come back in diff order."""
        from local_review.vcs.extractor import parse_diff

        changes = parse_diff(sample_angular_diff + sample_dotnet_diff)

        assert [c.path for c in changes] == [
            "web/src/app/app.component.ts",
            "src/Api/UserController.cs",
        ]


class TestChangeSetExtractor:
    """Tests for ChangeSetExtractor against real repositories."""

    def test_modified_file(self, git_repo):
        """Test an unstaged modification is extracted."""
        from local_review.models.changes import ChangeKind
        from local_review.vcs.extractor import ChangeSetExtractor

        root = git_repo.working_tree_dir
        path = f"{root}/src/Service.cs"
        with open(path, "a") as f:
            f.write("// added line\n")

        change_set = ChangeSetExtractor().extract(git_repo.working_tree_dir)

        change = change_set.get("src/Service.cs")
        assert change is not None
        assert change.change_kind == ChangeKind.MODIFIED
        assert change.added_lines == [(5, "// added line")]

    def test_staged_and_unstaged_combined(self, git_repo):
        """Test staged and unstaged changes are both against HEAD."""
        from pathlib import Path

        from local_review.models.changes import ChangeKind
        from local_review.vcs.extractor import ChangeSetExtractor

        root = Path(git_repo.working_tree_dir)
        (root / "src" / "Staged.cs").write_text("public class Staged {}\n")
        git_repo.index.add(["src/Staged.cs"])
        (root / "src" / "Service.cs").write_text("public class Service {}\n")

        change_set = ChangeSetExtractor().extract(root)

        assert change_set.get("src/Staged.cs").change_kind == ChangeKind.ADDED
        assert change_set.get("src/Service.cs").change_kind == ChangeKind.MODIFIED

    def test_deleted_file(self, git_repo):
        """Test a removed tracked file is reported as deleted."""
        from pathlib import Path

        from local_review.models.changes import ChangeKind
        from local_review.vcs.extractor import ChangeSetExtractor

        root = Path(git_repo.working_tree_dir)
        (root / "src" / "Service.cs").unlink()

        change_set = ChangeSetExtractor().extract(root)

        assert change_set.get("src/Service.cs").change_kind == ChangeKind.DELETED

    def test_untracked_file_included(self, git_repo):
        """Test untracked text files are reviewed as added files."""
        from pathlib import Path

        from local_review.models.changes import ChangeKind
        from local_review.vcs.extractor import ChangeSetExtractor

        root = Path(git_repo.working_tree_dir)
        (root / "src" / "Fresh.cs").write_text("line one\nline two\n")

        change_set = ChangeSetExtractor().extract(root)

        change = change_set.get("src/Fresh.cs")
        assert change.change_kind == ChangeKind.ADDED
        assert change.added_lines == [(1, "line one"), (2, "line two")]

    def test_untracked_binary_file(self, git_repo):
        """Test binary untracked files carry no lines."""
        from pathlib import Path

        from local_review.vcs.extractor import ChangeSetExtractor

        root = Path(git_repo.working_tree_dir)
        (root / "logo.png").write_bytes(b"\x89PNG\x00\x01\x02")

        change = ChangeSetExtractor().extract(root).get("logo.png")

        assert change.is_binary
        assert change.added_lines == []

    def test_untracked_excluded_when_disabled(self, git_repo):
        """Test include_untracked=False leaves untracked files out."""
        from pathlib import Path

        from local_review.errors import NoChangesError
        from local_review.vcs.extractor import ChangeSetExtractor

        root = Path(git_repo.working_tree_dir)
        (root / "notes.txt").write_text("scratch\n")

        with pytest.raises(NoChangesError):
            ChangeSetExtractor(include_untracked=False).extract(root)

    def test_ignore_patterns(self, git_repo):
        """Test ignored paths are dropped and can empty the change-set."""
        from pathlib import Path

        from local_review.errors import NoChangesError
        from local_review.vcs.extractor import ChangeSetExtractor

        root = Path(git_repo.working_tree_dir)
        (root / "package-lock.json").write_text("{}\n")
        (root / "src" / "Fresh.cs").write_text("x\n")

        change_set = ChangeSetExtractor(ignore_patterns=["package-lock.json"]).extract(root)
        assert change_set.paths == ["src/Fresh.cs"]

        with pytest.raises(NoChangesError):
            ChangeSetExtractor(ignore_patterns=["*.json", "src/*"]).extract(root)

    def test_clean_tree_raises_no_changes(self, git_repo):
        """Test a clean working tree is terminal."""
        from local_review.errors import NoChangesError
        from local_review.vcs.extractor import ChangeSetExtractor

        with pytest.raises(NoChangesError):
            ChangeSetExtractor().extract(git_repo.working_tree_dir)

    def test_not_a_repository(self, tmp_path):
        """Test a plain directory is a repository error."""
        from unittest.mock import patch

        import git

        from local_review.errors import RepositoryError
        from local_review.vcs.extractor import ChangeSetExtractor

        with patch(
            "local_review.vcs.extractor.git.Repo",
            side_effect=git.InvalidGitRepositoryError(str(tmp_path)),
        ):
            with pytest.raises(RepositoryError):
                ChangeSetExtractor().extract(tmp_path)

    def test_missing_path(self, tmp_path):
        """Test a missing root is a repository error."""
        from local_review.errors import RepositoryError
        from local_review.vcs.extractor import ChangeSetExtractor

        with pytest.raises(RepositoryError):
            ChangeSetExtractor().extract(tmp_path / "does-not-exist")

    def test_repository_without_commits(self, tmp_path):
        """Test an unborn HEAD diffs staged files against the empty tree."""
        import git

        from local_review.models.changes import ChangeKind
        from local_review.vcs.extractor import ChangeSetExtractor

        repo = git.Repo.init(tmp_path / "fresh")
        (tmp_path / "fresh" / "App.cs").write_text("class App {}\n")
        repo.index.add(["App.cs"])

        change_set = ChangeSetExtractor().extract(tmp_path / "fresh")

        assert change_set.get("App.cs").change_kind == ChangeKind.ADDED

    def test_extraction_is_read_only(self, git_repo):
        """Test extraction leaves the working tree and index untouched."""
        from pathlib import Path

        from local_review.vcs.extractor import ChangeSetExtractor

        root = Path(git_repo.working_tree_dir)
        (root / "src" / "Service.cs").write_text("changed\n")
        (root / "untracked.cs").write_text("new\n")
        status_before = git_repo.git.status("--porcelain")

        ChangeSetExtractor().extract(root)

        assert git_repo.git.status("--porcelain") == status_before
        assert (root / "src" / "Service.cs").read_text() == "changed\n"

    def test_subdirectory_root(self, git_repo):
        """Test a root inside the working tree finds the repository."""
        from pathlib import Path

        from local_review.vcs.extractor import ChangeSetExtractor

        root = Path(git_repo.working_tree_dir)
        (root / "src" / "Service.cs").write_text("changed\n")

        change_set = ChangeSetExtractor().extract(root / "src")

        assert Path(change_set.root) == root
        assert "src/Service.cs" in change_set.paths
