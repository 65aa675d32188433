"""Project kind detection around the review root."""

import json
import logging
import os
from collections.abc import Iterable
from fnmatch import fnmatch
from pathlib import Path

from local_review.models.context import ProjectContext

logger = logging.getLogger(__name__)

IGNORED_DIRS = {".git", "node_modules", "bin", "obj", "dist", ".angular", ".vs", ".venv"}

SOLUTION_GLOBS = ("*.sln", "*.slnx")
ANGULAR_CONFIG = "angular.json"

DEFAULT_TEST_NAME_PATTERNS = ["*Tests.csproj", "*Test.csproj", "*.Tests.*.csproj"]
DEFAULT_TEST_MARKERS = ["xunit", "NUnit", "MSTest.TestFramework", "Microsoft.NET.Test.Sdk"]


def _iter_files(root: Path, suffix: str) -> Iterable[Path]:
    for current, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if d not in IGNORED_DIRS)
        for name in sorted(files):
            if name.endswith(suffix):
                yield Path(current) / name


def _search_dirs(root: Path, max_depth: int) -> list[Path]:
    """The root followed by at most ``max_depth`` ancestors."""
    return [root, *list(root.parents)[:max_depth]]


class ProjectDetector:
    """Classifies the project kinds present around a working tree."""

    def __init__(
        self,
        max_depth: int = 3,
        test_name_patterns: list[str] | None = None,
        test_dependency_markers: list[str] | None = None,
    ) -> None:
        """Initialize the detector.

        Args:
            max_depth: How many ancestor directories to search for descriptors
            test_name_patterns: File-name globs that mark a test project
            test_dependency_markers: Substrings of a project file that mark a test project
        """
        self.max_depth = max_depth
        self.test_name_patterns = (
            list(DEFAULT_TEST_NAME_PATTERNS) if test_name_patterns is None else test_name_patterns
        )
        self.test_dependency_markers = (
            list(DEFAULT_TEST_MARKERS) if test_dependency_markers is None else test_dependency_markers
        )

    def detect(self, root: Path) -> ProjectContext:
        """Detect project kinds, build descriptors and test targets.

        A context with nothing detected is valid: the review degrades to
        analysis only.
        """
        root = root.resolve()
        search_dirs = _search_dirs(root, self.max_depth)

        solutions = self._find_nearest(search_dirs, SOLUTION_GLOBS)
        angular_configs = self._find_nearest(search_dirs, (ANGULAR_CONFIG,))

        test_projects: set[Path] = set()
        if solutions:
            for solution_dir in {s.parent for s in solutions}:
                test_projects.update(self._find_dotnet_test_projects(solution_dir))
        for config in angular_configs:
            if self._angular_has_tests(config):
                test_projects.add(config)

        context = ProjectContext(
            root=root,
            solution_paths=frozenset(solutions),
            angular_config_paths=frozenset(angular_configs),
            test_project_paths=frozenset(test_projects),
        )
        kinds = ", ".join(k.value for k in context.kinds) or "none"
        logger.info(
            f"Detected project kinds: {kinds} ({len(test_projects)} test targets) under {root}"
        )
        return context

    def _find_nearest(self, search_dirs: list[Path], patterns: tuple[str, ...]) -> list[Path]:
        """Matches in the nearest directory that has any."""
        for directory in search_dirs:
            matches = sorted(
                {path for pattern in patterns for path in directory.glob(pattern) if path.is_file()}
            )
            if matches:
                return matches
        return []

    def _find_dotnet_test_projects(self, search_root: Path) -> list[Path]:
        found = []
        for project in _iter_files(search_root, ".csproj"):
            if self._is_test_project(project):
                found.append(project)
        return found

    def _is_test_project(self, project: Path) -> bool:
        if any(fnmatch(project.name, pattern) for pattern in self.test_name_patterns):
            return True
        try:
            content = project.read_text(encoding="utf-8", errors="replace").lower()
        except OSError as e:
            logger.warning(f"Could not read {project}: {e}")
            return False
        return any(marker.lower() in content for marker in self.test_dependency_markers)

    def _angular_has_tests(self, config_path: Path) -> bool:
        """True when any project in the workspace declares a ``test`` target."""
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not parse {config_path}: {e}")
            return False

        projects = data.get("projects", {}) if isinstance(data, dict) else {}
        for project in projects.values():
            if not isinstance(project, dict):
                continue
            targets = project.get("architect") or project.get("targets") or {}
            if "test" in targets:
                return True
        return False
