"""Base classes for analysis tasks."""

import asyncio
import logging
import re
from dataclasses import dataclass
from fnmatch import fnmatch

from local_review.models.changes import ChangeKind, ChangeSet, FileChange
from local_review.models.context import ProjectContext
from local_review.models.findings import Category, Finding

logger = logging.getLogger(__name__)

TEST_DIR_NAMES = frozenset({"test", "tests", "spec", "specs", "__tests__", "e2e"})

# App.Tests, App.UnitTests (matched lowercased)
_TEST_DIR_SUFFIX = re.compile(r"[._-]((unit|integration)[._-]?)?tests?$")
# UnitTests, IntegrationTests, ApiTests
_TEST_DIR_CAMEL = re.compile(r"[a-z0-9](Unit|Integration)?Tests?$")
# UserTests.cs, User.Test.cs, app.component.spec.ts, util.test.js
_TEST_FILE = re.compile(
    r"((^|[._])[Tt]ests?\.cs|[A-Za-z0-9]Tests?\.cs|\.(spec|test)\.(ts|js|tsx|jsx))$"
)


def is_test_path(path: str) -> bool:
    """Heuristic: does ``path`` belong to test code?

    Matches whole directory names and file-name suffixes only, so
    ``src/Specials/Price.cs`` or ``src/Feeds/Latest.cs`` are production code.
    """
    *dirs, name = path.replace("\\", "/").split("/")
    if _TEST_FILE.search(name):
        return True
    return any(_is_test_dir(d) for d in dirs)


def _is_test_dir(name: str) -> bool:
    lowered = name.lower()
    return (
        lowered in TEST_DIR_NAMES
        or bool(_TEST_DIR_SUFFIX.search(lowered))
        or bool(_TEST_DIR_CAMEL.search(name))
    )


class AnalysisTask:
    """Base class for all analysis tasks.

    A task consumes a ChangeSet and ProjectContext and produces findings. It
    must not mutate either input. Raising any exception marks the task as
    failed; the dispatcher records that and carries on.
    """

    # Subclasses should override these
    TASK_ID: str = "base"
    DESCRIPTION: str = ""

    def __init__(self, task_id: str | None = None) -> None:
        self._task_id = task_id or self.TASK_ID

    @property
    def task_id(self) -> str:
        """Identifier recorded as the ``source`` of every finding."""
        return self._task_id

    def is_applicable(self, context: ProjectContext) -> bool:
        """Precondition over the project context. Default: always run."""
        return True

    async def analyze(self, change_set: ChangeSet, context: ProjectContext) -> list[Finding]:
        """Produce raw findings for the change-set."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release resources held by the task."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(task_id={self.task_id!r})"


@dataclass(frozen=True)
class LineRule:
    """A regular expression matched against every added line."""

    pattern: str
    title: str
    category: Category
    detail: str
    suggestion: str
    confidence: int
    file_globs: tuple[str, ...] = ("*",)
    stylistic: bool = False
    include_tests: bool = True
    ignore_case: bool = False

    def compiled(self) -> re.Pattern[str]:
        return re.compile(self.pattern, re.IGNORECASE if self.ignore_case else 0)

    def applies_to(self, path: str) -> bool:
        name = path.rsplit("/", 1)[-1]
        if not self.include_tests and is_test_path(path):
            return False
        return any(fnmatch(name, glob) or fnmatch(path, glob) for glob in self.file_globs)


class RuleBasedTask(AnalysisTask):
    """Scans added lines with a fixed list of LineRules."""

    RULES: list[LineRule] = []

    def __init__(self, task_id: str | None = None, rules: list[LineRule] | None = None) -> None:
        super().__init__(task_id)
        self.rules = list(rules) if rules is not None else list(self.RULES)
        self._compiled = [(rule, rule.compiled()) for rule in self.rules]

    async def analyze(self, change_set: ChangeSet, context: ProjectContext) -> list[Finding]:
        return await asyncio.to_thread(self._scan, change_set)

    def _scan(self, change_set: ChangeSet) -> list[Finding]:
        findings = []
        for change in change_set:
            if not self._should_scan(change):
                continue
            rules = [(rule, regex) for rule, regex in self._compiled if rule.applies_to(change.path)]
            if not rules:
                continue
            for line_no, text in change.added_lines:
                for rule, regex in rules:
                    if regex.search(text):
                        findings.append(self._make_finding(rule, change.path, line_no, text))
        logger.debug(f"Task {self.task_id} produced {len(findings)} findings")
        return findings

    def _should_scan(self, change: FileChange) -> bool:
        return change.change_kind != ChangeKind.DELETED and not change.is_binary

    def _make_finding(self, rule: LineRule, path: str, line_no: int, text: str) -> Finding:
        return Finding(
            title=rule.title,
            file_path=path,
            line_number=line_no,
            category=rule.category,
            detail=f"{rule.detail} Line: `{text.strip()[:120]}`".strip(),
            suggestion=rule.suggestion,
            raw_confidence=rule.confidence,
            source=self.task_id,
            stylistic=rule.stylistic,
        )
