"""Review report models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from local_review.models.context import ProjectContext, ProjectKind
from local_review.models.findings import Category, Finding
from local_review.models.results import BuildResult, TaskOutcome, TestResult


class Verdict(Enum):
    """Tri-state outcome of a review run."""

    PASSED = "passed"
    NEEDS_ATTENTION = "needsAttention"
    FAILED = "failed"


@dataclass(frozen=True)
class ReviewReport:
    """Final, immutable artifact of one review run."""

    id: str
    created_at: datetime
    project: ProjectContext
    change_count: int
    changed_paths: tuple[str, ...]

    # Results
    builds: tuple[BuildResult, ...]
    tests: tuple[TestResult, ...]
    findings: tuple[Finding, ...]  # deduplicated and filtered
    verdict: Verdict

    # Metadata
    threshold: int
    task_outcomes: tuple[TaskOutcome, ...] = field(default_factory=tuple)
    discarded_count: int = 0  # findings removed by dedupe, threshold or max_findings
    duration_ms: int = 0

    @property
    def degraded_sources(self) -> list[TaskOutcome]:
        """Analysis tasks that failed or timed out."""
        return [o for o in self.task_outcomes if o.is_degraded]

    @property
    def findings_by_category(self) -> dict[Category, int]:
        """Count findings by category."""
        counts: dict[Category, int] = dict.fromkeys(Category, 0)
        for finding in self.findings:
            counts[finding.category] += 1
        return counts

    def build_for(self, target: ProjectKind) -> BuildResult:
        for build in self.builds:
            if build.target == target:
                return build
        return BuildResult.skipped(target)

    def test_for(self, target: ProjectKind) -> TestResult:
        for test in self.tests:
            if test.target == target:
                return test
        return TestResult.not_run(target)

    @property
    def failed_tests_count(self) -> int:
        return sum(t.failed for t in self.tests)
