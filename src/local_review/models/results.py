"""Build, test and analysis-task result models."""

from dataclasses import dataclass, field
from enum import Enum

from local_review.models.context import ProjectKind


class StageStatus(Enum):
    """Terminal state of a build or test stage."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


NOT_APPLICABLE = "not applicable"


@dataclass(frozen=True)
class BuildResult:
    """Outcome of building one project kind."""

    target: ProjectKind
    status: StageStatus
    duration_ms: int = 0
    error_summary: str | None = None
    skip_reason: str | None = None
    command: str | None = None

    @classmethod
    def skipped(cls, target: ProjectKind, reason: str = NOT_APPLICABLE) -> "BuildResult":
        return cls(target=target, status=StageStatus.SKIPPED, skip_reason=reason)

    @property
    def is_failed(self) -> bool:
        return self.status == StageStatus.FAILED


@dataclass(frozen=True)
class TestFailureDetail:
    """A single failing test."""

    name: str
    message: str

    __test__ = False


@dataclass(frozen=True)
class TestResult:
    """Outcome of running the tests of one project kind."""

    target: ProjectKind
    status: StageStatus
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    failures: tuple[TestFailureDetail, ...] = ()
    duration_ms: int = 0
    error_summary: str | None = None
    skip_reason: str | None = None

    __test__ = False  # not a pytest test class

    @classmethod
    def not_run(cls, target: ProjectKind, reason: str = NOT_APPLICABLE) -> "TestResult":
        return cls(target=target, status=StageStatus.SKIPPED, skip_reason=reason)

    @property
    def is_failed(self) -> bool:
        return self.failed > 0 or self.status == StageStatus.FAILED


class TaskStatus(Enum):
    """Terminal state of one analysis task."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timedOut"
    NOT_APPLICABLE = "notApplicable"


@dataclass(frozen=True)
class TaskOutcome:
    """What happened to one analysis task during dispatch."""

    task_id: str
    status: TaskStatus
    findings_count: int = 0
    duration_ms: int = 0
    error: str | None = None

    @property
    def is_degraded(self) -> bool:
        return self.status in (TaskStatus.FAILED, TaskStatus.TIMED_OUT)


@dataclass(frozen=True)
class StageResults:
    """Build and test results for every project kind."""

    builds: tuple[BuildResult, ...] = field(default_factory=tuple)
    tests: tuple[TestResult, ...] = field(default_factory=tuple)
