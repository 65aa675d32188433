"""Analysis dispatcher for parallel task execution."""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from local_review.agents.base import AnalysisTask
from local_review.models.changes import ChangeSet
from local_review.models.context import ProjectContext
from local_review.models.findings import Finding
from local_review.models.results import TaskOutcome, TaskStatus

logger = logging.getLogger(__name__)


@dataclass
class DispatcherConfig:
    """Configuration for the dispatcher."""

    timeout_seconds: float = 120
    max_parallel_tasks: int = 5


@dataclass
class DispatchResult:
    """Raw findings of every task plus one outcome per registered task."""

    findings: list[Finding] = field(default_factory=list)
    outcomes: list[TaskOutcome] = field(default_factory=list)

    @property
    def degraded(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if o.is_degraded]


class AnalysisDispatcher:
    """Runs every applicable analysis task concurrently against one change-set."""

    def __init__(
        self,
        tasks: list[AnalysisTask],
        timeout_seconds: float = 120,
        max_parallel_tasks: int = 5,
        config: DispatcherConfig | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            tasks: Registered analysis tasks
            timeout_seconds: Deadline applied to each task independently
            max_parallel_tasks: Upper bound on concurrently running tasks
            config: Optional full configuration (overrides other params)
        """
        self.tasks = tasks
        self.config = config or DispatcherConfig(
            timeout_seconds=timeout_seconds,
            max_parallel_tasks=max_parallel_tasks,
        )

    async def dispatch(self, change_set: ChangeSet, context: ProjectContext) -> DispatchResult:
        """Execute all applicable tasks in parallel and collect their findings.

        A task that raises or misses its deadline contributes zero findings and
        is recorded as degraded. Nothing here aborts the run.
        """
        applicable = []
        result = DispatchResult()
        for task in self.tasks:
            if task.is_applicable(context):
                applicable.append(task)
            else:
                logger.info(f"Task {task.task_id} not applicable, skipping")
                result.outcomes.append(TaskOutcome(task.task_id, TaskStatus.NOT_APPLICABLE))

        logger.info(f"Dispatching {len(applicable)} analysis tasks")
        semaphore = asyncio.Semaphore(max(1, self.config.max_parallel_tasks))

        # Create tasks for all applicable analysis tasks
        running = [
            asyncio.create_task(
                self._run_task_with_timeout(task, change_set, context, semaphore),
                name=f"analysis-{task.task_id}",
            )
            for task in applicable
        ]

        # Wait for all, collecting results
        results = await asyncio.gather(*running, return_exceptions=True)

        for task, item in zip(applicable, results):
            if isinstance(item, BaseException):
                logger.error(f"Task {task.task_id} was cancelled: {item!r}")
                item = (TaskOutcome(task.task_id, TaskStatus.FAILED, error=repr(item)), [])
            outcome, findings = item
            result.outcomes.append(outcome)
            result.findings.extend(findings)

        succeeded = sum(1 for o in result.outcomes if o.status == TaskStatus.SUCCEEDED)
        logger.info(
            f"Analysis complete: {succeeded} succeeded, {len(result.degraded)} degraded, "
            f"{len(result.findings)} raw findings"
        )
        return result

    async def _run_task_with_timeout(
        self,
        task: AnalysisTask,
        change_set: ChangeSet,
        context: ProjectContext,
        semaphore: asyncio.Semaphore,
    ) -> tuple[TaskOutcome, list[Finding]]:
        """Run a single task under its own deadline and classify the result.

        Never raises (except on cancellation of the whole dispatch).
        """
        async with semaphore:
            start_time = time.monotonic()
            try:
                raw = await asyncio.wait_for(
                    task.analyze(change_set, context),
                    timeout=self.config.timeout_seconds,
                )
                findings = [self._attribute(task, f) for f in raw or []]
            except asyncio.TimeoutError:
                elapsed_ms = int((time.monotonic() - start_time) * 1000)
                logger.warning(f"Task {task.task_id} timed out")
                return (
                    TaskOutcome(
                        task.task_id,
                        TaskStatus.TIMED_OUT,
                        duration_ms=elapsed_ms,
                        error=f"timed out after {self.config.timeout_seconds}s",
                    ),
                    [],
                )
            except Exception as e:
                elapsed_ms = int((time.monotonic() - start_time) * 1000)
                logger.error(f"Task {task.task_id} failed: {e}")
                return (
                    TaskOutcome(
                        task.task_id,
                        TaskStatus.FAILED,
                        duration_ms=elapsed_ms,
                        error=f"{type(e).__name__}: {e}",
                    ),
                    [],
                )

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(f"Task {task.task_id} completed: {len(findings)} findings")
        return (
            TaskOutcome(
                task.task_id,
                TaskStatus.SUCCEEDED,
                findings_count=len(findings),
                duration_ms=elapsed_ms,
            ),
            findings,
        )

    def _attribute(self, task: AnalysisTask, finding: Finding) -> Finding:
        """Ensure the finding's source names the task that produced it."""
        if not isinstance(finding, Finding):
            raise TypeError(f"expected Finding, got {type(finding).__name__}")
        if finding.source == task.task_id:
            return finding
        return finding.with_source(task.task_id)
