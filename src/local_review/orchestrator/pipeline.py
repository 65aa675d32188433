"""End-to-end review pipeline.

Stage ordering:

1. Change extraction and project detection run concurrently. If extraction
   fails (clean tree, not a repository) detection is cancelled and nothing
   else starts.
2. The analysis -> scoring chain runs concurrently with the build -> test
   stage of every project kind.
3. Once everything has reached a terminal state the aggregator builds the
   report. There is no partial report.
"""

import asyncio
import logging
import time
from pathlib import Path

from local_review.agents.registry import build_tasks
from local_review.config import Config
from local_review.detection.detector import ProjectDetector
from local_review.models.changes import ChangeSet
from local_review.models.context import ProjectContext, ProjectKind
from local_review.models.findings import Finding
from local_review.models.report import ReviewReport
from local_review.models.results import (
    BuildResult,
    StageResults,
    StageStatus,
    TaskOutcome,
    TestResult,
)
from local_review.orchestrator.aggregator import Aggregator, AggregatorConfig
from local_review.orchestrator.dispatcher import AnalysisDispatcher
from local_review.orchestrator.scorer import ConfidenceScorer
from local_review.runners.build import BuildRunner
from local_review.runners.testing import TestRunner
from local_review.vcs.extractor import ChangeSetExtractor

logger = logging.getLogger(__name__)


class ReviewPipeline:
    """Runs one review of a working tree and returns the final report."""

    def __init__(
        self,
        extractor: ChangeSetExtractor,
        detector: ProjectDetector,
        dispatcher: AnalysisDispatcher,
        scorer: ConfidenceScorer,
        aggregator: Aggregator,
        build_runner: BuildRunner,
        test_runner: TestRunner,
        run_tests: bool = False,
    ) -> None:
        self.extractor = extractor
        self.detector = detector
        self.dispatcher = dispatcher
        self.scorer = scorer
        self.aggregator = aggregator
        self.build_runner = build_runner
        self.test_runner = test_runner
        self.run_tests = run_tests

    @classmethod
    def from_config(cls, config: Config, run_tests: bool = False) -> "ReviewPipeline":
        """Wire every stage from a loaded configuration.

        Raises:
            ConfigError: If the configuration names unknown analysis tasks
        """
        return cls(
            extractor=ChangeSetExtractor(
                include_untracked=config.changes.include_untracked,
                ignore_patterns=config.changes.ignore_patterns,
            ),
            detector=ProjectDetector(
                max_depth=config.detection.max_ancestor_depth,
                test_name_patterns=config.detection.test_name_patterns,
                test_dependency_markers=config.detection.test_dependency_markers,
            ),
            dispatcher=AnalysisDispatcher(
                build_tasks(config),
                timeout_seconds=config.analysis.task_timeout_seconds,
                max_parallel_tasks=config.analysis.max_parallel_tasks,
            ),
            scorer=ConfidenceScorer(max_parallel=config.scoring.max_parallel_scoring),
            aggregator=Aggregator(
                AggregatorConfig(
                    confidence_threshold=config.aggregator.confidence_threshold,
                    max_findings=config.aggregator.max_findings,
                )
            ),
            build_runner=BuildRunner(
                dotnet_command=config.build.dotnet_command,
                angular_command=config.build.angular_command,
                timeout_seconds=config.build.timeout_seconds,
                enabled=config.build.enabled,
            ),
            test_runner=TestRunner(
                dotnet_command=config.tests.dotnet_command,
                angular_command=config.tests.angular_command,
                timeout_seconds=config.tests.timeout_seconds,
            ),
            run_tests=run_tests,
        )

    async def run(self, root: Path) -> ReviewReport:
        """Review the working tree at ``root``.

        Raises:
            NoChangesError: If the working tree is clean
            RepositoryError: If ``root`` is not a usable git working tree
        """
        start_time = time.monotonic()
        try:
            change_set, context = await self._extract_and_detect(root)
            logger.info(
                f"Reviewing {len(change_set)} changed file(s); "
                f"detected: {', '.join(k.value for k in context.kinds) or 'nothing'}"
            )

            (findings, outcomes), stages = await asyncio.gather(
                self._analyze(change_set, context),
                self._build_and_test(context),
            )
        finally:
            await self._close_tasks()

        return self.aggregator.aggregate(
            findings=findings,
            builds=list(stages.builds),
            tests=list(stages.tests),
            change_set=change_set,
            context=context,
            task_outcomes=outcomes,
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )

    async def _extract_and_detect(self, root: Path) -> tuple[ChangeSet, ProjectContext]:
        extract = asyncio.create_task(asyncio.to_thread(self.extractor.extract, root))
        detect = asyncio.create_task(asyncio.to_thread(self.detector.detect, root))
        try:
            change_set = await extract
        except BaseException:
            detect.cancel()
            await asyncio.gather(detect, return_exceptions=True)
            raise
        return change_set, await detect

    async def _analyze(
        self, change_set: ChangeSet, context: ProjectContext
    ) -> tuple[list[Finding], list[TaskOutcome]]:
        dispatched = await self.dispatcher.dispatch(change_set, context)
        for outcome in dispatched.degraded:
            logger.warning(f"Analysis source {outcome.task_id} degraded: {outcome.error}")
        scored = await self.scorer.score_all(dispatched.findings, change_set, context)
        return scored, dispatched.outcomes

    async def _build_and_test(self, context: ProjectContext) -> StageResults:
        results = await asyncio.gather(*(self._stage(kind, context) for kind in ProjectKind))
        return StageResults(
            builds=tuple(build for build, _ in results),
            tests=tuple(test for _, test in results),
        )

    async def _stage(
        self, kind: ProjectKind, context: ProjectContext
    ) -> tuple[BuildResult, TestResult]:
        """Build then test one project kind."""
        build = await self.build_runner.build(kind, context)
        test = await self.test_runner.run(
            kind,
            context,
            requested=self.run_tests,
            build_passed=build.status == StageStatus.PASSED,
        )
        return build, test

    async def _close_tasks(self) -> None:
        for task in self.dispatcher.tasks:
            try:
                await task.close()
            except Exception as e:
                logger.warning(f"Failed to close task {task.task_id}: {e}")
