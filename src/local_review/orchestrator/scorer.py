"""Confidence scoring for raw findings.

Rubric (0-100):

- 0: confirmed false positive or pre-existing (outside the change)
- 25: plausible but unverified, or purely stylistic without policy backing
- 50: real but minor (nitpick)
- 75: verified, will manifest in practice
- 100: certain and severe

``score_finding`` is a pure function of the finding and the change/project
context, so identical inputs always produce the same score.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from local_review.agents.base import is_test_path
from local_review.errors import ScoringError
from local_review.models.changes import ChangeKind, ChangeSet
from local_review.models.context import ProjectContext
from local_review.models.findings import Category, Finding

logger = logging.getLogger(__name__)

FALSE_POSITIVE = 0
PLAUSIBLE = 25
MINOR = 50
VERIFIED = 75
CERTAIN = 100

ScoreFunction = Callable[[Finding, ChangeSet, ProjectContext], int]


def score_finding(finding: Finding, change_set: ChangeSet, context: ProjectContext) -> int:
    """Apply the confidence rubric to one finding."""
    change = change_set.get(finding.file_path)
    if change is None or change.change_kind == ChangeKind.DELETED:
        return FALSE_POSITIVE
    if finding.line_number is not None and finding.line_number not in change.added_line_numbers:
        return FALSE_POSITIVE

    score = finding.raw_confidence
    if finding.category == Category.BEST_PRACTICE:
        score = min(score, PLAUSIBLE if finding.stylistic else MINOR)
    if finding.category != Category.SECURITY and is_test_path(finding.file_path):
        score = min(score, MINOR)
    if finding.line_number is None:
        score = min(score, VERIFIED)
    return max(0, min(100, score))


class ConfidenceScorer:
    """Scores every finding independently and concurrently."""

    def __init__(
        self,
        score_fn: ScoreFunction | Callable[..., Awaitable[int]] = score_finding,
        max_parallel: int = 16,
    ) -> None:
        """Initialize the scorer.

        Args:
            score_fn: Rubric implementation, sync or async
            max_parallel: Upper bound on concurrently running score operations
        """
        self.score_fn = score_fn
        self.max_parallel = max(1, max_parallel)

    async def score_all(
        self, findings: list[Finding], change_set: ChangeSet, context: ProjectContext
    ) -> list[Finding]:
        """Return a scored copy of every finding, in input order.

        A finding that cannot be scored gets confidence 0. Nothing is dropped.
        """
        semaphore = asyncio.Semaphore(self.max_parallel)

        async def _bounded(finding: Finding) -> Finding:
            async with semaphore:
                return await self.score(finding, change_set, context)

        scored = await asyncio.gather(*(_bounded(f) for f in findings))
        logger.info(f"Scored {len(scored)} findings")
        return list(scored)

    async def score(
        self, finding: Finding, change_set: ChangeSet, context: ProjectContext
    ) -> Finding:
        """Score one finding, falling back to 0 on any scoring error."""
        if finding.is_scored:
            return finding
        try:
            value = await self._compute(finding, change_set, context)
        except ScoringError as e:
            logger.warning(f"Could not score {finding.id} ({finding.location}): {e}")
            value = FALSE_POSITIVE
        return finding.with_confidence(value)

    async def _compute(
        self, finding: Finding, change_set: ChangeSet, context: ProjectContext
    ) -> int:
        try:
            value = self.score_fn(finding, change_set, context)
            if asyncio.iscoroutine(value):
                value = await value
        except Exception as e:
            raise ScoringError(f"{type(e).__name__}: {e}") from e

        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
            raise ScoringError(f"score {value!r} is outside [0, 100]")
        return value
