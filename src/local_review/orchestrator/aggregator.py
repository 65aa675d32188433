"""Aggregator for scored findings and build/test outcomes."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from local_review.models.changes import ChangeSet
from local_review.models.context import ProjectContext
from local_review.models.findings import Finding
from local_review.models.report import ReviewReport, Verdict
from local_review.models.results import BuildResult, TaskOutcome, TestResult

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 80


@dataclass
class AggregatorConfig:
    """Configuration for the aggregator."""

    confidence_threshold: int = DEFAULT_THRESHOLD
    max_findings: int | None = None


def _rank_key(finding: Finding) -> tuple[int, str]:
    # Highest score wins; the id breaks ties so the result is order independent
    return (finding.score, finding.id)


def deduplicate(findings: list[Finding]) -> list[Finding]:
    """Keep one finding per (file_path, line_number, category): the most confident."""
    best: dict[tuple, Finding] = {}
    for finding in findings:
        current = best.get(finding.dedupe_key)
        if current is None or _rank_key(finding) > _rank_key(current):
            best[finding.dedupe_key] = finding
    return list(best.values())


def filter_by_confidence(findings: list[Finding], threshold: int) -> list[Finding]:
    """Findings whose confidence is at least ``threshold``."""
    return [f for f in findings if f.score >= threshold]


def compute_verdict(
    builds: list[BuildResult], tests: list[TestResult], findings: list[Finding]
) -> Verdict:
    """Failed beats needs-attention beats passed."""
    if any(b.is_failed for b in builds) or any(t.is_failed for t in tests):
        return Verdict.FAILED
    if findings:
        return Verdict.NEEDS_ATTENTION
    return Verdict.PASSED


class Aggregator:
    """Combines scored findings and stage results into the final report."""

    def __init__(self, config: AggregatorConfig | None = None) -> None:
        """Initialize the aggregator.

        Args:
            config: Optional configuration
        """
        self.config = config or AggregatorConfig()

    def aggregate(
        self,
        findings: list[Finding],
        builds: list[BuildResult],
        tests: list[TestResult],
        change_set: ChangeSet,
        context: ProjectContext,
        task_outcomes: list[TaskOutcome] | None = None,
        duration_ms: int = 0,
    ) -> ReviewReport:
        """Merge everything from one run into a ReviewReport.

        Algorithm:
        1. Deduplicate on (file_path, line_number, category), keeping the max
        2. Drop findings below the confidence threshold
        3. Rank by confidence, then location
        4. Derive the verdict from builds, tests and remaining findings
        """
        threshold = self.config.confidence_threshold

        unique = deduplicate(findings)
        kept = filter_by_confidence(unique, threshold)
        kept.sort(key=lambda f: (-f.score, f.file_path, f.line_number or 0, f.id))

        verdict = compute_verdict(builds, tests, kept)

        if self.config.max_findings is not None and len(kept) > self.config.max_findings:
            logger.info(f"Capping report at {self.config.max_findings} of {len(kept)} findings")
            kept = kept[: self.config.max_findings]

        logger.info(
            f"Aggregated {len(findings)} findings: {len(unique)} unique, "
            f"{len(kept)} at or above {threshold}; verdict {verdict.value}"
        )

        return ReviewReport(
            id=f"review-{uuid.uuid4().hex[:8]}",
            created_at=datetime.now(),
            project=context,
            change_count=len(change_set),
            changed_paths=tuple(change_set.paths),
            builds=tuple(builds),
            tests=tuple(tests),
            findings=tuple(kept),
            verdict=verdict,
            threshold=threshold,
            task_outcomes=tuple(task_outcomes or []),
            discarded_count=len(findings) - len(kept),
            duration_ms=duration_ms,
        )
