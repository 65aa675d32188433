"""Data models for local-review."""

from local_review.models.changes import ChangeKind, ChangeSet, DiffHunk, FileChange
from local_review.models.context import ProjectContext, ProjectKind
from local_review.models.findings import Category, Finding
from local_review.models.report import ReviewReport, Verdict
from local_review.models.results import (
    BuildResult,
    StageResults,
    StageStatus,
    TaskOutcome,
    TaskStatus,
    TestFailureDetail,
    TestResult,
)

__all__ = [
    "BuildResult",
    "Category",
    "ChangeKind",
    "ChangeSet",
    "DiffHunk",
    "FileChange",
    "Finding",
    "ProjectContext",
    "ProjectKind",
    "ReviewReport",
    "StageResults",
    "StageStatus",
    "TaskOutcome",
    "TaskStatus",
    "TestFailureDetail",
    "TestResult",
    "Verdict",
]
