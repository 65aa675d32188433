"""Analysis tasks for local-review."""

from local_review.agents.base import AnalysisTask, LineRule, RuleBasedTask
from local_review.agents.bugs import BugTask
from local_review.agents.compliance import ComplianceTask
from local_review.agents.practices import AngularPracticesTask, DotnetPracticesTask
from local_review.agents.registry import BUILTIN_TASKS, build_tasks
from local_review.agents.remote import RemoteAnalysisClient, RemoteAnalysisTask
from local_review.agents.security import SecurityTask

__all__ = [
    "AnalysisTask",
    "AngularPracticesTask",
    "BUILTIN_TASKS",
    "BugTask",
    "ComplianceTask",
    "DotnetPracticesTask",
    "LineRule",
    "RemoteAnalysisClient",
    "RemoteAnalysisTask",
    "RuleBasedTask",
    "SecurityTask",
    "build_tasks",
]
