"""Builds the analysis tasks enabled in the configuration."""

import logging

from local_review.agents.base import AnalysisTask
from local_review.agents.bugs import BugTask
from local_review.agents.compliance import ComplianceTask
from local_review.agents.practices import AngularPracticesTask, DotnetPracticesTask
from local_review.agents.remote import RemoteAnalysisTask
from local_review.agents.security import SecurityTask
from local_review.config import Config
from local_review.errors import ConfigError

logger = logging.getLogger(__name__)

BUILTIN_TASKS: dict[str, type[AnalysisTask]] = {
    ComplianceTask.TASK_ID: ComplianceTask,
    BugTask.TASK_ID: BugTask,
    SecurityTask.TASK_ID: SecurityTask,
    DotnetPracticesTask.TASK_ID: DotnetPracticesTask,
    AngularPracticesTask.TASK_ID: AngularPracticesTask,
}


def unknown_task_names(config: Config) -> list[str]:
    """Enabled task names that match neither a built-in nor a remote task."""
    remote_names = {t.name for t in config.remote_tasks}
    return [
        name
        for name in config.analysis.enabled_tasks
        if name not in BUILTIN_TASKS and name not in remote_names
    ]


def build_tasks(config: Config) -> list[AnalysisTask]:
    """Instantiate every enabled built-in task plus all configured remote tasks.

    Raises:
        ConfigError: If an enabled task name is unknown
    """
    unknown = unknown_task_names(config)
    if unknown:
        raise ConfigError(f"Unknown analysis tasks: {', '.join(unknown)}")

    tasks: list[AnalysisTask] = []
    for name in config.analysis.enabled_tasks:
        if name == ComplianceTask.TASK_ID:
            tasks.append(ComplianceTask(config.compliance_rules))
        elif name in BUILTIN_TASKS:
            tasks.append(BUILTIN_TASKS[name]())

    for remote in config.remote_tasks:
        if remote.name in BUILTIN_TASKS:
            raise ConfigError(f"Remote task name '{remote.name}' clashes with a built-in task")
        tasks.append(RemoteAnalysisTask(remote))

    logger.debug(f"Registered tasks: {', '.join(t.task_id for t in tasks)}")
    return tasks
