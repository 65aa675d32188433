"""Project policy compliance task."""

from local_review.agents.base import LineRule, RuleBasedTask
from local_review.config import ComplianceRule
from local_review.models.context import ProjectContext
from local_review.models.findings import Category


def rule_from_config(rule: ComplianceRule) -> LineRule:
    """Turn a configured policy into a LineRule."""
    return LineRule(
        pattern=rule.pattern,
        title=rule.title,
        category=Category.COMPLIANCE,
        detail=rule.detail or f"Violates project policy: {rule.title}.",
        suggestion=rule.suggestion,
        confidence=rule.confidence,
        file_globs=(rule.file_glob,),
    )


class ComplianceTask(RuleBasedTask):
    """Checks added lines against the project's configured policies.

    Only applicable when at least one policy is configured.
    """

    TASK_ID = "compliance"
    DESCRIPTION = "Project policies from the compliance section of the config"

    def __init__(
        self, rules: list[ComplianceRule] | None = None, task_id: str | None = None
    ) -> None:
        super().__init__(task_id, [rule_from_config(r) for r in rules or []])

    def is_applicable(self, context: ProjectContext) -> bool:
        return bool(self.rules)
