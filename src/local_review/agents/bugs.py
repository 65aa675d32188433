"""Bug-focused analysis task."""

from local_review.agents.base import LineRule, RuleBasedTask
from local_review.models.findings import Category


class BugTask(RuleBasedTask):
    """Agent-independent bug patterns: async misuse, swallowed errors, conflicts."""

    TASK_ID = "bugs"
    DESCRIPTION = "Merge conflicts, async misuse and swallowed exceptions"

    RULES = [
        LineRule(
            pattern=r"""^(<<<<<<<|>>>>>>>)( |$)|^=======$""",
            title="Unresolved merge conflict marker",
            category=Category.BUG,
            detail="The file still contains a conflict marker and will not compile.",
            suggestion="Resolve the conflict and remove the marker.",
            confidence=100,
        ),
        LineRule(
            pattern=r"""\basync\s+void\s+(?!On[A-Z])\w+\s*\((?![^)]*EventArgs)""",
            title="async void method",
            category=Category.BUG,
            detail="Exceptions thrown from async void methods crash the process and cannot be awaited.",
            suggestion="Return Task instead of void.",
            confidence=80,
            file_globs=("*.cs",),
        ),
        LineRule(
            pattern=r"""\.GetAwaiter\(\)\.GetResult\(\)|\.Wait\(\)\s*;""",
            title="Blocking on async code",
            category=Category.BUG,
            detail="Synchronously waiting on a task can deadlock under a synchronization context.",
            suggestion="Await the task and make the caller async.",
            confidence=65,
            file_globs=("*.cs",),
        ),
        LineRule(
            pattern=r"""catch\s*(\([^)]*\))?\s*\{\s*\}""",
            title="Empty catch block",
            category=Category.BUG,
            detail="Exceptions are silently swallowed.",
            suggestion="Log the exception, handle it, or let it propagate.",
            confidence=80,
            file_globs=("*.cs", "*.ts", "*.js"),
        ),
        LineRule(
            pattern=r"""\bthrow\s+\w+\s*;""",
            title="Rethrow resets the stack trace",
            category=Category.BUG,
            detail="`throw ex;` discards the original stack trace.",
            suggestion="Use `throw;` to rethrow the current exception.",
            confidence=75,
            file_globs=("*.cs",),
        ),
        LineRule(
            pattern=r"""\.subscribe\([^)]*\.subscribe\(""",
            title="Nested observable subscription",
            category=Category.BUG,
            detail="Nested subscriptions leak and race; inner results may arrive out of order.",
            suggestion="Compose with switchMap/mergeMap instead.",
            confidence=70,
            file_globs=("*.ts",),
        ),
    ]
