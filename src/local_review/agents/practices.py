"""Framework-specific best-practice tasks."""

from local_review.agents.base import LineRule, RuleBasedTask
from local_review.models.context import ProjectContext
from local_review.models.findings import Category


class DotnetPracticesTask(RuleBasedTask):
    """.NET conventions. Runs only when a solution was detected."""

    TASK_ID = "dotnet-practices"
    DESCRIPTION = ".NET best practices (HttpClient reuse, logging, exception handling)"

    RULES = [
        LineRule(
            pattern=r"""new\s+HttpClient\s*\(""",
            title="HttpClient instantiated directly",
            category=Category.BEST_PRACTICE,
            detail="Creating HttpClient per call exhausts sockets under load.",
            suggestion="Inject IHttpClientFactory or reuse a single instance.",
            confidence=80,
            file_globs=("*.cs",),
            include_tests=False,
        ),
        LineRule(
            pattern=r"""Console\.Write(Line)?\(""",
            title="Console output instead of ILogger",
            category=Category.BEST_PRACTICE,
            detail="Console writes bypass the configured logging pipeline.",
            suggestion="Use an injected ILogger<T>.",
            confidence=50,
            file_globs=("*.cs",),
            include_tests=False,
        ),
        LineRule(
            pattern=r"""catch\s*\(\s*(System\.)?Exception(\s+\w+)?\s*\)""",
            title="Catching System.Exception",
            category=Category.BEST_PRACTICE,
            detail="Catching the base exception hides unexpected failures.",
            suggestion="Catch the specific exceptions you can handle.",
            confidence=50,
            file_globs=("*.cs",),
        ),
        LineRule(
            pattern=r"""#pragma\s+warning\s+disable""",
            title="Compiler warning suppressed",
            category=Category.BEST_PRACTICE,
            detail="Suppressed warnings hide real problems.",
            suggestion="Fix the warning or justify the suppression.",
            confidence=40,
            file_globs=("*.cs",),
            stylistic=True,
        ),
    ]

    def is_applicable(self, context: ProjectContext) -> bool:
        return context.has_dotnet


class AngularPracticesTask(RuleBasedTask):
    """Angular conventions. Runs only when an Angular workspace was detected."""

    TASK_ID = "angular-practices"
    DESCRIPTION = "Angular best practices (typing, DOM access, template performance)"

    RULES = [
        LineRule(
            pattern=r"""console\.(log|debug)\(""",
            title="Leftover console logging",
            category=Category.BEST_PRACTICE,
            detail="Debug logging ships to the browser console.",
            suggestion="Remove it or use a logging service.",
            confidence=50,
            file_globs=("*.ts",),
            include_tests=False,
        ),
        LineRule(
            pattern=r""":\s*any\b""",
            title="Use of `any` type",
            category=Category.BEST_PRACTICE,
            detail="`any` disables type checking.",
            suggestion="Declare a precise type or use `unknown`.",
            confidence=40,
            file_globs=("*.ts",),
            stylistic=True,
        ),
        LineRule(
            pattern=r"""document\.(getElementById|querySelector(All)?)\(""",
            title="Direct DOM query",
            category=Category.BEST_PRACTICE,
            detail="Querying the document bypasses Angular's rendering abstraction and breaks SSR.",
            suggestion="Use ViewChild/ElementRef or Renderer2.",
            confidence=60,
            file_globs=("*.ts",),
            include_tests=False,
        ),
        LineRule(
            pattern=r"""\*ngFor="(?![^"]*trackBy)[^"]*\"""",
            title="ngFor without trackBy",
            category=Category.BEST_PRACTICE,
            detail="Without trackBy the whole list re-renders on every change.",
            suggestion="Add a trackBy function.",
            confidence=40,
            file_globs=("*.html",),
            stylistic=True,
        ),
    ]

    def is_applicable(self, context: ProjectContext) -> bool:
        return context.has_angular
