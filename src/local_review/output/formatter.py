"""Format review reports as Markdown, plain text or JSON."""

from typing import Any

from local_review.models.context import ProjectKind
from local_review.models.findings import Category, Finding
from local_review.models.report import ReviewReport, Verdict
from local_review.models.results import (
    NOT_APPLICABLE,
    BuildResult,
    StageStatus,
    TaskOutcome,
    TestResult,
)

VERDICT_LABELS = {
    Verdict.PASSED: "✅ PASSED",
    Verdict.NEEDS_ATTENTION: "⚠️ NEEDS ATTENTION",
    Verdict.FAILED: "❌ FAILED",
}

CATEGORY_LABELS = {
    Category.COMPLIANCE: "Compliance",
    Category.BUG: "Bug",
    Category.SECURITY: "Security",
    Category.BEST_PRACTICE: "Best practice",
}

KIND_LABELS = {
    ProjectKind.DOTNET: ".NET",
    ProjectKind.ANGULAR: "Angular",
}


def stage_status_label(result: BuildResult | TestResult) -> str:
    """PASSED, FAILED, NOT APPLICABLE or SKIPPED (<reason>)."""
    if result.status != StageStatus.SKIPPED:
        return result.status.value.upper()
    if result.skip_reason in (None, NOT_APPLICABLE):
        return "NOT APPLICABLE"
    return f"SKIPPED ({result.skip_reason})"


def _test_counts(test: TestResult) -> str:
    if test.status == StageStatus.SKIPPED:
        return ""
    return f"{test.passed} passed, {test.failed} failed, {test.skipped} skipped ({test.total} total)"


class ReportFormatter:
    """Renders a ReviewReport for humans."""

    def __init__(self, include_suggestions: bool = True) -> None:
        """Initialize the formatter.

        Args:
            include_suggestions: Render each finding's suggested fix
        """
        self.include_suggestions = include_suggestions

    def format_report(self, report: ReviewReport) -> str:
        """Format the report as Markdown."""
        parts = [
            f"## 🔍 Local Review: {VERDICT_LABELS[report.verdict]}",
            "",
            self._format_overview(report),
            "",
            "### 🏗️ Build & Tests",
            "",
            self._format_stage_table(report),
        ]

        failures = self._format_test_failures(report)
        if failures:
            parts.extend(["", failures])

        degraded = report.degraded_sources
        if degraded:
            parts.extend(["", "### ⚠️ Degraded analysis sources", ""])
            parts.extend(self._format_degraded(o) for o in degraded)

        parts.extend(["", f"### 📋 Findings ({len(report.findings)})", ""])
        if report.findings:
            for finding in report.findings:
                parts.append(self._format_finding_markdown(finding))
        else:
            parts.append(f"✅ No findings at or above confidence {report.threshold}.")

        parts.extend(["", "---", self._format_footer(report)])
        return "\n".join(parts)

    def format_text(self, report: ReviewReport) -> str:
        """Format the report as plain text for terminals and logs."""
        lines = [
            f"Verdict: {report.verdict.value}",
            f"Root: {report.project.root}",
            f"Changed files: {report.change_count}",
            "",
            "Build:",
        ]
        for kind in ProjectKind:
            lines.append(f"  {KIND_LABELS[kind]}: {stage_status_label(report.build_for(kind))}")
            build = report.build_for(kind)
            if build.error_summary:
                lines.extend(f"    {line}" for line in build.error_summary.splitlines())

        lines.append("Tests:")
        for kind in ProjectKind:
            test = report.test_for(kind)
            counts = _test_counts(test)
            suffix = f" - {counts}" if counts else ""
            lines.append(f"  {KIND_LABELS[kind]}: {stage_status_label(test)}{suffix}")
            for failure in test.failures:
                lines.append(f"    FAILED {failure.name}: {failure.message}")
            if test.error_summary:
                lines.extend(f"    {line}" for line in test.error_summary.splitlines())

        for outcome in report.degraded_sources:
            lines.append(f"Degraded source: {outcome.task_id} ({outcome.status.value})")

        lines.extend(["", f"Findings ({len(report.findings)}, threshold {report.threshold}):"])
        if not report.findings:
            lines.append("  none")
        for finding in report.findings:
            lines.append(
                f"  [{finding.score}] {finding.location} "
                f"{CATEGORY_LABELS[finding.category]}: {finding.title}"
            )
            if finding.detail:
                lines.append(f"      {finding.detail}")
            if self.include_suggestions and finding.suggestion:
                lines.append(f"      Suggestion: {finding.suggestion}")

        lines.extend(["", self._format_summary_line(report)])
        return "\n".join(lines)

    def _format_overview(self, report: ReviewReport) -> str:
        kinds = ", ".join(KIND_LABELS[k] for k in report.project.kinds) or "none detected"
        return (
            f"**Root:** `{report.project.root}`  \n"
            f"**Changed files:** {report.change_count}  \n"
            f"**Project kinds:** {kinds}"
        )

    def _format_stage_table(self, report: ReviewReport) -> str:
        rows = ["| Target | Build | Tests |", "|--------|-------|-------|"]
        for kind in ProjectKind:
            build = report.build_for(kind)
            test = report.test_for(kind)
            test_cell = stage_status_label(test)
            counts = _test_counts(test)
            if counts:
                test_cell = f"{test_cell} ({counts})"
            rows.append(f"| {KIND_LABELS[kind]} | {stage_status_label(build)} | {test_cell} |")

        for build in report.builds:
            if build.error_summary:
                rows.extend(
                    [
                        "",
                        f"<details><summary>{KIND_LABELS[build.target]} build errors</summary>",
                        "",
                        "```",
                        build.error_summary,
                        "```",
                        "</details>",
                    ]
                )
        return "\n".join(rows)

    def _format_test_failures(self, report: ReviewReport) -> str:
        lines = []
        for test in report.tests:
            for failure in test.failures:
                lines.append(f"- ❌ `{failure.name}` ({KIND_LABELS[test.target]}): {failure.message}")
            if test.error_summary and not test.failures:
                lines.append(f"- ❌ {KIND_LABELS[test.target]} tests: {test.error_summary}")
        if not lines:
            return ""
        return "\n".join(["**Failing tests:**", "", *lines])

    def _format_degraded(self, outcome: TaskOutcome) -> str:
        reason = f": {outcome.error}" if outcome.error else ""
        return f"- `{outcome.task_id}` {outcome.status.value}{reason}"

    def _format_finding_markdown(self, finding: Finding) -> str:
        lines = [
            f"#### {finding.title}",
            "",
            f"📍 `{finding.location}` | {CATEGORY_LABELS[finding.category]} | "
            f"confidence {finding.score} | {finding.source}",
            "",
            finding.detail,
        ]
        if self.include_suggestions and finding.suggestion:
            lines.extend(["", f"💡 **Suggestion:** {finding.suggestion}"])
        lines.append("")
        return "\n".join(lines)

    def _format_summary_line(self, report: ReviewReport) -> str:
        return (
            f"{len(report.findings)} finding(s), {report.failed_tests_count} failing test(s), "
            f"{report.discarded_count} discarded; verdict {report.verdict.value}"
        )

    def _format_footer(self, report: ReviewReport) -> str:
        return (
            f"*{self._format_summary_line(report)} | "
            f"threshold {report.threshold} | {report.duration_ms / 1000:.1f}s*"
        )


def _stage_to_json(result: BuildResult | TestResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "target": result.target.value,
        "status": result.status.value,
        "label": stage_status_label(result),
        "duration_ms": result.duration_ms,
        "error_summary": result.error_summary,
        "skip_reason": result.skip_reason,
    }
    if isinstance(result, TestResult):
        data.update(
            {
                "total": result.total,
                "passed": result.passed,
                "failed": result.failed,
                "skipped": result.skipped,
                "failures": [{"name": f.name, "message": f.message} for f in result.failures],
            }
        )
    return data


def format_report_as_json(report: ReviewReport) -> dict[str, Any]:
    """Format the report as a JSON-serializable dict."""
    return {
        "id": report.id,
        "created_at": report.created_at.isoformat(),
        "verdict": report.verdict.value,
        "threshold": report.threshold,
        "project": report.project.to_summary(),
        "change_count": report.change_count,
        "changed_paths": list(report.changed_paths),
        "builds": [_stage_to_json(report.build_for(kind)) for kind in ProjectKind],
        "tests": [_stage_to_json(report.test_for(kind)) for kind in ProjectKind],
        "findings": [
            {
                "id": f.id,
                "title": f.title,
                "file_path": f.file_path,
                "line_number": f.line_number,
                "category": f.category.value,
                "confidence": f.score,
                "raw_confidence": f.raw_confidence,
                "detail": f.detail,
                "suggestion": f.suggestion,
                "source": f.source,
            }
            for f in report.findings
        ],
        "task_outcomes": [
            {
                "task_id": o.task_id,
                "status": o.status.value,
                "findings_count": o.findings_count,
                "duration_ms": o.duration_ms,
                "error": o.error,
            }
            for o in report.task_outcomes
        ],
        "degraded_sources": [o.task_id for o in report.degraded_sources],
        "summary": {
            "findings_by_category": {
                c.value: count for c, count in report.findings_by_category.items()
            },
            "failed_tests": report.failed_tests_count,
            "discarded": report.discarded_count,
            "duration_ms": report.duration_ms,
        },
    }
