"""Tests for report formatting."""

import json
from datetime import datetime
from pathlib import Path

import pytest


def _report(findings=(), builds=(), tests=(), outcomes=(), verdict=None, project=None):
    from local_review.models.context import ProjectContext
    from local_review.models.report import ReviewReport, Verdict

    return ReviewReport(
        id="review-abc",
        created_at=datetime(2026, 1, 2, 3, 4, 5),
        project=project or ProjectContext(root=Path("/work")),
        change_count=2,
        changed_paths=("src/Api/UserController.cs", "web/src/app/app.component.ts"),
        builds=tuple(builds),
        tests=tuple(tests),
        findings=tuple(findings),
        verdict=verdict or Verdict.PASSED,
        threshold=80,
        task_outcomes=tuple(outcomes),
        duration_ms=2500,
    )


class TestReportFormatter:
    """Tests for ReportFormatter."""

    def test_all_skipped_report(self):
        """Test a report where nothing was detected renders every stage as not applicable."""
        from local_review.output.formatter import ReportFormatter

        report = _report()

        markdown = ReportFormatter().format_report(report)
        text = ReportFormatter().format_text(report)

        assert "PASSED" in markdown
        assert markdown.count("NOT APPLICABLE") == 4
        assert "No findings" in markdown
        assert "Verdict: passed" in text
        assert text.count("NOT APPLICABLE") == 4

    def test_findings_rendered(self, make_finding):
        """Test findings show title, location, category and confidence."""
        from local_review.models.report import Verdict
        from local_review.output.formatter import ReportFormatter

        finding = make_finding().with_confidence(85)
        report = _report(findings=[finding], verdict=Verdict.NEEDS_ATTENTION)

        markdown = ReportFormatter().format_report(report)

        assert "NEEDS ATTENTION" in markdown
        assert "SQL built with string interpolation" in markdown
        assert "src/Api/UserController.cs:12" in markdown
        assert "Security" in markdown
        assert "confidence 85" in markdown
        assert "Use parameters." in markdown

    def test_suggestions_optional(self, make_finding):
        """Test suggestions can be left out."""
        from local_review.output.formatter import ReportFormatter

        report = _report(findings=[make_finding().with_confidence(90)])

        assert "Use parameters." not in ReportFormatter(include_suggestions=False).format_text(
            report
        )

    def test_stage_statuses(self):
        """Test explicit PASSED, FAILED and SKIPPED (reason) labels."""
        from local_review.models.context import ProjectKind
        from local_review.models.report import Verdict
        from local_review.models.results import (
            BuildResult,
            StageStatus,
            TestFailureDetail,
            TestResult,
        )
        from local_review.output.formatter import ReportFormatter

        builds = [
            BuildResult(target=ProjectKind.DOTNET, status=StageStatus.PASSED),
            BuildResult(
                target=ProjectKind.ANGULAR,
                status=StageStatus.FAILED,
                error_summary="error TS2322: Type 'string' is not assignable",
            ),
        ]
        tests = [
            TestResult(
                target=ProjectKind.DOTNET,
                status=StageStatus.FAILED,
                total=3,
                passed=2,
                failed=1,
                failures=(TestFailureDetail("UserTests.Rejects_empty", "Assert failed"),),
            ),
            TestResult.not_run(ProjectKind.ANGULAR, "not requested"),
        ]
        report = _report(builds=builds, tests=tests, verdict=Verdict.FAILED)

        markdown = ReportFormatter().format_report(report)
        text = ReportFormatter().format_text(report)

        for output in (markdown, text):
            assert "PASSED" in output
            assert "FAILED" in output
            assert "SKIPPED (not requested)" in output
            assert "TS2322" in output
            assert "UserTests.Rejects_empty" in output

    def test_degraded_sources_listed(self):
        """Test failed or timed-out analysis tasks are surfaced."""
        from local_review.models.results import TaskOutcome, TaskStatus
        from local_review.output.formatter import ReportFormatter

        outcomes = [
            TaskOutcome("security", TaskStatus.SUCCEEDED),
            TaskOutcome("llm-review", TaskStatus.TIMED_OUT, error="timed out after 120s"),
        ]
        report = _report(outcomes=outcomes)

        markdown = ReportFormatter().format_report(report)

        assert "Degraded" in markdown
        assert "llm-review" in markdown
        assert "`security`" not in markdown


class TestFormatReportAsJson:
    """Tests for the JSON form."""

    def test_json_structure(self, make_finding):
        """Test the JSON form is serializable and complete."""
        from local_review.models.report import Verdict
        from local_review.output.formatter import format_report_as_json

        report = _report(
            findings=[make_finding().with_confidence(90)], verdict=Verdict.NEEDS_ATTENTION
        )

        data = format_report_as_json(report)
        json.dumps(data)

        assert data["verdict"] == "needsAttention"
        assert data["threshold"] == 80
        assert data["findings"][0]["confidence"] == 90
        assert data["findings"][0]["category"] == "security"
        assert [b["label"] for b in data["builds"]] == ["NOT APPLICABLE", "NOT APPLICABLE"]
        assert data["summary"]["findings_by_category"]["security"] == 1
        assert data["created_at"] == "2026-01-02T03:04:05"

    @pytest.mark.parametrize(
        "verdict,label",
        [("PASSED", "passed"), ("NEEDS_ATTENTION", "needsAttention"), ("FAILED", "failed")],
    )
    def test_verdict_values(self, verdict, label):
        """Test every verdict serializes to its wire value."""
        from local_review.models.report import Verdict
        from local_review.output.formatter import format_report_as_json

        report = _report(verdict=Verdict[verdict])

        assert format_report_as_json(report)["verdict"] == label
