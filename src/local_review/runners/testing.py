"""Test stage: run test projects and parse their results."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from local_review.models.context import ProjectContext, ProjectKind
from local_review.models.results import (
    NOT_APPLICABLE,
    StageStatus,
    TestFailureDetail,
    TestResult,
)
from local_review.runners.build import summarize_errors
from local_review.runners.process import CommandRunner, ProcessResult, run_command

logger = logging.getLogger(__name__)

NOT_REQUESTED = "not requested"
NO_TEST_TARGETS = "no test projects"

# "Failed!  - Failed:     2, Passed:    40, Skipped:     1, Total:    43, Duration: 1 s"
_VSTEST_SUMMARY = re.compile(
    r"(?:Passed|Failed)!\s*-\s*Failed:\s*(?P<failed>\d+),\s*Passed:\s*(?P<passed>\d+),"
    r"\s*Skipped:\s*(?P<skipped>\d+),\s*Total:\s*(?P<total>\d+)"
)
# "Test summary: total: 43, failed: 2, succeeded: 40, skipped: 1, duration: 1.2s"
_DOTNET_TERMINAL_SUMMARY = re.compile(
    r"Test summary:\s*total:\s*(?P<total>\d+),\s*failed:\s*(?P<failed>\d+),"
    r"\s*succeeded:\s*(?P<passed>\d+),\s*skipped:\s*(?P<skipped>\d+)",
    re.IGNORECASE,
)
_VSTEST_FAILED = re.compile(r"^\s*Failed (?P<name>\S.*?)(?: \[[^\]]*\])?\s*$")

# "Executed 12 of 13 (2 FAILED) (skipped 1) (0.5 secs / 0.4 secs)"
_KARMA_EXECUTED = re.compile(
    r"Executed (?P<executed>\d+) of (?P<total>\d+)"
    r"(?: \((?P<failed>\d+) FAILED\))?(?: \(skipped (?P<skipped>\d+)\))?"
)
_KARMA_FAILED = re.compile(r"^\S.*?\([^)]*\)\s+(?P<name>.+?) FAILED\s*$")

# "Tests:       1 failed, 1 skipped, 10 passed, 12 total"
_JEST_SUMMARY = re.compile(r"^Tests:\s+(?P<body>.*\d+ total)", re.MULTILINE)
_JEST_FAILED = re.compile(r"^\s*●\s+(?P<name>.+?)\s*$")


@dataclass
class ParsedTests:
    """Counts and failures recovered from a test tool's output."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    failures: list[TestFailureDetail] = field(default_factory=list)
    found: bool = False

    __test__ = False

    def merge(self, other: "ParsedTests") -> None:
        self.total += other.total
        self.passed += other.passed
        self.failed += other.failed
        self.skipped += other.skipped
        self.failures.extend(other.failures)
        self.found = self.found or other.found


def _message_after(lines: list[str], start: int, stop_markers: tuple[str, ...]) -> str:
    """Collect the message block that follows line ``start``."""
    collected = []
    for line in lines[start + 1 :]:
        stripped = line.strip()
        if stripped.startswith(stop_markers) or (not stripped and collected):
            break
        if stripped and stripped != "Error Message:":
            collected.append(stripped)
        if len(collected) >= 5:
            break
    return " ".join(collected)


def parse_dotnet_test_output(output: str) -> ParsedTests:
    """Parse ``dotnet test`` console output (VSTest or terminal logger)."""
    parsed = ParsedTests()
    for match in list(_VSTEST_SUMMARY.finditer(output)) or list(
        _DOTNET_TERMINAL_SUMMARY.finditer(output)
    ):
        parsed.total += int(match.group("total"))
        parsed.passed += int(match.group("passed"))
        parsed.failed += int(match.group("failed"))
        parsed.skipped += int(match.group("skipped"))
        parsed.found = True

    lines = output.splitlines()
    for index, line in enumerate(lines):
        match = _VSTEST_FAILED.match(line)
        if match is None or "!" in line:
            continue
        message = _message_after(lines, index, ("Stack Trace:", "Failed ", "Passed ", "Skipped "))
        parsed.failures.append(TestFailureDetail(name=match.group("name"), message=message))
    return parsed


def parse_karma_output(output: str) -> ParsedTests:
    """Parse Karma progress output; the last ``Executed`` line is final."""
    parsed = ParsedTests()
    matches = list(_KARMA_EXECUTED.finditer(output))
    if matches:
        last = matches[-1]
        executed = int(last.group("executed"))
        parsed.total = int(last.group("total"))
        parsed.failed = int(last.group("failed") or 0)
        parsed.skipped = int(last.group("skipped") or 0)
        parsed.passed = executed - parsed.failed
        parsed.found = True

    lines = output.splitlines()
    seen = set()
    for index, line in enumerate(lines):
        match = _KARMA_FAILED.match(line)
        if match is None or line.startswith(("Executed", "TOTAL")):
            continue
        name = match.group("name")
        if name in seen:
            continue
        seen.add(name)
        message = _message_after(lines, index, ("at ",))
        parsed.failures.append(TestFailureDetail(name=name, message=message))
    return parsed


def parse_jest_output(output: str) -> ParsedTests:
    """Parse the Jest ``Tests:`` summary line."""
    parsed = ParsedTests()
    match = _JEST_SUMMARY.search(output)
    if match is None:
        return parsed
    counts = dict(
        (label, int(number))
        for number, label in re.findall(r"(\d+) (failed|skipped|passed|total|todo)", match.group("body"))
    )
    parsed.total = counts.get("total", 0)
    parsed.failed = counts.get("failed", 0)
    parsed.passed = counts.get("passed", 0)
    parsed.skipped = counts.get("skipped", 0) + counts.get("todo", 0)
    parsed.found = True

    lines = output.splitlines()
    for index, line in enumerate(lines):
        failed = _JEST_FAILED.match(line)
        if failed is not None:
            message = _message_after(lines, index, ("at ", "●"))
            parsed.failures.append(TestFailureDetail(name=failed.group("name"), message=message))
    return parsed


def parse_angular_test_output(output: str) -> ParsedTests:
    """Karma first, then Jest."""
    parsed = parse_karma_output(output)
    if parsed.found:
        return parsed
    return parse_jest_output(output)


class TestRunner:
    """Runs the tests of a project kind and maps the output to a TestResult."""

    __test__ = False

    def __init__(
        self,
        dotnet_command: list[str] | None = None,
        angular_command: list[str] | None = None,
        timeout_seconds: float = 900,
        runner: CommandRunner = run_command,
    ) -> None:
        self.dotnet_command = dotnet_command or ["dotnet", "test", "--nologo"]
        self.angular_command = angular_command or [
            "npx",
            "ng",
            "test",
            "--watch=false",
            "--browsers=ChromeHeadless",
        ]
        self.timeout_seconds = timeout_seconds
        self._run = runner

    async def run(
        self,
        kind: ProjectKind,
        context: ProjectContext,
        requested: bool,
        build_passed: bool = False,
    ) -> TestResult:
        """Run tests for ``kind`` if requested and test targets exist.

        Args:
            kind: Project kind to test
            context: Detected project context
            requested: Whether the caller asked for tests at all
            build_passed: Skip the rebuild when the build stage already passed
        """
        if kind not in context.kinds:
            return TestResult.not_run(kind, NOT_APPLICABLE)
        if not requested:
            return TestResult.not_run(kind, NOT_REQUESTED)
        targets = context.test_targets_for(kind)
        if not targets:
            return TestResult.not_run(kind, NO_TEST_TARGETS)

        logger.info(f"Running {kind.value} tests ({len(targets)} target(s))")
        parsed = ParsedTests()
        errors: list[str] = []
        duration = 0
        for command, cwd in self._invocations(kind, targets, build_passed):
            result = await self._run(command, cwd, self.timeout_seconds)
            duration += result.duration_ms
            target_parsed = self._parse(kind, result)
            parsed.merge(target_parsed)
            error = self._tool_error(kind, result, target_parsed)
            if error:
                errors.append(error)

        status = StageStatus.FAILED if parsed.failed or errors else StageStatus.PASSED
        logger.info(
            f"{kind.value} tests {status.value}: {parsed.passed} passed, "
            f"{parsed.failed} failed, {parsed.skipped} skipped"
        )
        return TestResult(
            target=kind,
            status=status,
            total=parsed.total,
            passed=parsed.passed,
            failed=parsed.failed,
            skipped=parsed.skipped,
            failures=tuple(parsed.failures),
            duration_ms=duration,
            error_summary="\n".join(errors) or None,
        )

    def _invocations(
        self, kind: ProjectKind, targets: list[Path], build_passed: bool
    ) -> list[tuple[list[str], Path]]:
        if kind == ProjectKind.DOTNET:
            no_build = ["--no-build"] if build_passed else []
            return [([*self.dotnet_command, str(t), *no_build], t.parent) for t in targets]
        return [(list(self.angular_command), t.parent) for t in targets]

    def _parse(self, kind: ProjectKind, result: ProcessResult) -> ParsedTests:
        if kind == ProjectKind.DOTNET:
            return parse_dotnet_test_output(result.output)
        return parse_angular_test_output(result.output)

    def _tool_error(
        self, kind: ProjectKind, result: ProcessResult, parsed: ParsedTests
    ) -> str | None:
        """Explain a run that failed without reporting failing tests."""
        if result.not_found or result.timed_out:
            return f"{result.command_line}: {result.stderr}"
        if not result.ok and not parsed.failed:
            return summarize_errors(result.output, kind)
        return None
