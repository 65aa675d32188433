"""Build stage: compile every detected project kind."""

import logging
import re
from pathlib import Path

from local_review.models.context import ProjectContext, ProjectKind
from local_review.models.results import NOT_APPLICABLE, BuildResult, StageStatus
from local_review.runners.process import CommandRunner, ProcessResult, run_command

logger = logging.getLogger(__name__)

MAX_SUMMARY_LINES = 10

_DOTNET_ERROR = re.compile(r"\b(error [A-Z]{2,}\d{3,}|MSBUILD : error)\b")
_ANGULAR_ERROR = re.compile(r"(\[ERROR\]|^\s*ERROR\b|\bError:|error TS\d+:|error NG\d+:)")


def summarize_errors(output: str, kind: ProjectKind, max_lines: int = MAX_SUMMARY_LINES) -> str:
    """First unique error lines of a failed build, or the output tail."""
    pattern = _DOTNET_ERROR if kind == ProjectKind.DOTNET else _ANGULAR_ERROR
    seen: list[str] = []
    for line in output.splitlines():
        stripped = line.strip()
        if stripped and pattern.search(line) and stripped not in seen:
            seen.append(stripped)
            if len(seen) >= max_lines:
                break
    if seen:
        return "\n".join(seen)

    tail = [line for line in output.splitlines() if line.strip()][-max_lines:]
    return "\n".join(tail) or "build failed with no output"


class BuildRunner:
    """Invokes the build tool for a project kind and maps it to a BuildResult."""

    def __init__(
        self,
        dotnet_command: list[str] | None = None,
        angular_command: list[str] | None = None,
        timeout_seconds: float = 600,
        enabled: bool = True,
        runner: CommandRunner = run_command,
    ) -> None:
        self.dotnet_command = dotnet_command or ["dotnet", "build", "--nologo"]
        self.angular_command = angular_command or ["npx", "ng", "build"]
        self.timeout_seconds = timeout_seconds
        self.enabled = enabled
        self._run = runner

    def _invocations(
        self, kind: ProjectKind, context: ProjectContext
    ) -> list[tuple[list[str], Path]]:
        if kind == ProjectKind.DOTNET:
            return [
                ([*self.dotnet_command, str(sln)], sln.parent)
                for sln in sorted(context.solution_paths)
            ]
        return [
            (list(self.angular_command), cfg.parent)
            for cfg in sorted(context.angular_config_paths)
        ]

    async def build(self, kind: ProjectKind, context: ProjectContext) -> BuildResult:
        """Build every descriptor of ``kind``. Failures are data, never raised."""
        invocations = self._invocations(kind, context)
        if not invocations:
            return BuildResult.skipped(kind, NOT_APPLICABLE)
        if not self.enabled:
            return BuildResult.skipped(kind, "disabled")

        logger.info(f"Building {kind.value} ({len(invocations)} target(s))")
        results: list[ProcessResult] = []
        for command, cwd in invocations:
            results.append(await self._run(command, cwd, self.timeout_seconds))

        return self._to_build_result(kind, results)

    def _to_build_result(self, kind: ProjectKind, results: list[ProcessResult]) -> BuildResult:
        duration = sum(r.duration_ms for r in results)
        command = "; ".join(r.command_line for r in results)
        failed = [r for r in results if not r.ok]
        if not failed:
            logger.info(f"{kind.value} build passed in {duration} ms")
            return BuildResult(
                target=kind, status=StageStatus.PASSED, duration_ms=duration, command=command
            )

        summaries = []
        for result in failed:
            if result.not_found or result.timed_out:
                summaries.append(f"{result.command_line}: {result.stderr}")
            else:
                summaries.append(summarize_errors(result.output, kind))
        logger.warning(f"{kind.value} build failed")
        return BuildResult(
            target=kind,
            status=StageStatus.FAILED,
            duration_ms=duration,
            error_summary="\n".join(summaries),
            command=command,
        )
