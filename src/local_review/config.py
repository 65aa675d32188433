"""Configuration loading and validation for local-review."""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from local_review.errors import ConfigError

DEFAULT_CONFIG_FILES = ("local-review.yaml", ".local-review.yaml")

DEFAULT_TASKS = ["compliance", "bugs", "security", "dotnet-practices", "angular-practices"]


@dataclass
class AnalysisSettings:
    """Analysis dispatch configuration."""

    enabled_tasks: list[str] = field(default_factory=lambda: list(DEFAULT_TASKS))
    task_timeout_seconds: float = 120
    max_parallel_tasks: int = 5


@dataclass
class ScoringSettings:
    """Confidence scoring configuration."""

    max_parallel_scoring: int = 16


@dataclass
class AggregatorSettings:
    """Aggregator configuration."""

    confidence_threshold: int = 80
    max_findings: int | None = None


@dataclass
class DetectionSettings:
    """Project detection configuration."""

    max_ancestor_depth: int = 3
    test_name_patterns: list[str] = field(
        default_factory=lambda: ["*Tests.csproj", "*Test.csproj", "*.Tests.*.csproj"]
    )
    test_dependency_markers: list[str] = field(
        default_factory=lambda: ["xunit", "NUnit", "MSTest.TestFramework", "Microsoft.NET.Test.Sdk"]
    )


@dataclass
class ChangeSettings:
    """Change-set extraction configuration."""

    include_untracked: bool = True
    ignore_patterns: list[str] = field(default_factory=list)


@dataclass
class BuildSettings:
    """Build stage configuration."""

    enabled: bool = True
    timeout_seconds: float = 600
    dotnet_command: list[str] = field(default_factory=lambda: ["dotnet", "build", "--nologo"])
    angular_command: list[str] = field(default_factory=lambda: ["npx", "ng", "build"])


@dataclass
class TestSettings:
    """Test stage configuration."""

    timeout_seconds: float = 900
    dotnet_command: list[str] = field(default_factory=lambda: ["dotnet", "test", "--nologo"])
    angular_command: list[str] = field(
        default_factory=lambda: ["npx", "ng", "test", "--watch=false", "--browsers=ChromeHeadless"]
    )

    __test__ = False


@dataclass
class ComplianceRule:
    """A project policy expressed as a forbidden pattern on added lines."""

    pattern: str
    title: str
    detail: str = ""
    suggestion: str = ""
    confidence: int = 85
    file_glob: str = "*"


@dataclass
class RemoteTaskConfig:
    """An LLM-backed analysis task reached over an OpenAI-compatible API."""

    name: str
    base_url: str
    model: str
    api_key: str = ""
    focus: str = "bug"
    timeout_seconds: float = 120
    max_tokens: int = 4096
    temperature: float = 0.0


@dataclass
class Config:
    """Complete application configuration."""

    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)
    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    aggregator: AggregatorSettings = field(default_factory=AggregatorSettings)
    detection: DetectionSettings = field(default_factory=DetectionSettings)
    changes: ChangeSettings = field(default_factory=ChangeSettings)
    build: BuildSettings = field(default_factory=BuildSettings)
    tests: TestSettings = field(default_factory=TestSettings)
    compliance_rules: list[ComplianceRule] = field(default_factory=list)
    remote_tasks: list[RemoteTaskConfig] = field(default_factory=list)


def load_config(config_path: Path | None = None, root: Path | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Explicit config file. When omitted, ``local-review.yaml``
            then ``.local-review.yaml`` are looked up in ``root`` (default: cwd).

    Returns:
        Loaded configuration (defaults when no file exists)
    """
    if config_path is None:
        base = root or Path.cwd()
        for name in DEFAULT_CONFIG_FILES:
            candidate = base / name
            if candidate.exists():
                config_path = candidate
                break

    raw_config: dict[str, Any] = {}
    if config_path is not None and config_path.exists():
        try:
            with open(config_path) as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(raw_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping at the top level")

    raw_config = _expand_env_vars(raw_config)

    return _parse_config(raw_config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in config."""
    if isinstance(obj, str):
        if obj.startswith("${") and obj.endswith("}"):
            env_var = obj[2:-1]
            return os.environ.get(env_var, "")
        return obj
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _command(value: Any, default: list[str]) -> list[str]:
    if value is None:
        return list(default)
    if isinstance(value, str):
        return value.split()
    return [str(part) for part in value]


def _parse_config(raw: dict[str, Any]) -> Config:
    """Parse raw config dict into Config object."""
    try:
        # Analysis
        analysis_raw = raw.get("analysis", {})
        analysis = AnalysisSettings(
            enabled_tasks=analysis_raw.get("enabled_tasks", list(DEFAULT_TASKS)),
            task_timeout_seconds=float(analysis_raw.get("task_timeout_seconds", 120)),
            max_parallel_tasks=int(analysis_raw.get("max_parallel_tasks", 5)),
        )

        scoring_raw = raw.get("scoring", {})
        scoring = ScoringSettings(
            max_parallel_scoring=int(scoring_raw.get("max_parallel_scoring", 16)),
        )

        agg_raw = raw.get("aggregator", {})
        max_findings = agg_raw.get("max_findings")
        aggregator = AggregatorSettings(
            confidence_threshold=int(agg_raw.get("confidence_threshold", 80)),
            max_findings=int(max_findings) if max_findings is not None else None,
        )

        # Detection
        defaults = DetectionSettings()
        det_raw = raw.get("detection", {})
        detection = DetectionSettings(
            max_ancestor_depth=int(det_raw.get("max_ancestor_depth", 3)),
            test_name_patterns=det_raw.get("test_name_patterns", defaults.test_name_patterns),
            test_dependency_markers=det_raw.get(
                "test_dependency_markers", defaults.test_dependency_markers
            ),
        )

        changes_raw = raw.get("changes", {})
        changes = ChangeSettings(
            include_untracked=bool(changes_raw.get("include_untracked", True)),
            ignore_patterns=changes_raw.get("ignore_patterns", []),
        )

        # Build / test
        build_defaults = BuildSettings()
        build_raw = raw.get("build", {})
        build = BuildSettings(
            enabled=bool(build_raw.get("enabled", True)),
            timeout_seconds=float(build_raw.get("timeout_seconds", 600)),
            dotnet_command=_command(build_raw.get("dotnet_command"), build_defaults.dotnet_command),
            angular_command=_command(
                build_raw.get("angular_command"), build_defaults.angular_command
            ),
        )

        test_defaults = TestSettings()
        tests_raw = raw.get("tests", {})
        tests = TestSettings(
            timeout_seconds=float(tests_raw.get("timeout_seconds", 900)),
            dotnet_command=_command(tests_raw.get("dotnet_command"), test_defaults.dotnet_command),
            angular_command=_command(
                tests_raw.get("angular_command"), test_defaults.angular_command
            ),
        )

        # Compliance rules
        compliance_rules = []
        for rule_raw in raw.get("compliance", {}).get("rules", []):
            compliance_rules.append(
                ComplianceRule(
                    pattern=rule_raw["pattern"],
                    title=rule_raw["title"],
                    detail=rule_raw.get("detail", ""),
                    suggestion=rule_raw.get("suggestion", ""),
                    confidence=int(rule_raw.get("confidence", 85)),
                    file_glob=rule_raw.get("file_glob", "*"),
                )
            )

        # Remote tasks
        remote_tasks = []
        for task_raw in raw.get("remote_tasks", []):
            remote_tasks.append(
                RemoteTaskConfig(
                    name=task_raw["name"],
                    base_url=task_raw["base_url"],
                    model=task_raw["model"],
                    api_key=task_raw.get("api_key") or os.environ.get("LOCAL_REVIEW_API_KEY", ""),
                    focus=task_raw.get("focus", "bug"),
                    timeout_seconds=float(task_raw.get("timeout_seconds", 120)),
                    max_tokens=int(task_raw.get("max_tokens", 4096)),
                    temperature=float(task_raw.get("temperature", 0.0)),
                )
            )
    except KeyError as e:
        raise ConfigError(f"Missing required config field: {e.args[0]}") from e
    except (TypeError, ValueError, AttributeError) as e:
        raise ConfigError(f"Invalid config value: {e}") from e

    return Config(
        analysis=analysis,
        scoring=scoring,
        aggregator=aggregator,
        detection=detection,
        changes=changes,
        build=build,
        tests=tests,
        compliance_rules=compliance_rules,
        remote_tasks=remote_tasks,
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not 0 <= config.aggregator.confidence_threshold <= 100:
        errors.append(
            f"aggregator.confidence_threshold must be in [0, 100], "
            f"got {config.aggregator.confidence_threshold}"
        )

    if config.aggregator.max_findings is not None and config.aggregator.max_findings < 1:
        errors.append("aggregator.max_findings must be positive when set")

    if config.analysis.task_timeout_seconds <= 0:
        errors.append("analysis.task_timeout_seconds must be positive")

    if config.analysis.max_parallel_tasks < 1:
        errors.append("analysis.max_parallel_tasks must be at least 1")

    if config.scoring.max_parallel_scoring < 1:
        errors.append("scoring.max_parallel_scoring must be at least 1")

    if config.detection.max_ancestor_depth < 0:
        errors.append("detection.max_ancestor_depth must not be negative")

    if not config.build.dotnet_command or not config.build.angular_command:
        errors.append("build commands must not be empty")

    if not config.tests.dotnet_command or not config.tests.angular_command:
        errors.append("test commands must not be empty")

    for rule in config.compliance_rules:
        if not 0 <= rule.confidence <= 100:
            errors.append(f"compliance rule '{rule.title}' confidence must be in [0, 100]")
        try:
            re.compile(rule.pattern)
        except re.error as e:
            errors.append(f"compliance rule '{rule.title}' has an invalid pattern: {e}")

    for task in config.remote_tasks:
        if not task.api_key:
            errors.append(
                f"Missing API key for remote task '{task.name}' "
                "(set LOCAL_REVIEW_API_KEY or remote_tasks[].api_key)"
            )

    return errors
