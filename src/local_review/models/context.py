"""Project context models."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class ProjectKind(Enum):
    """Project kinds the reviewer knows how to build and test."""

    DOTNET = "dotnet"
    ANGULAR = "angular"


@dataclass(frozen=True)
class ProjectContext:
    """What was detected around the review root. Read-only once built."""

    root: Path
    solution_paths: frozenset[Path] = field(default_factory=frozenset)
    angular_config_paths: frozenset[Path] = field(default_factory=frozenset)
    test_project_paths: frozenset[Path] = field(default_factory=frozenset)

    @property
    def has_dotnet(self) -> bool:
        return bool(self.solution_paths)

    @property
    def has_angular(self) -> bool:
        return bool(self.angular_config_paths)

    @property
    def kinds(self) -> list[ProjectKind]:
        """Detected project kinds in a stable order."""
        kinds = []
        if self.has_dotnet:
            kinds.append(ProjectKind.DOTNET)
        if self.has_angular:
            kinds.append(ProjectKind.ANGULAR)
        return kinds

    @property
    def is_empty(self) -> bool:
        return not self.kinds

    @property
    def dotnet_test_projects(self) -> list[Path]:
        return sorted(p for p in self.test_project_paths if p.suffix == ".csproj")

    @property
    def angular_test_configs(self) -> list[Path]:
        return sorted(p for p in self.test_project_paths if p.name == "angular.json")

    def test_targets_for(self, kind: ProjectKind) -> list[Path]:
        """Test targets belonging to ``kind``."""
        if kind == ProjectKind.DOTNET:
            return self.dotnet_test_projects
        return self.angular_test_configs

    def to_summary(self) -> dict[str, object]:
        """Plain summary used by the report renderers."""
        return {
            "root": str(self.root),
            "kinds": [k.value for k in self.kinds],
            "solutions": sorted(str(p) for p in self.solution_paths),
            "angular_configs": sorted(str(p) for p in self.angular_config_paths),
            "test_projects": sorted(str(p) for p in self.test_project_paths),
        }
