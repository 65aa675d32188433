"""Finding models for review results."""

import hashlib
from dataclasses import dataclass, field, replace
from enum import Enum


class Category(Enum):
    """Categories for review findings."""

    COMPLIANCE = "compliance"
    BUG = "bug"
    SECURITY = "security"
    BEST_PRACTICE = "bestPractice"


def _check_confidence(name: str, value: int) -> None:
    if not 0 <= value <= 100:
        raise ValueError(f"{name} must be between 0 and 100, got {value}")


def finding_id(
    source: str, file_path: str, line_number: int | None, category: Category, title: str
) -> str:
    """Content-derived finding identifier (independent of dispatch order)."""
    key = f"{source}:{file_path}:{line_number or 0}:{category.value}:{title}"
    return f"finding-{hashlib.md5(key.encode()).hexdigest()[:10]}"


@dataclass(frozen=True)
class Finding:
    """A single issue reported by an analysis task.

    ``raw_confidence`` is what the task reported. ``confidence`` is set exactly
    once by the scorer; after that the finding is final.
    """

    title: str
    file_path: str
    line_number: int | None
    category: Category
    detail: str
    suggestion: str
    raw_confidence: int  # 0 - 100
    source: str
    confidence: int | None = None
    stylistic: bool = False  # no policy backs this finding
    id: str = field(default="")

    def __post_init__(self) -> None:
        """Validate finding data."""
        _check_confidence("raw_confidence", self.raw_confidence)
        if self.confidence is not None:
            _check_confidence("confidence", self.confidence)
        if self.line_number is not None and self.line_number < 1:
            raise ValueError(f"line_number must be >= 1, got {self.line_number}")
        if not self.id:
            object.__setattr__(
                self,
                "id",
                finding_id(
                    self.source, self.file_path, self.line_number, self.category, self.title
                ),
            )

    @property
    def is_scored(self) -> bool:
        return self.confidence is not None

    @property
    def score(self) -> int:
        """Effective confidence: the scored value, or the raw one before scoring."""
        return self.confidence if self.confidence is not None else self.raw_confidence

    @property
    def location(self) -> str:
        if self.line_number is None:
            return self.file_path
        return f"{self.file_path}:{self.line_number}"

    @property
    def dedupe_key(self) -> tuple[str, int | None, Category]:
        return (self.file_path, self.line_number, self.category)

    def with_confidence(self, confidence: int) -> "Finding":
        """Return the scored copy of this finding."""
        if self.is_scored:
            raise ValueError(f"Finding {self.id} has already been scored")
        return replace(self, confidence=confidence)

    def with_source(self, source: str) -> "Finding":
        """Re-attribute the finding to ``source`` (recomputes the id)."""
        return replace(self, source=source, id="")
