"""Project detection for local-review."""

from local_review.detection.detector import ProjectDetector

__all__ = ["ProjectDetector"]
