"""Version-control access for local-review."""

from local_review.vcs.extractor import ChangeSetExtractor, parse_diff

__all__ = ["ChangeSetExtractor", "parse_diff"]
