"""Local change review: analyze, build and test uncommitted work in one pass."""

__version__ = "0.1.0"
