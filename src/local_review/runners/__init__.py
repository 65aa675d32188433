"""Build and test stage runners."""

from local_review.runners.build import BuildRunner, summarize_errors
from local_review.runners.process import ProcessResult, run_command
from local_review.runners.testing import TestRunner

__all__ = ["BuildRunner", "ProcessResult", "TestRunner", "run_command", "summarize_errors"]
