"""Review orchestration: dispatch, scoring, aggregation and the pipeline."""

from local_review.orchestrator.aggregator import Aggregator, AggregatorConfig
from local_review.orchestrator.dispatcher import AnalysisDispatcher, DispatchResult
from local_review.orchestrator.pipeline import ReviewPipeline
from local_review.orchestrator.scorer import ConfidenceScorer, score_finding

__all__ = [
    "Aggregator",
    "AggregatorConfig",
    "AnalysisDispatcher",
    "ConfidenceScorer",
    "DispatchResult",
    "ReviewPipeline",
    "score_finding",
]
