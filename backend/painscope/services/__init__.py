from .pain_detector import PainDetector, ScoreResult, combine_pain_signals
from .semantic_classifier import PraiseFilter, SemanticClassifier, SignalCategorizer
from .embedding_client import EmbeddingClient, EmbeddingResult, OpenAIEmbeddingClient
from .corpus_aggregator import build_summary, pain_verdict
from .pipeline import PainAnalysisPipeline

__all__ = [
    "PainDetector",
    "ScoreResult",
    "combine_pain_signals",
    "PraiseFilter",
    "SignalCategorizer",
    "SemanticClassifier",
    "EmbeddingClient",
    "EmbeddingResult",
    "OpenAIEmbeddingClient",
    "build_summary",
    "pain_verdict",
    "PainAnalysisPipeline",
]
