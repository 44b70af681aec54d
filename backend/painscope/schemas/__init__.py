# Schemas package
from .fragment_schema import RawFragment
from .signal_schema import PainSignal, SourceMetadata
from .summary_schema import DiscussionVelocity, PainVerdict, Summary, TemporalDistribution
from .analysis_schema import AnalysisResult, AnalyzeRequest

__all__ = [
    "RawFragment",
    "PainSignal",
    "SourceMetadata",
    "Summary",
    "TemporalDistribution",
    "DiscussionVelocity",
    "PainVerdict",
    "AnalyzeRequest",
    "AnalysisResult",
]
