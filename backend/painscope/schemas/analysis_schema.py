"""Request / response models for the signals API and the analysis pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .fragment_schema import RawFragment
from .signal_schema import OUTPUT_MODEL_CONFIG, PainSignal
from .summary_schema import PainVerdict, Summary


class AnalyzeRequest(BaseModel):
    """Batch of fragments to score and summarize."""

    model_config = OUTPUT_MODEL_CONFIG

    fragments: List[RawFragment] = Field(
        ...,
        max_length=5000,
        description="Fragments to score; order is irrelevant",
    )
    classify: bool = Field(
        False,
        description="Run the embedding praise filter and categorizer when configured",
    )
    include_empty: bool = Field(
        True,
        description="Keep fragments that matched no keyword",
    )
    now: Optional[datetime] = Field(
        None,
        description="Reference time for recency; defaults to the server clock",
    )


class AnalysisResult(BaseModel):
    """Signals, corpus summary and verdict for one batch."""

    model_config = OUTPUT_MODEL_CONFIG

    success: bool = True
    signals: List[PainSignal] = Field(default_factory=list)
    summary: Summary
    verdict: PainVerdict
    semantic_classification_applied: bool = False
    praise_removed: int = Field(0, ge=0)
    lexicon_version: int
    processing_errors: List[str] = Field(default_factory=list)
