"""
Pain Analysis Pipeline

    fragments -> PainDetector -> [SemanticClassifier] -> Corpus Aggregator

The classifier is optional; without one (or with classification turned off)
the pipeline is fully synchronous apart from the ``run`` wrapper, which
moves scoring and aggregation onto the threadpool so the event loop stays free.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from fastapi.concurrency import run_in_threadpool

from ..lexicon import Lexicon
from ..schemas.analysis_schema import AnalysisResult
from ..schemas.summary_schema import PainVerdict, Summary
from ..schemas.fragment_schema import RawFragment
from ..schemas.signal_schema import PainSignal
from ..timing import StepTimer
from .corpus_aggregator import build_summary, pain_verdict
from .pain_detector import PainDetector, default_detector, signal_sort_key
from .semantic_classifier import SemanticClassifier
from .weighting import utc_now

logger = logging.getLogger(__name__)


class PainAnalysisPipeline:
    def __init__(
        self,
        detector: Optional[PainDetector] = None,
        classifier: Optional[SemanticClassifier] = None,
    ):
        self.detector = detector or default_detector()
        self.classifier = classifier

    @property
    def lexicon(self) -> Lexicon:
        return self.detector.lexicon

    @property
    def can_classify(self) -> bool:
        return self.classifier is not None

    def score(
        self,
        fragments: Sequence[RawFragment],
        now: Optional[datetime] = None,
        include_empty: bool = True,
    ) -> List[PainSignal]:
        return self.detector.analyze_fragments(fragments, now=now, include_empty=include_empty)

    def aggregate(self, signals: Sequence[PainSignal], now: datetime) -> Tuple[Summary, PainVerdict]:
        summary = build_summary(signals, now=now, lexicon=self.lexicon)
        return summary, pain_verdict(summary)

    async def run(
        self,
        fragments: Sequence[RawFragment],
        now: Optional[datetime] = None,
        classify: bool = False,
        include_empty: bool = True,
    ) -> AnalysisResult:
        now = now or utc_now()
        timer = StepTimer("analysis")
        errors: List[str] = []

        with timer.step("score"):
            signals = await run_in_threadpool(self.score, fragments, now=now, include_empty=include_empty)

        praise_removed = 0
        applied = False
        if classify and self.classifier is None:
            errors.append("Semantic classification requested but no embedding client is configured")
            logger.warning("[PIPELINE] classify=true without a classifier; skipping")
        elif classify and signals:
            async with timer.async_step("classify"):
                outcome = await self.classifier.classify(signals)
            signals = sorted(outcome.signals, key=signal_sort_key, reverse=True)
            praise_removed = outcome.praise_removed
            applied = True
            if outcome.embedding_failures:
                errors.append(f"Embeddings unavailable for {outcome.embedding_failures} signals; kept unfiltered")

        with timer.step("aggregate"):
            summary, verdict = await run_in_threadpool(self.aggregate, signals, now)

        timer.summary()
        return AnalysisResult(
            signals=signals,
            summary=summary,
            verdict=verdict,
            semantic_classification_applied=applied,
            praise_removed=praise_removed,
            lexicon_version=self.lexicon.version,
            processing_errors=errors,
        )
