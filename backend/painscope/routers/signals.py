"""
Signals Router

Scores fragments and summarizes batches:

- POST /signals/score    one fragment -> PainSignal
- POST /signals/analyze  batch -> signals, summary, verdict
- GET  /signals/health
"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..exceptions import PainscopeError
from ..schemas.analysis_schema import AnalysisResult, AnalyzeRequest
from ..schemas.fragment_schema import RawFragment
from ..schemas.signal_schema import PainSignal
from ..services.pipeline import PainAnalysisPipeline

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/signals",
    tags=["Signals"],
    responses={
        500: {"description": "Internal error while scoring"}
    }
)


def get_pipeline(request: Request) -> PainAnalysisPipeline:
    """Pipeline built at start-up; a lexical-only one when the app started without lifespan."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        pipeline = PainAnalysisPipeline()
        request.app.state.pipeline = pipeline
    return pipeline


@router.post(
    "/score",
    response_model=PainSignal,
    status_code=status.HTTP_200_OK,
    summary="Score One Fragment",
    response_description="Pain signal with score, intensity, tags and WTP classification",
)
def score_fragment(
    fragment: RawFragment,
    pipeline: PainAnalysisPipeline = Depends(get_pipeline),
) -> PainSignal:
    try:
        return pipeline.detector.score_fragment(fragment)
    except PainscopeError as e:
        logger.error("[SIGNALS] score failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Scoring failed: {str(e)}"
        )


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    status_code=status.HTTP_200_OK,
    summary="Analyze a Batch of Fragments",
    response_description="Scored signals, corpus summary and overall verdict",
)
async def analyze_fragments(
    request: AnalyzeRequest,
    pipeline: PainAnalysisPipeline = Depends(get_pipeline),
) -> AnalysisResult:
    start_time = time.perf_counter()
    try:
        result = await pipeline.run(
            request.fragments,
            now=request.now,
            classify=request.classify,
            include_empty=request.include_empty,
        )
    except PainscopeError as e:
        duration = (time.perf_counter() - start_time) * 1000
        logger.error("[SIGNALS] analyze failed after %.0fms: %s", duration, str(e)[:100])
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Analysis failed: {str(e)}"
        )

    duration = (time.perf_counter() - start_time) * 1000
    logger.info("[SIGNALS] analyzed %d fragments in %.0fms", len(request.fragments), duration)
    return result


@router.get(
    "/health",
    summary="Signals Service Health",
)
async def signals_health(pipeline: PainAnalysisPipeline = Depends(get_pipeline)):
    return {
        "status": "healthy",
        "service": "signals",
        "lexicon_version": pipeline.lexicon.version,
        "semantic_classification": pipeline.can_classify,
    }
