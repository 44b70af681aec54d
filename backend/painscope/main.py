import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .lexicon import get_lexicon
from .routers.signals import router as signals_router
from .services.pain_detector import PainDetector
from .services.pipeline import PainAnalysisPipeline
from .services.semantic_classifier import SemanticClassifier
from .settings import get_settings


# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger("painscope")


def build_pipeline() -> PainAnalysisPipeline:
    """Pipeline for the configured lexicon; semantic classification only with an API key."""
    settings = get_settings()
    lexicon = get_lexicon(settings.lexicon_path)
    classifier = None
    if settings.embeddings_enabled:
        classifier = SemanticClassifier.from_settings(settings, lexicon)
    return PainAnalysisPipeline(detector=PainDetector(lexicon), classifier=classifier)


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Startup
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    app.state.pipeline = build_pipeline()
    logger.info("Starting painscope %s", __version__)
    logger.info("   Lexicon:     v%s", app.state.pipeline.lexicon.version)
    logger.info(
        "   OpenAI Key:  %s",
        "Configured" if settings.embeddings_enabled else "Not set (semantic classification off)",
    )

    yield

    if app.state.pipeline.classifier is not None:
        await app.state.pipeline.classifier.aclose()
    logger.info("Shutting down painscope")


app = FastAPI(
    title="painscope",
    description="Pain-signal scoring and corpus confidence for user feedback",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(signals_router)


@app.get(
    "/",
    summary="API Root",
    description="Welcome endpoint with API information",
    tags=["General"]
)
async def root():
    """Root endpoint with API information."""
    return {
        "name": "painscope",
        "version": __version__,
        "description": "Pain-signal scoring for reviews, posts and comments",
        "docs": "/docs",
        "endpoints": {
            "score": "POST /signals/score - Score one fragment",
            "analyze": "POST /signals/analyze - Score and summarize a batch",
            "health": "GET /signals/health - Service health check"
        }
    }


@app.get(
    "/health",
    summary="Global Health Check",
    description="Check if the API server is running",
    tags=["General"]
)
async def health():
    """Global health check endpoint."""
    return {
        "status": "healthy",
        "service": "painscope",
        "version": __version__
    }


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": str(exc) if get_settings().debug else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "painscope.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=get_settings().debug,
    )
