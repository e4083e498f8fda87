"""
PromptHub Search Microservice
Main FastAPI application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import sys

from . import __version__
from .config import get_settings
from .router.search import router as search_router
from .services.search_engine import SearchEngine
from .utils.supabase_client import SupabasePromptStorage

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="PromptHub Search",
    description="Intent-aware multi-strategy search over a prompt library",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(search_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "PromptHub Search",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "prompthub-search",
        "version": __version__
    }


@app.on_event("startup")
async def startup_event():
    """Build the search engine and start cache maintenance"""
    logger.info("PromptHub Search starting up...")
    logger.info(f"Environment: {'DEBUG' if settings.debug else 'PRODUCTION'}")
    logger.info(f"Supabase URL: {settings.supabase_url}")

    if getattr(app.state, "search_engine", None) is None:
        app.state.search_engine = SearchEngine(SupabasePromptStorage(), settings=settings)
    await app.state.search_engine.start()

    logger.info(
        f"Defaults: algorithm={settings.default_algorithm}, "
        f"min_confidence={settings.default_min_confidence}, cache_ttl={settings.cache_ttl_seconds}s"
    )
    logger.info("Startup complete!")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop cache maintenance"""
    logger.info("PromptHub Search shutting down...")
    engine = getattr(app.state, "search_engine", None)
    if engine is not None:
        await engine.stop()


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error": str(exc) if settings.debug else "An error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "prompthub_search.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level
    )
