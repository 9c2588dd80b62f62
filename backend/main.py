"""
Interview Call API

Main FastAPI application entry point.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from core import settings
from core.http_client import close_http_client
from core.rate_limit import limiter
from core.redis_client import close_redis_client
from api import interview_router, traces_router
from services.controller import close_all_views, list_views, sweep_idle_views
from services.weave_tracing import load_traces_from_redis

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events.
    Handles startup and shutdown.
    """
    # Startup
    logger.info("Starting Interview Call API...")
    logger.info(f"Demo mode: {settings.demo_mode}")
    logger.info(f"Call service: {settings.call_service_url}")
    logger.info(f"Interview API: {settings.interview_api_url}")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(f"Calling notice: {settings.calling_notice_seconds}s")

    if settings.wandb_api_key:
        try:
            import weave
            weave.init(settings.weave_project)
            logger.info(f"W&B Weave initialized: {settings.weave_project}")
        except Exception as e:
            logger.warning(f"Failed to initialize Weave: {e}")
    else:
        logger.info("W&B Weave not configured (WANDB_API_KEY not set)")

    await load_traces_from_redis()

    sweeper = asyncio.create_task(sweep_idle_views())

    yield

    # Shutdown
    logger.info("Shutting down Interview Call API...")
    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass
    await close_all_views()
    await close_http_client()
    await close_redis_client()


app = FastAPI(
    title="Interview Call API",
    description="Choose an immediate AI interview or request a phone callback from the AI interviewer",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(interview_router, prefix="/api/interview", tags=["interview"])
app.include_router(traces_router, prefix="/api", tags=["traces"])


@app.get("/")
async def root():
    """Root endpoint - API info."""
    return {
        "name": "Interview Call API",
        "description": "AI interview scheduling: immediate start or phone callback",
        "version": "1.0.0",
        "demo_mode": settings.demo_mode,
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "open_views": len(list_views())}


@app.get("/debug/config")
async def debug_config():
    """Debug endpoint - show current configuration (no secrets)."""
    return {
        "demo_mode": settings.demo_mode,
        "call_service_url": settings.call_service_url,
        "call_service_authenticated": bool(settings.call_service_api_key),
        "interview_api_url": settings.interview_api_url,
        "calling_notice_seconds": settings.calling_notice_seconds,
        "default_user_id": settings.default_user_id,
        "assistant": {
            "name": settings.assistant_name,
            "voice": f"{settings.assistant_voice_provider}/{settings.assistant_voice_id}",
            "model": f"{settings.assistant_model_provider}/{settings.assistant_model}",
        },
        "redis_url": settings.redis_url.split("@")[-1] if "@" in settings.redis_url else settings.redis_url,
    }


@app.get("/api")
async def api_root():
    """API root - list available endpoints."""
    return {
        "endpoints": {
            "POST /api/interview/{interview_id}/views": "Open the interview page (modality choice)",
            "GET /api/interview/views/{view_id}": "Get the current view",
            "POST /api/interview/views/{view_id}/select": "Choose immediate interview or phone callback",
            "POST /api/interview/views/{view_id}/back": "Return to the modality choice",
            "POST /api/interview/views/{view_id}/submit": "Request a phone call",
            "DELETE /api/interview/views/{view_id}": "Close the view",
            "GET /api/interview/views/{view_id}/stream": "Stream view updates (SSE)",
            "GET /api/traces": "Traces dashboard (performance, improvement, recent)",
            "GET /api/traces/performance": "Aggregate performance metrics",
            "GET /api/traces/improvement": "Call acceptance over time",
            "GET /api/traces/recent": "Recent traces (filterable by operation)",
            "GET /api/traces/calls": "Call-request traces and insights",
        },
        "documentation": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
