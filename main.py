"""
FastAPI Application Entry Point

Integrates:
  - WhatsApp webhook handler
  - Health checks
  - Middleware for logging & error handling

Run: uvicorn main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from webhook.whatsapp import router as whatsapp_router
from config import Config

# Setup logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: startup and shutdown handlers.
    """
    # Startup
    logger.info("=" * 60)
    logger.info("WhatsApp relay starting up...")
    logger.info(f"Environment: {Config.ENVIRONMENT}")
    logger.info(f"LLM Backend: {Config.LLM_BACKEND}")
    logger.info(f"Messaging Backend: {Config.MESSAGING_BACKEND}")
    if not Config.validate():
        logger.warning("Configuration incomplete; replies will fail until it is fixed")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("WhatsApp relay shutting down...")


# Create FastAPI app
app = FastAPI(
    title="WhatsApp Relay API",
    description="Answers WhatsApp messages with an LLM",
    version="1.0.0",
    lifespan=lifespan,
)


# Middleware for logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    logger.debug(f"{request.method} {request.url.path}")
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"Request error: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )


# Include routers
app.include_router(whatsapp_router)


# Health check endpoints
@app.get("/health/live")
async def health_live():
    """Live health check (Kubernetes liveness probe)."""
    return {"status": "alive"}


@app.get("/health/ready")
async def health_ready():
    """Readiness health check (Kubernetes readiness probe)."""
    missing = Config.missing_keys()
    if missing:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "missing": missing},
        )
    return {"status": "ready"}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "WhatsApp Relay API",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "whatsapp_webhook": "POST /webhook/whatsapp",
            "whatsapp_health": "GET /webhook/whatsapp/health",
            "health_live": "GET /health/live",
            "health_ready": "GET /health/ready",
        },
    }


@app.get("/config/info")
async def config_info():
    """Get non-sensitive configuration info."""
    return {
        "environment": Config.ENVIRONMENT,
        "llm_backend": Config.LLM_BACKEND,
        "messaging_backend": Config.MESSAGING_BACKEND,
        "twilio_sender": Config.TWILIO_PHONE_NUMBER or None,
        "agent_port": Config.AGENT_PORT,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=Config.AGENT_PORT,
        reload=Config.ENVIRONMENT == "development",
    )
