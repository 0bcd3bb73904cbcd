"""
Main FastAPI application for the Bet Settlement API.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.orm import Session

from betsettle.core.config import settings
from betsettle.core.circuit_breaker import get_breaker_state
from betsettle.core.database import get_db, init_db
from betsettle.core.logging import configure_logging, get_logger
from betsettle.core.middleware import CorrelationIdMiddleware
from betsettle.repositories import GameRepository
from betsettle.services.settlement import InputError
from betsettle.api.routes import settlement

# Load environment variables from .env file
from dotenv import load_dotenv
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan events."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    init_db()
    logger.info("Application started")

    yield

    logger.info("Shutting down application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Resolve bet slips to games, grade bets against final scores and track results",
    lifespan=lifespan
)

app.add_middleware(CorrelationIdMiddleware)

# Initialize Prometheus metrics BEFORE including routes
instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
logger.info("Prometheus metrics initialized at /metrics")

app.include_router(settlement.router)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "endpoints": {
            "resolve": "/api/games/resolve",
            "search": "/api/games/search",
            "bets": "/api/bets",
            "summary": "/api/bets/summary",
            "import": "/api/bets/import",
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics"
        }
    }


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Health check with database and game lookup status."""
    breaker_state = get_breaker_state()
    healthy = breaker_state != "open"

    try:
        database = {"status": "connected", "game_count": GameRepository(db).count()}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        database = {"status": "error", "error": str(e)}
        healthy = False

    return {
        "status": "healthy" if healthy else "degraded",
        "version": settings.APP_VERSION,
        "components": {
            "database": database,
            "game_lookup": {"circuit": breaker_state}
        }
    }


# Exception handlers
@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError):
    """Rejected bet input."""
    logger.info(f"Rejected input on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "field": exc.field}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "betsettle.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
