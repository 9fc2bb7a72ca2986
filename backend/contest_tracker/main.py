"""
Main FastAPI application
Entry point for the Contest Tracker API
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from contextlib import asynccontextmanager
import logging

from contest_tracker.core.config import settings
from contest_tracker.core.security import limiter, get_security_headers
from contest_tracker.core.database import init_db, close_db
from contest_tracker.core.redis import init_redis, get_redis_client, close_redis
from contest_tracker.core.scheduler import JobScheduler
from contest_tracker.models.contest import Platform
from contest_tracker.services.contest_cache import clear_cache
from contest_tracker.services.jobs import run_contest_refresh, run_solution_sync

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# GLOBAL STATE (scheduler only; Redis is in core.redis, the DB in core.database)
# ============================================================================

scheduler: JobScheduler | None = None


def build_scheduler() -> JobScheduler:
    jobs = JobScheduler()
    jobs.add_job("contest_refresh", run_contest_refresh, settings.REFRESH_INTERVAL_SECONDS)
    jobs.add_job("solution_sync", run_solution_sync, settings.REFRESH_INTERVAL_SECONDS)
    return jobs

# ============================================================================
# LIFESPAN CONTEXT MANAGER
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    global scheduler

    logger.info("Starting Contest Tracker API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # Redis is optional; without it the upcoming list is served from the database
    try:
        await init_redis(settings.REDIS_URL)
        logger.info("Redis connected")
        await clear_cache()
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")

    await init_db(settings.DATABASE_URL)
    logger.info("Database ready")

    if settings.SCHEDULER_ENABLED:
        scheduler = build_scheduler()
        await scheduler.start()
    else:
        logger.info("Background jobs disabled")

    logger.info("Application startup complete")

    yield  # Application runs here

    # ==================== SHUTDOWN ====================
    logger.info("Shutting down Contest Tracker API")

    if scheduler:
        await scheduler.stop()
        scheduler = None

    await close_redis()
    logger.info("Redis connection closed")

    await close_db()
    logger.info("Database connections closed")

    logger.info("Shutdown complete")

# ============================================================================
# CREATE FASTAPI APP
# ============================================================================

app = FastAPI(
    title="Contest Tracker API",
    description="Upcoming and past programming contests with video solutions",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter

# ============================================================================
# MIDDLEWARE
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "PUT", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for key, value in get_security_headers().items():
        response.headers[key] = value
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "detail": "Rate limit exceeded. Please try again later.",
        }
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "detail": "Internal server error"}
    )

# ============================================================================
# ROOT ENDPOINTS
# ============================================================================

def _running_jobs() -> list[str]:
    if scheduler is None or not scheduler.running:
        return []
    return sorted(scheduler.jobs)


@app.get("/")
async def root():
    return {
        "message": "Contest Tracker API",
        "platforms": [p.value for p in Platform],
        "jobs": _running_jobs(),
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "services": {
            "redis": "up" if get_redis_client() else "down",
            "scheduler": "up" if _running_jobs() else "down"
        }
    }

# ============================================================================
# API ROUTES
# ============================================================================

from contest_tracker.api import contests, solutions

app.include_router(contests.router, prefix="/api/contests", tags=["Contests"])
app.include_router(solutions.router, prefix="/api/solutions", tags=["Solutions"])
