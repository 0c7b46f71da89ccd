"""
Main FastAPI application
Lesson progress, daily quiz and reward backend for the DoughJo app
"""
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time

from app.config import settings
from app.database import engine, init_db
from app.api import daily_quiz, lessons, users
from app.exceptions import DoughJoError
from app.utils.cache import cache_service
from app.utils.rate_limiter import rate_limiter

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Paths served without counting against a client's request budget
UNLIMITED_PATHS = {"/", "/health", "/docs", "/redoc", "/openapi.json"}

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Lessons, daily quizzes, dough coins and streaks for personal-finance training",
    docs_url="/docs",
    redoc_url="/redoc"
)

# The mobile client calls from Expo dev servers and the web build
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Per-user (or per-IP) request budget"""

    if request.url.path in UNLIMITED_PATHS:
        return await call_next(request)

    try:
        await rate_limiter.check_rate_limit(request)
    except HTTPException as e:
        return JSONResponse(status_code=e.status_code, content=e.detail)

    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, user and timing of every request"""

    started = time.time()
    response = await call_next(request)
    elapsed = time.time() - started

    user_id = request.query_params.get("user_id", "-")
    logger.info(
        f"{request.method} {request.url.path} user={user_id} - "
        f"Status: {response.status_code} - "
        f"Duration: {elapsed:.3f}s"
    )

    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything not mapped to a domain error is a 500"""

    logger.error(f"Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "detail": str(exc) if settings.DEBUG else None
        }
    )


@app.exception_handler(DoughJoError)
async def domain_exception_handler(request: Request, exc: DoughJoError):
    """Render per-request domain failures with their own status and code"""

    if exc.status_code >= 500:
        logger.error(f"{exc.error} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error,
            "message": exc.message,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Same error body as domain errors; a dict detail keeps its own code"""

    error, message = "http_error", exc.detail
    if isinstance(exc.detail, dict):
        error = exc.detail.get("error", error)
        message = exc.detail.get("message", message)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": error,
            "message": message,
            "status_code": exc.status_code
        }
    )


@app.get("/health")
async def health_check():
    """
    Health check for monitoring

    Reports the store backend, whether the Redis cache is in use and the
    timezone that decides when the daily quiz resets.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "store": engine.url.get_backend_name(),
        "cache": "enabled" if cache_service.redis_client else "disabled",
        "timezone": settings.APP_TIMEZONE,
        "timestamp": time.time()
    }


@app.get("/")
async def root():
    return {
        "message": "DoughJo Progress API",
        "version": settings.APP_VERSION,
        "endpoints": ["/api/daily-quiz", "/api/lessons", "/api/users"],
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(daily_quiz.router)
app.include_router(lessons.router)
app.include_router(users.router)


@app.on_event("startup")
async def startup_event():
    """Create missing tables before serving"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} (days roll over in {settings.APP_TIMEZONE})")

    try:
        init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Release pooled store connections and the cache client"""
    logger.info("Shutting down application")

    engine.dispose()
    if cache_service.redis_client:
        cache_service.redis_client.close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
