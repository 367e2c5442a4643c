import logging
import time
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from mathtutor.config import APP_VERSION, ENVIRONMENT
from mathtutor.database import check_database_connection, get_db
from mathtutor.dependencies.services import get_cache, get_solver
from mathtutor.services.cache_service import CacheService
from mathtutor.services.solver import OpenAIBackend, Solver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

STARTED_AT = time.time()


@router.get("")
def health_check():
    """Liveness probe."""
    return {
        "success": True,
        "data": {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "uptime_seconds": round(time.time() - STARTED_AT, 1),
        },
    }


@router.get("/detailed")
def detailed_health_check(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    solver: Solver = Depends(get_solver),
):
    """
    Database, cache and AI backend status.

    Returns 503 unless the database answers, Redis is connected and a cloud
    AI backend is configured. The in-memory cache and offline solutions keep
    the API usable, so those cases are reported as `degraded`.
    """
    start_time = time.perf_counter()

    db_ok = check_database_connection(db.get_bind())
    cache_ok = cache.connected
    ai_ok = any(
        isinstance(backend, OpenAIBackend) and backend.is_configured()
        for backend in solver.backends
    )
    all_healthy = db_ok and cache_ok and ai_ok

    health = {
        "status": "healthy" if all_healthy else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "response_time_ms": round((time.perf_counter() - start_time) * 1000, 1),
        "uptime_seconds": round(time.time() - STARTED_AT, 1),
        "version": APP_VERSION,
        "environment": ENVIRONMENT,
        "services": {
            "database": {
                "status": "healthy" if db_ok else "unhealthy",
                "connected": db_ok,
            },
            "cache": {
                "status": "healthy" if cache_ok else "degraded",
                "connected": cache_ok,
                "backend": cache.backend,
            },
            "ai": {
                "status": "healthy" if ai_ok else "degraded",
                "initialized": ai_ok,
                "note": "OpenAI connected" if ai_ok else "Using fallback responses",
                "backends": solver.get_status(),
            },
        },
    }

    logger.info(
        f"Detailed health check: {health['status']} "
        f"(db={db_ok}, cache={cache_ok}, ai={ai_ok})"
    )

    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={
            "success": all_healthy,
            "data": health,
            "message": "All services healthy" if all_healthy else "Some services degraded",
        },
    )
