from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import time

from ....api.deps import get_current_active_superuser
from ....core.cache import cache
from ....core.database import get_async_db
from ....models.test import SubmissionJob
from ....models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_basic_health():
    """Basic liveness check, no authentication required."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "service": "aguka-api"
    }


@router.get("/system-health")
async def get_system_health(
    current_user: User = Depends(get_current_active_superuser),
    db: AsyncSession = Depends(get_async_db)
):
    health_status = {
        "timestamp": time.time(),
        "overall_status": "healthy",
        "services": {},
        "alerts": []
    }

    start_time = time.time()
    cache_ok = await cache.ahealth_check()
    health_status["services"]["cache"] = {
        "status": "healthy" if cache_ok else "unavailable",
        "response_time": round((time.time() - start_time) * 1000, 2),
    }
    if not cache_ok:
        health_status["alerts"].append("Redis is unreachable, AI analyses are not cached")

    try:
        start_time = time.time()
        await db.execute(text("SELECT 1"))
        health_status["services"]["database"] = {
            "status": "healthy",
            "response_time": round((time.time() - start_time) * 1000, 2)
        }
        pending = await db.execute(select(func.count(SubmissionJob.id)).filter(SubmissionJob.synced_at.is_(None)))
        pending_count = pending.scalar() or 0
        health_status["services"]["submissions"] = {"pending": pending_count}
        if pending_count:
            health_status["alerts"].append(f"{pending_count} test submissions are waiting to be synced")
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["services"]["database"] = {"status": "error", "error": str(e)}
        health_status["overall_status"] = "unhealthy"

    try:
        from ....core.celery_app import celery_app

        inspect = celery_app.control.inspect(timeout=0.5)
        active_workers = inspect.active() or {}
        health_status["services"]["celery"] = {
            "status": "healthy" if active_workers else "no_workers",
            "active_workers": len(active_workers),
        }
    except Exception as e:
        logger.warning(f"Celery inspection failed: {e}")
        health_status["services"]["celery"] = {"status": "unavailable"}

    if health_status["alerts"] and health_status["overall_status"] == "healthy":
        health_status["overall_status"] = "degraded"

    return health_status
