from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session, select
from influencore.api.deps import get_context
from influencore.core.context import AppContext
from influencore.core.db import get_session
from influencore.core.rate_limit import limiter
from influencore.models import Job

router = APIRouter()

@router.get("/")
@limiter.exempt
def health_check():
    """basic liveness check"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "influencore-backend"
    }

@router.get("/ready")
@limiter.exempt
async def readiness_check(session: Session = Depends(get_session), context: AppContext = Depends(get_context)):
    """readiness check - verifies the database and the optional redis relay"""
    checks = {}
    all_healthy = True

    try:
        await run_in_threadpool(session.exec, select(Job).limit(1))
        checks["database"] = {"status": "healthy", "message": "connected"}
    except Exception as e:
        checks["database"] = {"status": "unhealthy", "message": str(e)}
        all_healthy = False

    relay = context.notifier.relay
    if relay is None:
        checks["redis"] = {"status": "warning", "message": "not configured"}
    else:
        try:
            await relay.client.ping()
            checks["redis"] = {"status": "healthy", "message": "connected"}
        except Exception as e:
            checks["redis"] = {"status": "unhealthy", "message": str(e)}
            all_healthy = False

    return {
        "status": "healthy" if all_healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "active_jobs": len(context.runner.active_jobs()),
        "checks": checks
    }
