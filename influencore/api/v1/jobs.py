import math
from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from typing import Optional
from influencore.api.deps import get_context, get_owner_id
from influencore.core.context import AppContext
from influencore.core.errors import InvalidJobStateError, JobNotFoundError
from influencore.models import JobKind, JobStatus

router = APIRouter()

def _owned_job(context: AppContext, job_id: str, owner_id: str):
    job = context.store.get(job_id)
    # other users' jobs are reported as missing
    if not job or job.owner_id != owner_id:
        raise JobNotFoundError(job_id)
    return job

@router.get("/")
def list_jobs(
    status: Optional[JobStatus] = None,
    kind: Optional[JobKind] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    owner_id: str = Depends(get_owner_id),
    context: AppContext = Depends(get_context)
):
    """the caller's jobs, newest first, one page at a time"""
    jobs, total = context.store.list_for_owner(owner_id, status=status, kind=kind, page=page, limit=limit)
    total_pages = math.ceil(total / limit)
    return {
        "success": True,
        "data": {
            "jobs": [job.to_dict() for job in jobs],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": total_pages,
                "hasNext": page < total_pages,
                "hasPrev": page > 1,
            }
        }
    }

@router.get("/stats/overview")
def job_stats(owner_id: str = Depends(get_owner_id), context: AppContext = Depends(get_context)):
    """counts per status and kind plus the average run time of finished jobs"""
    return {"success": True, "data": {"stats": context.store.stats_for_owner(owner_id)}}

@router.get("/{job_id}")
def get_job(job_id: str, owner_id: str = Depends(get_owner_id), context: AppContext = Depends(get_context)):
    job = _owned_job(context, job_id, owner_id)
    data = job.to_dict()
    data["active"] = context.runner.is_active(job.id)
    return {"success": True, "data": {"job": data}}

@router.post("/{job_id}/start", status_code=202)
async def start_job(job_id: str, owner_id: str = Depends(get_owner_id), context: AppContext = Depends(get_context)):
    """start a pending job; 409 when it already ran or is running"""
    job = await run_in_threadpool(_owned_job, context, job_id, owner_id)
    await context.runner.start(job.id)
    job = await run_in_threadpool(context.store.require, job.id)
    return {"success": True, "data": {"job": job.to_dict()}}

@router.post("/{job_id}/cancel")
async def cancel_job(job_id: str, owner_id: str = Depends(get_owner_id), context: AppContext = Depends(get_context)):
    job = await run_in_threadpool(_owned_job, context, job_id, owner_id)
    if not context.runner.cancel(job.id):
        raise InvalidJobStateError(job.id, job.status, expected="processing")
    return {"success": True, "message": "Cancellation requested"}

@router.delete("/{job_id}")
def delete_job(job_id: str, owner_id: str = Depends(get_owner_id), context: AppContext = Depends(get_context)):
    job = _owned_job(context, job_id, owner_id)
    context.store.delete(job.id)
    return {"success": True, "message": "Job deleted"}
