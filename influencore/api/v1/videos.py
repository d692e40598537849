import logging
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from influencore.api.deps import get_context, get_owner_id
from influencore.core.config import settings
from influencore.core.context import AppContext
from influencore.core.rate_limit import limiter
from influencore.models import JobKind
from influencore.schemas import VideoRequest

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/generate", status_code=201)
@limiter.limit(settings.RATE_LIMIT_GENERATION)
async def generate_video(
    request: Request,
    body: VideoRequest,
    owner_id: str = Depends(get_owner_id),
    context: AppContext = Depends(get_context)
):
    """create a video job and start generating it in the background"""
    job = await run_in_threadpool(
        context.store.create,
        owner_id=owner_id,
        kind=JobKind.VIDEO,
        title=body.title,
        prompt=body.prompt,
        options=body.model_dump(exclude={"prompt", "title"}, exclude_none=True)
    )
    await context.runner.start(job.id)
    logger.info(f"video generation started for user {owner_id}: {job.id}")

    job = await run_in_threadpool(context.store.require, job.id)
    return {
        "success": True,
        "message": "Video generation started",
        "data": {"job": job.to_dict()}
    }
