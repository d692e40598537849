import logging
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from influencore.api.deps import get_context, get_owner_id
from influencore.core.config import settings
from influencore.core.context import AppContext
from influencore.core.rate_limit import limiter
from influencore.models import JobKind
from influencore.schemas import ScriptRequest
from influencore.services.script_generator import generate_title, script_suggestions, script_templates

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/generate", status_code=201)
@limiter.limit(settings.RATE_LIMIT_GENERATION)
async def generate_script(
    request: Request,
    body: ScriptRequest,
    owner_id: str = Depends(get_owner_id),
    context: AppContext = Depends(get_context)
):
    """create a script job and start writing it in the background"""
    job = await run_in_threadpool(
        context.store.create,
        owner_id=owner_id,
        kind=JobKind.SCRIPT,
        title=body.title or generate_title(body.prompt),
        prompt=body.prompt,
        options=body.model_dump(exclude={"prompt", "title"})
    )
    await context.runner.start(job.id)
    logger.info(f"script generation started for user {owner_id}: {job.id}")

    job = await run_in_threadpool(context.store.require, job.id)
    return {
        "success": True,
        "message": "Script generation started",
        "data": {"job": job.to_dict()}
    }

@router.get("/suggestions")
def get_suggestions():
    return {"success": True, "data": {"suggestions": script_suggestions()}}

@router.get("/templates")
def get_templates():
    """ready-made scripts, one per script type"""
    return {"success": True, "data": {"templates": script_templates()}}
