import logging
from fastapi import APIRouter, Request
from influencore.core.config import settings
from influencore.core.rate_limit import limiter
from influencore.schemas import DemoScriptRequest, DemoVideoRequest
from influencore.services.script_generator import generate_demo_script
from influencore.services.video_generator import generate_demo_video

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/generate-video")
@limiter.limit(settings.RATE_LIMIT_DEMO)
def demo_video(request: Request, body: DemoVideoRequest):
    """demo video without an account, returns a showcase clip immediately"""
    logger.info(f"demo video requested: {body.prompt[:50]}...")
    video = generate_demo_video(body.prompt, {"style": "professional", "mood": "engaging", "duration": 30})
    if body.email:
        logger.info(f"demo lead captured: {body.email}")

    return {
        "success": True,
        "message": "Demo video generated successfully",
        "data": {
            "video": video,
            "is_demo": True,
            "limitations": [
                "Demo videos are limited to 30 seconds",
                "Watermarked content",
                "Basic AI processing",
            ]
        }
    }

@router.post("/generate-script")
@limiter.limit(settings.RATE_LIMIT_DEMO)
def demo_script(request: Request, body: DemoScriptRequest):
    logger.info(f"demo script requested: {body.prompt[:50]}...")
    script = generate_demo_script(body.prompt, tone=body.tone, target_audience=body.target_audience)
    if body.email:
        logger.info(f"demo lead captured: {body.email}")

    return {
        "success": True,
        "message": "Demo script generated successfully",
        "data": {"script": script, "is_demo": True}
    }
