import random
from typing import Optional

SAMPLE_VIDEO_URL = "https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_1mb.mp4"
THUMBNAIL_URL = "https://via.placeholder.com/1280x720/4F46E5/FFFFFF?text=AI+Generated+Video"

DEFAULT_DURATION = 30
DEFAULT_RESOLUTION = "1920x1080"
RESOLUTIONS = ("1280x720", "1920x1080", "3840x2160")

DEMO_VIDEOS = [
    {
        "title": "AI Product Launch",
        "url": "https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_1mb.mp4",
        "thumbnail": "https://via.placeholder.com/1280x720/4F46E5/FFFFFF?text=AI+Product+Launch",
        "description": "Professional product launch video generated with AI",
    },
    {
        "title": "Marketing Campaign",
        "url": "https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_2mb.mp4",
        "thumbnail": "https://via.placeholder.com/1280x720/7C3AED/FFFFFF?text=Marketing+Campaign",
        "description": "Engaging marketing content created using AI technology",
    },
    {
        "title": "Educational Content",
        "url": "https://sample-videos.com/zip/10/mp4/SampleVideo_1920x1080_1mb.mp4",
        "thumbnail": "https://via.placeholder.com/1920x1080/059669/FFFFFF?text=Educational+Content",
        "description": "Educational video content powered by artificial intelligence",
    },
]


def build_video_result(job) -> dict:
    """result payload of a finished video job (placeholder media)"""
    options = job.options or {}
    return {
        "video_url": SAMPLE_VIDEO_URL,
        "thumbnail_url": THUMBNAIL_URL,
        "duration": options.get("duration", DEFAULT_DURATION),
        "resolution": options.get("resolution", DEFAULT_RESOLUTION),
    }


def generate_demo_video(prompt: str, options: Optional[dict] = None, rng: random.Random = None) -> dict:
    """pick a showcase video for an anonymous demo request"""
    rng = rng or random
    video = dict(rng.choice(DEMO_VIDEOS))
    video.update({
        "prompt": prompt,
        "status": "completed",
        "processing_time": rng.randint(10, 39),
    })
    video.update(options or {})
    return video
