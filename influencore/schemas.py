from typing import Literal, Optional
from pydantic import BaseModel, Field

Tone = Literal['professional', 'casual', 'humorous', 'dramatic']
Resolution = Literal['1280x720', '1920x1080', '3840x2160']


class VideoRequest(BaseModel):
    prompt: str = Field(min_length=10, max_length=2000)
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    style: Optional[str] = None
    mood: Optional[str] = None
    category: Optional[str] = None
    duration: int = Field(default=30, ge=5, le=600)
    resolution: Resolution = '1920x1080'


class ScriptRequest(BaseModel):
    prompt: str = Field(min_length=5, max_length=500)
    title: Optional[str] = Field(default=None, max_length=200)
    tone: Tone = 'professional'
    category: str = 'marketing'
    target_audience: str = 'general'


class DemoVideoRequest(BaseModel):
    prompt: str = Field(min_length=10, max_length=500)
    email: Optional[str] = None


class DemoScriptRequest(BaseModel):
    prompt: str = Field(min_length=5, max_length=200)
    tone: Tone = 'professional'
    target_audience: Optional[str] = None
    email: Optional[str] = None
