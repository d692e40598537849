from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from influencore.api.v1 import demo, health, jobs, scripts, upload, videos, ws
from influencore.core.config import settings
from influencore.core.context import AppContext
from influencore.core.errors import InfluencoreException
from influencore.core.logging_config import configure_logging, get_logger
from influencore.core.rate_limit import limiter, rate_limit_exceeded_handler

logger = get_logger(__name__)

def create_app(context: Optional[AppContext] = None) -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    @app.on_event("startup")
    def on_startup():
        configure_logging()
        app.state.context = context or AppContext.create(settings)
        logger.info(f"{settings.PROJECT_NAME} api started")

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.context.close()

    @app.exception_handler(InfluencoreException)
    async def handle_app_error(request: Request, exc: InfluencoreException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message}
        )

    @app.get("/")
    @limiter.exempt
    def read_root():
        return {"message": "Welcome to Influencore API"}

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(videos.router, prefix="/api/videos", tags=["videos"])
    app.include_router(scripts.router, prefix="/api/scripts", tags=["scripts"])
    app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
    app.include_router(demo.router, prefix="/api/demo", tags=["demo"])
    app.include_router(upload.router, prefix="/api/upload", tags=["upload"])
    app.include_router(ws.router, prefix="/ws", tags=["websocket"])
    return app

app = create_app()
