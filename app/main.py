"""
FastAPI application for the video generation relay.

Exposes create/get/cancel for video jobs and hands each call to the active
provider: the in-memory simulator (MOCK_MODE=true) or the upstream Sora
proxy. Also serves the static polling UI from the web directory.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException

from core.config import Settings, get_settings
from video.base import JobOptions, ProviderResponse, VideoProvider
from video.errors import (
    JobNotFoundError,
    JobValidationError,
    ProviderConfigError,
    ProviderUnavailableError,
)
from video.factory import get_video_provider

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _to_response(result: ProviderResponse) -> Response:
    if result.body is None:
        return Response(status_code=result.status_code)
    return JSONResponse(status_code=result.status_code, content=result.body)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(JobValidationError)
    async def validation_error(request: Request, exc: JobValidationError):
        return _error(400, str(exc))

    @app.exception_handler(JobNotFoundError)
    async def not_found(request: Request, exc: JobNotFoundError):
        logger.warning(f"Video job {exc.job_id} not found")
        return _error(404, "Job not found")

    @app.exception_handler(ProviderConfigError)
    async def config_error(request: Request, exc: ProviderConfigError):
        logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
        return _error(500, str(exc))

    @app.exception_handler(ProviderUnavailableError)
    async def upstream_error(request: Request, exc: ProviderUnavailableError):
        # Details were logged by the provider; only the short message goes out
        return _error(500, str(exc))

    @app.exception_handler(RequestValidationError)
    async def bad_body(request: Request, exc: RequestValidationError):
        # Only /api/generate takes a body; anything that is not a JSON object lands here
        logger.warning(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
        return _error(400, "Prompt is required")


class SinglePageFiles(StaticFiles):
    """StaticFiles that answers unknown paths with index.html."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


def _register_static(app: FastAPI, static_dir: Path) -> None:
    # Mounted last so the API routes take precedence
    if not static_dir.is_dir():
        logger.warning(f"UI directory {static_dir} not found - static files disabled")
        return
    app.mount("/", SinglePageFiles(directory=str(static_dir), html=True), name="web")


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[VideoProvider] = None
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to the cached environment settings
        provider: Defaults to the provider selected by MOCK_MODE
    """
    settings = settings or get_settings()
    provider = provider or get_video_provider(settings)

    app = FastAPI(title="Sora relay")
    app.state.settings = settings
    app.state.video_provider = provider
    _register_error_handlers(app)

    @app.post("/api/generate")
    async def generate(payload: Optional[Dict[str, Any]] = Body(default=None)):
        """
        Create a video generation job.

        Request format:
        {
            "prompt": "string (required)",
            "duration": "number (optional, seconds)",
            "aspectRatio": "string (optional, e.g. 16:9)",
            "width": "number (optional)",
            "height": "number (optional)"
        }

        Returns 202 with the job: {id, status, created_at, updated_at, options, ...}
        """
        options = JobOptions.from_payload(payload)
        result = await provider.create_video(options)
        return _to_response(result)

    @app.get("/api/jobs/{job_id}")
    async def get_job(job_id: str):
        """Get the current state of a video generation job."""
        result = await provider.check_status(job_id)
        return _to_response(result)

    @app.delete("/api/jobs/{job_id}")
    async def cancel_job(job_id: str):
        """
        Cancel a video generation job.

        Finished jobs are returned unchanged. May answer 204 with no body
        when the upstream API does.
        """
        result = await provider.cancel_video(job_id)
        return _to_response(result)

    @app.get("/healthz", include_in_schema=False)
    async def healthz():
        return {"status": "ok", "mode": "mock" if settings.mock_mode else "proxy"}

    _register_static(app, settings.static_dir)
    return app


settings = get_settings()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Server listening on http://localhost:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
