"""
HTTP API for the brand generation pipeline.

This module builds the FastAPI application: health checks for container
orchestration, the per-session pipeline endpoints and the logo artifact route.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel

from .config.dependencies import Dependencies, create_dependencies
from .config.settings import settings
from .errors import GenerationFailed, InvalidTransition
from .models.brand import BusinessBrief
from .models.state import PipelineStage
from .services.artifact_store import LocalArtifactStore
from .utils.cache import TTLCache
from .workflows.brand_pipeline import BrandPipeline

logger = logging.getLogger(__name__)


class BriefRequest(BaseModel):
    description: str
    visuals: Optional[str] = None
    brand_values: Optional[str] = None


class SessionRequest(BaseModel):
    session_id: str


class RefreshNamesRequest(SessionRequest):
    exclude_titles: List[str] = []


class SelectRequest(SessionRequest):
    index: int


class LogoRequest(SessionRequest):
    prompt: Optional[str] = None


class NameRequest(BaseModel):
    name: str
    context: Optional[str] = None


class LogoScreenRequest(BaseModel):
    image_url: str


class UnknownSession(KeyError):
    pass


def on_startup():
    """Function to run on server startup."""
    logger.info("Server starting up")


def on_shutdown():
    """Function to run on server shutdown."""
    logger.info("Server shutting down")


def init_app(dependencies: Optional[Dependencies] = None, sessions: Optional[TTLCache] = None) -> FastAPI:
    """
    Initialize and configure the FastAPI application.

    Sessions expire after SESSION_TTL_MINUTES without a request.

    Args:
        dependencies: Shared service container; built from settings when omitted
        sessions: Store for per-session pipelines; defaults to a TTL cache

    Returns:
        FastAPI: The configured FastAPI application
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        on_startup()
        yield
        on_shutdown()

    app = FastAPI(title="Brandscape", lifespan=lifespan)
    deps = dependencies or create_dependencies()
    if sessions is None:
        sessions = TTLCache(ttl_seconds=settings.session_ttl_minutes * 60)

    def pipeline_for(session_id: str) -> BrandPipeline:
        pipeline = sessions.get(session_id)
        if pipeline is None:
            raise UnknownSession(session_id)
        # Each request restarts the idle timer
        sessions.set(session_id, pipeline)
        return pipeline

    @app.exception_handler(UnknownSession)
    async def unknown_session(request: Request, exc: UnknownSession):
        return JSONResponse(status_code=404, content={"error": f"unknown session {exc.args[0]}"})

    @app.exception_handler(InvalidTransition)
    async def invalid_transition(request: Request, exc: InvalidTransition):
        return JSONResponse(status_code=409, content={"error": str(exc)})

    @app.exception_handler(GenerationFailed)
    async def generation_failed(request: Request, exc: GenerationFailed):
        logger.warning("Generation failed: %s", exc)
        return JSONResponse(status_code=502, content={"error": str(exc), "stage": exc.stage, "prompt": exc.prompt})

    @app.exception_handler(ValueError)
    async def bad_request(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.get("/health")
    async def health():
        """Simple health check endpoint that always returns OK."""
        logger.debug("Health check request received")
        return {"status": "ok"}

    @app.get("/ready")
    async def ready():
        """Readiness check endpoint that returns OK when the server is ready to accept requests."""
        logger.debug("Readiness check request received")
        return {"status": "ready"}

    @app.post("/api/names")
    async def start_naming(body: BriefRequest) -> Dict[str, Any]:
        brief = BusinessBrief.from_answers(body.description, body.visuals, body.brand_values)
        pipeline = BrandPipeline(deps)
        candidates = await pipeline.start_naming(brief)
        purged = sessions.purge_expired()
        if purged:
            logger.info("Expired %d idle sessions", purged)
        sessions.set(pipeline.session.session_id, pipeline)
        return {
            "session_id": pipeline.session.session_id,
            "suggestions": [c.model_dump(mode="json") for c in candidates],
        }

    @app.post("/api/names/refresh")
    async def refresh_names(body: RefreshNamesRequest) -> Dict[str, Any]:
        candidates = await pipeline_for(body.session_id).refresh_names(body.exclude_titles)
        return {"suggestions": [c.model_dump(mode="json") for c in candidates]}

    @app.post("/api/names/select")
    async def select_name(body: SelectRequest) -> Dict[str, Any]:
        selected = pipeline_for(body.session_id).select_name(body.index)
        return {"selected": selected.model_dump(mode="json")}

    @app.post("/api/colors")
    async def colors(body: SessionRequest) -> Dict[str, Any]:
        pipeline = pipeline_for(body.session_id)
        if pipeline.stage == PipelineStage.COLORS:
            palettes = await pipeline.refresh_colors()
        else:
            palettes = await pipeline.start_colors()
        return {
            "palettes": [p.model_dump(mode="json") for p in palettes],
            "fallback": bool(palettes and palettes[0].fallback),
        }

    @app.post("/api/colors/select")
    async def select_color(body: SelectRequest) -> Dict[str, Any]:
        selected = pipeline_for(body.session_id).select_color(body.index)
        return {"selected": selected.model_dump(mode="json")}

    @app.post("/api/logo-prompt")
    async def logo_prompt(body: SessionRequest) -> Dict[str, Any]:
        prompt = await pipeline_for(body.session_id).build_logo_prompt()
        return prompt.model_dump(mode="json")

    @app.post("/api/logo")
    async def logo(body: LogoRequest) -> Dict[str, Any]:
        image = await pipeline_for(body.session_id).generate_logo_image(body.prompt)
        return image.model_dump(mode="json")

    @app.get("/api/logo/{filename}")
    async def logo_file(filename: str):
        store = deps.artifact_store
        if not isinstance(store, LocalArtifactStore):
            return JSONResponse(status_code=404, content={"error": "logos are served from remote storage"})
        path = store.path_for(filename)
        if not path.is_file():
            return JSONResponse(status_code=404, content={"error": f"logo {filename} not found"})
        return FileResponse(path)

    @app.get("/api/sessions/{session_id}")
    async def session_state(session_id: str) -> Dict[str, Any]:
        return pipeline_for(session_id).session.model_dump(mode="json")

    @app.post("/api/logo-screening")
    async def logo_screening(body: SessionRequest) -> Dict[str, Any]:
        pipeline = pipeline_for(body.session_id)
        screening = await pipeline.wait_for_logo_screening()
        if screening is None:
            screening = await pipeline.screen_logo()
        return screening.model_dump(mode="json")

    @app.post("/api/trademark")
    async def trademark(body: NameRequest) -> Dict[str, Any]:
        report = await BrandPipeline(deps).check_trademark_for(body.name, body.context)
        return {
            "name": report.name,
            "notes": report.notes,
            "results": [h.model_dump(mode="json", exclude={"raw"}) for h in report.hits],
            "warnings": report.warnings,
            "summary": report.result.summary,
            "cached": report.result.cached,
        }

    @app.post("/api/domain")
    async def domain(body: NameRequest) -> Dict[str, Any]:
        statuses = await BrandPipeline(deps).check_domain_for(body.name)
        return {"name": body.name, "domains": {d: s.value for d, s in statuses.items()}}

    @app.post("/api/logo-trademark")
    async def logo_trademark(body: LogoScreenRequest) -> Dict[str, Any]:
        screening = await BrandPipeline(deps).screen_logo(body.image_url)
        return screening.model_dump(mode="json")

    logger.info("Server initialization complete")

    return app


def get_server_config() -> Dict[str, Any]:
    """
    Get server configuration for uvicorn.

    Returns:
        Dict[str, Any]: Configuration dictionary for the server
    """
    return {
        "host": os.getenv("HOST", "0.0.0.0"),
        "port": int(os.getenv("PORT", "8000")),
        "workers": int(os.getenv("WORKERS", "1")),
        "log_level": os.getenv("LOG_LEVEL", "info"),
        "timeout_keep_alive": int(os.getenv("TIMEOUT", "120")),
    }
