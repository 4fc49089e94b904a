"""
Moment Intelligence Engine: API Server
======================================

Thin HTTP surface over MomentIntelligenceEngine.

Endpoints:
- GET  /health
- POST /api/v1/trends/assess               -> presentation trends
- POST /api/v1/moments/qualify             -> quality gate + memory write
- GET  /api/v1/moments/{moment_id}         -> stored memory record
- POST /api/v1/moments/{moment_id}/evaluate -> lifecycle health

Failures are returned as {"ok": false, "error": {code, message, meta}}.

Usage:
    uvicorn moment_engine.api.server:app --reload
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..contracts.base import Error, ErrorCode
from ..contracts.intelligence import SignalFeed, collect_sources
from ..engine import EngineConfig, MomentIntelligenceEngine
from ..normalization import parse_candidates, parse_clusters, parse_signal_context
from .mapper import (
    error_status,
    intelligence_error_status,
    map_assessments,
    map_error,
    map_health,
    map_intelligence_error,
    map_outcomes,
    map_record,
)


logger = logging.getLogger(__name__)


def _error_response(error: Error) -> JSONResponse:
    return JSONResponse(status_code=error_status(error), content=map_error(error))


def create_app(engine: Optional[MomentIntelligenceEngine] = None) -> FastAPI:
    """
    Build the app. An injected engine is used as is; otherwise one is
    created from MOMENT_ENGINE_* environment variables at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if engine is not None:
            app.state.engine = engine
        else:
            config = EngineConfig.from_env()
            logging.basicConfig(level=config.log_level)
            app.state.engine = MomentIntelligenceEngine(config)
        logger.info(
            "Moment engine ready (behaviour %s)",
            app.state.engine.config.behaviour.behaviour_version,
        )

        yield

        logger.info("Shutting down moment engine")
        app.state.engine = None

    app = FastAPI(
        title="Moment Intelligence Engine API",
        version=__version__,
        description="Evidence, qualification and lifecycle health for cultural moments",
        lifespan=lifespan,
    )
    app.state.engine = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    def _engine(request: Request) -> Optional[MomentIntelligenceEngine]:
        return request.app.state.engine

    @app.exception_handler(RequestValidationError)
    async def malformed_request(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"ok": False, "error": {
                "code": ErrorCode.MALFORMED_PAYLOAD.name,
                "message": "Malformed request body",
                "meta": {"detail": str(exc.errors())},
            }},
        )

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/health")
    async def health_check(request: Request):
        eng = _engine(request)
        if eng is None:
            return JSONResponse(status_code=503, content={"status": "starting"})
        return {
            "status": "online",
            "behaviourVersion": eng.config.behaviour.behaviour_version,
            "moments": len(eng.store.all_records()),
        }

    @app.post("/api/v1/trends/assess")
    async def assess_trends(request: Request, payload: Any = Body(...)):
        eng = _engine(request)
        parsed = parse_clusters(payload, eng.clock.now())
        if parsed.is_failure:
            return _error_response(parsed.error)

        clusters = parsed.value
        feed = SignalFeed(
            available=True,
            items=clusters,
            sources=collect_sources([s for c in clusters for s in c.signals]),
        )
        result = eng.assess_feed(feed)
        if not result.ok:
            return JSONResponse(
                status_code=intelligence_error_status(result.error),
                content=map_intelligence_error(result.error),
            )
        return map_assessments(result.data)

    @app.post("/api/v1/moments/qualify")
    async def qualify_moments(request: Request, payload: Any = Body(...)):
        eng = _engine(request)
        parsed = parse_candidates(payload, eng.clock.now())
        if parsed.is_failure:
            return _error_response(parsed.error)

        collapse = True
        if isinstance(payload, dict) and payload.get("collapse") is False:
            collapse = False
        outcomes = eng.qualify_candidates(parsed.value, collapse=collapse)
        return map_outcomes(outcomes)

    @app.get("/api/v1/moments/{moment_id}")
    async def get_moment(request: Request, moment_id: str):
        found = _engine(request).get_moment(moment_id)
        if found.is_failure:
            return _error_response(found.error)
        return map_record(found.value)

    @app.post("/api/v1/moments/{moment_id}/evaluate")
    async def evaluate_moment(
        request: Request,
        moment_id: str,
        payload: Any = Body(default=None)
    ):
        eng = _engine(request)
        parsed = parse_signal_context(payload, eng.clock.now())
        if parsed.is_failure:
            return _error_response(parsed.error)

        evaluated = eng.evaluate_moment(moment_id, parsed.value)
        if evaluated.is_failure:
            return _error_response(evaluated.error)
        return map_health(eng.store.get(moment_id), evaluated.value)

    return app


app = create_app()
