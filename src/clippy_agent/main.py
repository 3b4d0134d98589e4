"""
Clippy Agent Main Application
=============================

FastAPI entry point for the desktop assistant service.

The service runs the capture → batch → classify → route → gate loop in
the background and exposes the assistant state to the UI collaborator.

Endpoints:
    GET  /                    - Service information
    GET  /health              - Liveness probe (is process alive?)
    GET  /ready               - Readiness probe (capture loop running?)
    GET  /metrics             - Pipeline metrics
    GET  /suggestion          - Current assistant state and suggestion
    POST /suggestion/dismiss  - Dismiss (and suppress) the shown suggestion
    POST /activity            - Report user activity (resets idle time)
    WS   /ws/suggestions      - Real-time state and suggestion events
"""

import asyncio
import logging
import os
import signal
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Tuple

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from clippy_agent.config import ConfigurationError, Settings, settings
from clippy_agent.capture import FrameBatcher, FrameSource, ScreenFrameSource
from clippy_agent.llm import (
    AnalysisClient,
    AnthropicBackend,
    ClassificationClient,
    MockVisionBackend,
    OpenRouterBackend,
    VisionModelBackend,
)
from clippy_agent.agents import AgentRegistry, AgentRouter, SuggestionGate
from clippy_agent.context import InMemoryContextStore
from clippy_agent.delivery import BroadcastSuggestionSink, LoggingSuggestionSink, SuggestionSink
from clippy_agent.orchestrator import AssistantOrchestrator
from clippy_agent.search import DuckDuckGoSearchClient


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

# Shutdown flag
_shutdown_flag: bool = False

_sink: Optional[BroadcastSuggestionSink] = None
_orchestrator: Optional[AssistantOrchestrator] = None
_capture_task: Optional[asyncio.Task] = None

_startup_time: float = 0.0
_monitoring_error: Optional[str] = None


# =============================================================================
# Getters
# =============================================================================

def get_orchestrator() -> Optional[AssistantOrchestrator]:
    return _orchestrator

def get_sink() -> Optional[BroadcastSuggestionSink]:
    return _sink

def is_ready() -> bool:
    return _orchestrator is not None and _orchestrator.running


# =============================================================================
# Signal Handlers
# =============================================================================

def _handle_sigterm(signum, frame):
    """Handle SIGTERM for graceful shutdown."""
    global _shutdown_flag
    logger.info("Received SIGTERM, initiating graceful shutdown...")
    _shutdown_flag = True


# =============================================================================
# Component Factories
# =============================================================================

def _openrouter(cfg: Settings, model: str) -> OpenRouterBackend:
    return OpenRouterBackend(
        api_key=cfg.model.openrouter_api_key,
        model=model,
        base_url=cfg.model.openrouter_base_url,
        timeout_seconds=cfg.model.timeout_seconds,
    )


def _anthropic(cfg: Settings, model: str) -> AnthropicBackend:
    return AnthropicBackend(
        api_key=cfg.model.anthropic_api_key,
        model=model,
        timeout_seconds=cfg.model.timeout_seconds,
    )


def create_backends(cfg: Settings) -> Tuple[VisionModelBackend, VisionModelBackend]:
    """
    Create (classification, analysis) backends based on config.

    Backend "auto" uses OpenRouter for classification and Anthropic for
    analysis, falling back to whichever key is configured.

    Raises:
        ConfigurationError: If the selected backend has no credentials
    """
    backend = cfg.model.backend.lower()
    has_openrouter = bool(cfg.model.openrouter_api_key)
    has_anthropic = bool(cfg.model.anthropic_api_key)

    if backend == "mock":
        logger.info("Using MockVisionBackend")
        mock = MockVisionBackend()
        return mock, mock

    if backend == "openrouter":
        if not has_openrouter:
            raise ConfigurationError("model.backend=openrouter but OPENROUTER_API_KEY is not set")
        return (
            _openrouter(cfg, cfg.model.openrouter_classify_model),
            _openrouter(cfg, cfg.model.openrouter_analyze_model),
        )

    if backend == "anthropic":
        if not has_anthropic:
            raise ConfigurationError("model.backend=anthropic but ANTHROPIC_API_KEY is not set")
        return (
            _anthropic(cfg, cfg.model.anthropic_classify_model),
            _anthropic(cfg, cfg.model.anthropic_analyze_model),
        )

    if backend == "auto":
        if not (has_openrouter or has_anthropic):
            raise ConfigurationError(
                "No AI client configured. Provide OPENROUTER_API_KEY or ANTHROPIC_API_KEY."
            )
        classify = (
            _openrouter(cfg, cfg.model.openrouter_classify_model)
            if has_openrouter
            else _anthropic(cfg, cfg.model.anthropic_classify_model)
        )
        analyze = (
            _anthropic(cfg, cfg.model.anthropic_analyze_model)
            if has_anthropic
            else _openrouter(cfg, cfg.model.openrouter_analyze_model)
        )
        return classify, analyze

    raise ConfigurationError(f"Unknown model backend: {cfg.model.backend}")


def create_orchestrator(
    cfg: Settings,
    sink: Optional[SuggestionSink] = None,
    source: Optional[FrameSource] = None,
) -> AssistantOrchestrator:
    """
    Wire the full pipeline from settings.

    Without a sink (headless runs) suggestions go to the log.
    """
    if sink is None:
        sink = LoggingSuggestionSink()

    classify_backend, analyze_backend = create_backends(cfg)

    classifier = ClassificationClient(
        classify_backend,
        timeout_seconds=cfg.model.timeout_seconds,
        max_tokens=cfg.model.classify_max_tokens,
    )
    analysis = AnalysisClient(
        analyze_backend,
        timeout_seconds=cfg.model.timeout_seconds,
        max_tokens=cfg.model.analyze_max_tokens,
    )

    search_client = None
    if cfg.search.enabled:
        search_client = DuckDuckGoSearchClient(
            endpoint=cfg.search.endpoint,
            timeout_seconds=cfg.search.timeout_seconds,
        )

    registry = AgentRegistry.default(
        analysis,
        idle_threshold_ms=cfg.agents.idle_threshold_ms,
        search_client=search_client,
        max_resources=cfg.search.max_results,
    )
    router = AgentRouter(classifier, registry, strict=cfg.pipeline.strict_invariants)

    if source is None:
        source = ScreenFrameSource(
            monitor_index=cfg.capture.monitor_index,
            scale=cfg.capture.scale,
        )

    return AssistantOrchestrator(
        source=source,
        batcher=FrameBatcher(capacity=cfg.capture.frame_batch_size),
        router=router,
        gate=SuggestionGate(
            cooldown_ms=cfg.gate.suggestion_cooldown_ms,
            dismiss_suppression_ms=cfg.gate.dismiss_suppression_ms,
        ),
        context_store=InMemoryContextStore(max_events=cfg.pipeline.max_recent_events),
        sink=sink,
        frame_interval_ms=cfg.capture.frame_interval_ms,
        save_latest_frame_dir=cfg.capture.save_latest_frame_dir,
    )


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _sink, _orchestrator, _capture_task, _startup_time, _monitoring_error

    # Register signal handlers
    signal.signal(signal.SIGTERM, _handle_sigterm)

    # Startup
    _startup_time = time.time()
    logger.info(f"Starting {settings.agent.name} {settings.agent.version}")

    _sink = BroadcastSuggestionSink()

    try:
        _orchestrator = create_orchestrator(settings, _sink)
    except ConfigurationError as e:
        # API stays up so the UI can report the problem.
        _monitoring_error = str(e)
        logger.error(f"Monitoring disabled: {e}")
    else:
        _capture_task = asyncio.create_task(
            _orchestrator.run(),
            name="capture_loop",
        )
        logger.info(
            f"All components started (backend={settings.model.backend}, "
            f"batch={settings.capture.frame_batch_size}x{settings.capture.frame_interval_ms}ms)"
        )

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")

    global _shutdown_flag
    _shutdown_flag = True

    if _orchestrator:
        await _orchestrator.stop()

    if _capture_task:
        _capture_task.cancel()
        try:
            await _capture_task
        except asyncio.CancelledError:
            pass

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Clippy Agent",
    description="Screen-aware desktop assistant agent",
    version=settings.agent.version,
    lifespan=lifespan,
)


class ActivitySignal(BaseModel):
    """Body of POST /activity."""

    current_app: Optional[str] = None


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "Clippy Agent",
        "version": settings.agent.version,
        "name": settings.agent.name,
        "status": "running",
        "model_backend": settings.model.backend,
        "monitoring_enabled": _orchestrator is not None,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe - is the capture loop running?

    Returns 503 with the reason when monitoring is disabled.
    """
    if is_ready():
        return JSONResponse({
            "status": "ready",
            "monitoring_enabled": True,
        })
    return JSONResponse(
        {
            "status": "not_ready",
            "monitoring_enabled": _orchestrator is not None,
            "reason": _monitoring_error,
        },
        status_code=503,
    )


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    orchestrator = get_orchestrator()
    sink = get_sink()

    pipeline_metrics = {}
    if orchestrator:
        pipeline_metrics = {
            "orchestrator": orchestrator.get_metrics(),
            "batcher": orchestrator.batcher.metrics(),
            "router": orchestrator.router.get_metrics(),
            "gate": orchestrator.gate.get_metrics(),
        }
        classifier_metrics = getattr(orchestrator.router.classifier, "get_metrics", None)
        if classifier_metrics:
            pipeline_metrics["classifier"] = classifier_metrics()
        source_metrics = getattr(orchestrator.source, "get_metrics", None)
        if source_metrics:
            pipeline_metrics["capture"] = source_metrics()

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "model_backend": settings.model.backend,
        "monitoring_enabled": orchestrator is not None,
        "sink": sink.get_metrics() if sink else {},
        **pipeline_metrics,
    })


@app.get("/suggestion")
async def suggestion() -> JSONResponse:
    """Current assistant state and shown suggestion."""
    sink = get_sink()
    if sink is None:
        return JSONResponse({"error": "Service not started"}, status_code=503)
    return JSONResponse(sink.snapshot())


@app.post("/suggestion/dismiss")
async def dismiss_suggestion() -> JSONResponse:
    """Dismiss the shown suggestion; identical ones stay suppressed for a while."""
    orchestrator = get_orchestrator()
    if orchestrator is None:
        return JSONResponse({"error": "Monitoring disabled"}, status_code=503)

    dismissed = await orchestrator.dismiss()
    return JSONResponse({"dismissed": dismissed})


@app.post("/activity")
async def activity(signal_body: Optional[ActivitySignal] = None) -> JSONResponse:
    """User activity observed by the UI (mouse, keyboard, app switch)."""
    orchestrator = get_orchestrator()
    if orchestrator is None:
        return JSONResponse({"error": "Monitoring disabled"}, status_code=503)

    orchestrator.record_user_activity()
    if signal_body is not None and signal_body.current_app is not None:
        orchestrator.context_store.set_current_app(signal_body.current_app)
    return JSONResponse({"status": "ok"})


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/suggestions")
async def suggestion_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint for real-time state and suggestion events."""
    await websocket.accept()
    logger.info("Client connected to /ws/suggestions")

    sink = get_sink()
    if sink is None:
        await websocket.close()
        return

    queue = sink.subscribe()
    receiver = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        while not _shutdown_flag and not receiver.done():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            await websocket.send_json(event)

    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        receiver.cancel()
        sink.unsubscribe(queue)
        logger.info("Client disconnected from /ws/suggestions")


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    """Drain client messages until the client goes away."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "clippy_agent.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
