from __future__ import annotations

import shutil
import subprocess
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from reelscribe.api.transcription_routes import transcribe_url
from reelscribe.core.config import get_settings
from reelscribe.core.context import AppContext, build_context
from reelscribe.core.logging import configure_logging, get_logger
from reelscribe.ui import render_index


logger = get_logger(__name__)

try:
    from reelscribe.build_info import GIT_SHA as _STAMPED_SHA, BUILD_TIME as _STAMPED_TIME
except ImportError:
    _STAMPED_SHA, _STAMPED_TIME = None, None


def _check_tool_available(command: list) -> bool:
    if not command:
        return False
    if len(command) == 1:
        return shutil.which(command[0]) is not None
    try:
        result = subprocess.run([*command, "--version"], capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.SubprocessError):
        return False
    return result.returncode == 0


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "context", None) is None:
        settings = get_settings()
        configure_logging(settings.log_level)
        app.state.context = build_context(settings)
    context: AppContext = app.state.context
    logger.info(
        "starting app",
        extra={"component": "api", "job_id": "startup", "model": context.settings.gemini_model, "temp_dir": str(context.temp_dir)},
    )
    try:
        yield
    finally:
        logger.info("shutdown complete", extra={"component": "api", "job_id": "shutdown"})


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the HTTP app. A prebuilt context skips startup wiring."""
    app = FastAPI(title="reelscribe", version="1.0.0", lifespan=lifespan)
    app.state.context = context

    settings = context.settings if context is not None else get_settings()
    origins = [o.strip() for o in (settings.cors_origins or "").split(",") if o.strip()]
    allow_all = (not origins) or (origins == ["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=HTMLResponse)
    async def root():
        return render_index()

    @app.post("/transcribe")
    async def transcribe_endpoint(request: Request) -> JSONResponse:
        try:
            payload: Any = await request.json()
        except ValueError:
            payload = None
        return await transcribe_url(payload, request.app.state.context)

    @app.get("/health")
    async def health(request: Request) -> Dict[str, Any]:
        ctx: AppContext = request.app.state.context
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "build": {"git_sha": _STAMPED_SHA or "unknown", "time": _STAMPED_TIME or "unknown"},
            "yt_dlp_ok": _check_tool_available(ctx.settings.yt_dlp_binary),
            "ffmpeg_ok": _check_tool_available([ctx.settings.ffmpeg_binary]),
            "gemini_model": ctx.settings.gemini_model,
        }

    # Alias for proxies that prefix API paths
    @app.get("/api/health")
    async def health_alias(request: Request) -> Dict[str, Any]:
        return await health(request)

    return app


app = create_app()
