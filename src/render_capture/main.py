"""
render-capture Main Application
===============================

FastAPI front end for the capture-and-encode service.

Endpoints:
    POST /frame   - Multipart upload of one frame (field "file")
    POST /encode  - Encode the uploaded frames (JSON body, all fields optional)
    GET  /*       - Static files under the service root ("/" -> index.html)
    *    /*       - 405 for every other method

Every request is independent: it is received, dispatched to the frame store,
the encode orchestrator or the static resolver, and answered with a plain
text body. Request-level errors are converted to status codes at a single
exception handler; none of them stop the process.
"""

import asyncio
import json
import logging
import socket
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, PlainTextResponse
from starlette.datastructures import UploadFile

from render_capture import __version__
from render_capture.config import Settings, load_config, setup_logging
from render_capture.encode import EncodeOrchestrator
from render_capture.errors import (
    InvalidEncodeBody,
    MissingFile,
    NotFound,
    RenderCaptureError,
)
from render_capture.models import EncodeRequest
from render_capture.server import PortBinder, bound_port
from render_capture.storage import FrameStore, PathResolver


logger = logging.getLogger(__name__)


# =============================================================================
# Request Helpers
# =============================================================================

def parse_encode_body(raw: bytes, strict: bool = False) -> Any:
    """
    Decode an /encode body.

    Malformed JSON becomes an empty object, so every field takes its
    default. In strict mode a malformed or non-object body is rejected;
    an empty body is still accepted since every field is optional.
    """
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        if strict:
            raise InvalidEncodeBody()
        logger.warning("Malformed JSON on /encode, using defaults")
        return {}
    if strict and not isinstance(body, dict):
        raise InvalidEncodeBody()
    return body


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except (OSError, ValueError):
        return False


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application for one service instance.

    All state lives on ``app.state``; two apps built from different
    settings share nothing.

    Args:
        settings: Service configuration. Defaults to ``load_config()``.

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = load_config()

    storage = settings.storage
    frame_store = FrameStore(storage.frames_path)
    resolver = PathResolver(storage.root, storage.default_document)
    orchestrator = EncodeOrchestrator(
        frame_store,
        root=storage.root,
        output_file=storage.output_file,
        binary=settings.encoder.binary,
        forward_output=settings.encoder.forward_output,
        stderr_tail_lines=settings.encoder.stderr_tail_lines,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await frame_store.ensure_working_directory()
        logger.info(f"Starting {settings.service.name} {settings.service.version}")
        logger.info(f"Service root: {storage.root}")
        logger.info(f"Frames directory: {frame_store.directory}")
        yield
        logger.info("Shutdown complete")

    app = FastAPI(
        title="render-capture",
        description="Frame capture and video encode service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.frame_store = frame_store
    app.state.resolver = resolver
    app.state.orchestrator = orchestrator
    app.state.port = None

    @app.exception_handler(RenderCaptureError)
    async def render_capture_error(
        request: Request,
        exc: RenderCaptureError,
    ) -> PlainTextResponse:
        logger.info(f"{request.method} {request.url.path} -> {exc.http_status}: {exc.message}")
        return PlainTextResponse(exc.message, status_code=exc.http_status)

    # =========================================================================
    # Frame Upload
    # =========================================================================

    @app.post("/frame")
    async def upload_frame(request: Request) -> PlainTextResponse:
        """Store one uploaded frame under its own file name."""
        form = await request.form()
        try:
            upload = form.get("file")
            if not isinstance(upload, UploadFile):
                raise MissingFile()
            data = await upload.read()
            await frame_store.store_frame(upload.filename, data)
        finally:
            await form.close()
        return PlainTextResponse("ok")

    # =========================================================================
    # Encode
    # =========================================================================

    @app.post("/encode")
    async def encode(request: Request) -> PlainTextResponse:
        """
        Encode the frames currently on disk.

        Returns 400 if fewer than ``totalFrames`` frames exist and 500 with
        the encoder's diagnostics if it fails.
        """
        body = parse_encode_body(
            await request.body(),
            strict=settings.encoder.strict_json,
        )
        encode_request = EncodeRequest.from_body(body)

        result = await orchestrator.encode(encode_request)
        if not result.ok:
            return PlainTextResponse(result.message, status_code=500)
        return PlainTextResponse(result.summary)

    # =========================================================================
    # Static Files
    # =========================================================================

    @app.api_route("/{path:path}", methods=["GET", "HEAD"])
    async def static_file(path: str) -> FileResponse:
        """Serve a file under the service root, or 404."""
        target = resolver.resolve(path)
        if not await asyncio.to_thread(_is_file, target):
            raise NotFound(path)
        return FileResponse(target)

    @app.api_route(
        "/{path:path}",
        methods=["POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        include_in_schema=False,
    )
    async def method_not_allowed(path: str) -> PlainTextResponse:
        return PlainTextResponse("method not allowed", status_code=405)

    return app


# =============================================================================
# Main Entry Point
# =============================================================================

def bind_listener(settings: Settings) -> socket.socket:
    """
    Bind the listening socket described by ``settings.server``.

    Falls back to an ephemeral port only when no explicit port is set.

    Raises:
        OSError: On any unrecoverable bind failure
    """
    return PortBinder(
        settings.server.host,
        settings.server.preferred_port,
        explicit=settings.server.port_is_explicit,
    ).bind()


def serve(settings: Settings) -> None:
    """
    Bind the listening socket and run the server until interrupted.

    Bind failures propagate: they are the one fatal startup condition.
    """
    import uvicorn

    app = create_app(settings)

    sock = bind_listener(settings)
    app.state.port = bound_port(sock)

    logger.info(f"Render server running on http://{settings.server.host}:{app.state.port}/")

    config = uvicorn.Config(
        app,
        log_level=settings.logging.level.lower(),
    )
    uvicorn.Server(config).run(sockets=[sock])


def main() -> None:
    settings = load_config()
    setup_logging(settings)
    serve(settings)


if __name__ == "__main__":
    main()
