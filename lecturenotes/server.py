"""
lecturenotes.server - FastAPI upload endpoint.

POST /process accepts a multipart lecture video, runs the pipeline in the
request's worker thread and returns the PDF link. Clients and the
orchestrator are created once per process on first use.
"""

from __future__ import annotations

import threading
import uuid
from pathlib import Path
from typing import Any

from fastapi import FastAPI, File, Form, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from lecturenotes import __version__
from lecturenotes.logging import get_logger
from lecturenotes.pipeline import GENERIC_ERROR

log = get_logger("server")

MAX_UPLOAD_BYTES = 500 * 1024 * 1024
CHUNK_SIZE = 1024 * 1024

STATUS_PAGE = """<!doctype html>
<html>
  <head><title>Lecture Notes</title></head>
  <body>
    <h1>Lecture Notes Service</h1>
    <p>Version {version}. POST a lecture video to <code>/process</code>
    as the multipart field <code>video</code>.</p>
  </body>
</html>
"""


class UploadTooLarge(Exception):
    pass


def save_upload(upload: UploadFile, upload_dir: Path, limit: int = MAX_UPLOAD_BYTES) -> Path:
    """Stream an uploaded file to upload_dir under a unique name.

    Raises:
        UploadTooLarge: If the body exceeds limit bytes (partial file removed)
    """
    upload_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix.lower() or ".mp4"
    destination = upload_dir / f"{uuid.uuid4().hex}{suffix}"

    written = 0
    try:
        with destination.open("wb") as buffer:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > limit:
                    raise UploadTooLarge(f"{upload.filename} exceeds {limit} bytes")
                buffer.write(chunk)
    except BaseException:
        destination.unlink(missing_ok=True)
        raise
    return destination


def create_app(
    orchestrator: Any = None,
    config: Any = None,
    upload_dir: Path = Path("uploads"),
) -> FastAPI:
    """Build the web application.

    Args:
        orchestrator: Pipeline to run; built from config on first request when None
        config: LectureNotesConfig; loaded from lecturenotes.yaml when None
        upload_dir: Directory for incoming videos
    """
    app = FastAPI(title="Lecture Notes", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    state: dict[str, Any] = {"orchestrator": orchestrator}
    lock = threading.Lock()

    def get_orchestrator() -> Any:
        with lock:
            if state["orchestrator"] is None:
                from lecturenotes.config import load_config
                from lecturenotes.pipeline import build_orchestrator

                state["orchestrator"] = build_orchestrator(config or load_config())
            return state["orchestrator"]

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return STATUS_PAGE.format(version=__version__)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/process")
    def process(
        video: UploadFile | None = File(None),
        email: str | None = Form(None),
    ) -> Any:
        if video is None or not video.filename:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "No video uploaded."},
            )

        try:
            video_path = save_upload(video, upload_dir)
        except UploadTooLarge as e:
            log.warning("Rejected upload: %s", e)
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"error": "Video exceeds the 500 MB upload limit."},
            )
        except OSError:
            log.exception("Could not store upload %s", video.filename)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": GENERIC_ERROR},
            )
        finally:
            video.file.close()

        log.info("Received %s as %s", video.filename, video_path.name)
        try:
            result = get_orchestrator().run(video_path, email=email or None)
        except Exception:
            log.exception("Could not start pipeline")
            video_path.unlink(missing_ok=True)
            result = None

        if result is None or not result.success:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": GENERIC_ERROR},
            )
        return {"success": True, "pdfUrl": result.artifact_url, "provider": result.provider}

    return app


def serve(app: FastAPI, host: str = "0.0.0.0", port: int = 5000) -> None:
    import uvicorn

    uvicorn.run(app, host=host, port=port)
