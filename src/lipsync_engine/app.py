import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Union

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .assembler import ErrorResponse, assemble_response
from .audio import UploadStore
from .errors import LipSyncError, UploadMissing
from .pipeline import LipSyncPipeline
from .settings import settings as runtime_settings

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "audio"

upload_store = UploadStore(
    directory=runtime_settings.uploads.directory,
    max_bytes=runtime_settings.uploads.max_bytes,
    retain=runtime_settings.uploads.retain,
)
lipsync_pipeline = LipSyncPipeline.from_settings(runtime_settings)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    upload_store.ensure_directory()
    logger.info("lipsync.startup upload_dir=%s", upload_store.directory)
    logger.info(
        "lipsync.startup ffmpeg=%s rhubarb=%s",
        runtime_settings.transcoder.executable,
        runtime_settings.analyzer.executable,
    )
    yield
    logger.info("lipsync.shutdown")


app = FastAPI(title="lipsync-engine", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(runtime_settings.server.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LipSyncError)
async def _lipsync_error_handler(request: Request, exc: LipSyncError) -> JSONResponse:
    detail = exc.detail if runtime_settings.server.expose_error_detail else None
    payload = ErrorResponse(error=exc.message, detail=detail)
    return JSONResponse(payload.model_dump(exclude_none=True), status_code=exc.status_code)


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("lipsync.upload.unhandled", extra={"path": request.url.path})
    payload = ErrorResponse(error="Internal server error")
    return JSONResponse(payload.model_dump(exclude_none=True), status_code=500)


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "service": "lipsync-engine",
        "transcoder": runtime_settings.transcoder.executable,
        "analyzer": runtime_settings.analyzer.executable,
        "recognizer": runtime_settings.analyzer.recognizer,
    }


@app.post("/lipsync/upload")
async def lipsync_upload(audio: Union[UploadFile, str, None] = File(default=None)) -> JSONResponse:
    # a plain form field under the upload name is treated as no upload
    if audio is None or isinstance(audio, str):
        raise UploadMissing(UPLOAD_FIELD)

    stored = await upload_store.save(audio)
    logger.info("lipsync.upload.received %s", stored.path, extra={"size": stored.size})

    try:
        async with lipsync_pipeline.run(stored.path) as result:
            if runtime_settings.uploads.echo_audio == "transcoded":
                echo_path = result.audio_path
            else:
                echo_path = stored.path
            response = await assemble_response(result.lipsync, echo_path)
    finally:
        upload_store.discard(stored)

    return JSONResponse(response.model_dump())


def main() -> None:
    import uvicorn

    configure_logging(runtime_settings.server.log_level)
    logger.info("lipsync.server.starting port=%s", runtime_settings.server.port)
    uvicorn.run(
        "lipsync_engine.app:app",
        host=runtime_settings.server.host,
        port=runtime_settings.server.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
