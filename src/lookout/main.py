import logging
from contextlib import asynccontextmanager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lookout.config import settings
from lookout.exceptions import InvalidMediaError, LookoutError
from lookout.services.duration import DurationEstimator
from lookout.services.frame_grabber import FfmpegFrameGrabber
from lookout.services.llm import GeminiClient
from lookout.services.pipeline import ReIdentificationService
from lookout.services.reidentifier import ReIdentifier
from lookout.services.snapshots import SnapshotExtractor
from lookout.routers import reidentify
from lookout.utils.media import MediaPolicy

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the model client and services on startup, close the client on shutdown."""
    logger.info("Starting Lookout service ...")

    if not settings.llm_configured:
        logger.warning("LLM_API_KEY is not set; every verdict will come back degraded")

    llm_client = GeminiClient(settings)
    try:
        grabber = FfmpegFrameGrabber(settings)
        if not grabber.is_available():
            logger.warning(
                "ffmpeg/ffprobe not found on PATH; snapshots will be marked failed"
            )

        app.state.reidentification = ReIdentificationService(
            estimator=DurationEstimator(settings),
            reidentifier=ReIdentifier(llm_client, settings),
            extractor=SnapshotExtractor.from_settings(settings, grabber),
            snapshots_enabled=settings.snapshot_enabled,
        )
        app.state.media_policy = MediaPolicy(settings)

        logger.info("Lookout service ready (model=%s).", llm_client.model)
        yield
    finally:
        logger.info("Shutting down Lookout service ...")
        await llm_client.close()


app = FastAPI(
    title="Lookout",
    description="Person re-identification in video via a multimodal LLM",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reidentify.router)


@app.exception_handler(LookoutError)
async def lookout_error_handler(request: Request, exc: LookoutError):
    status_code = 422 if isinstance(exc, InvalidMediaError) else 500
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})
