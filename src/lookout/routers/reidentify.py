import mimetypes

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from lookout.config import settings
from lookout.dependencies import get_media_policy, get_reidentification_service
from lookout.exceptions import InvalidMediaError
from lookout.schemas.analysis import AnalysisRequest, AnalysisVerdict, HealthResponse
from lookout.schemas.result import ReIdentificationResult
from lookout.schemas.snapshot import SnapshotRequest, SnapshotResponse
from lookout.services.frame_grabber import FfmpegFrameGrabber
from lookout.services.pipeline import ReIdentificationService
from lookout.utils.data_uri import DataUri, parse_data_uri
from lookout.utils.media import MediaPolicy

router = APIRouter(prefix="/api/v1", tags=["reidentify"])


def _parse(uri: str, field: str) -> DataUri:
    try:
        return parse_data_uri(uri)
    except InvalidMediaError as e:
        raise HTTPException(status_code=422, detail=f"{field}: {e}")


def _check_photo(policy: MediaPolicy, photo: DataUri, filename: str | None = None) -> None:
    try:
        policy.check_photo(photo, filename)
    except InvalidMediaError as e:
        raise HTTPException(status_code=415, detail=str(e))


def _check_video(policy: MediaPolicy, video: DataUri, filename: str | None = None) -> None:
    if policy.video_too_large(len(video.data)):
        raise HTTPException(
            status_code=413,
            detail=f"Video exceeds the {policy.max_video_bytes // (1024 * 1024)}MB limit",
        )
    try:
        policy.check_video(video, filename)
    except InvalidMediaError as e:
        raise HTTPException(status_code=415, detail=str(e))


async def _read_upload(file: UploadFile, fallback_mime: str) -> DataUri:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=422, detail="Please upload both a photo and a video.")
    mime = file.content_type
    if not mime or mime == "application/octet-stream":
        mime = mimetypes.guess_type(file.filename or "")[0] or fallback_mime
    return DataUri(mime_type=mime.lower(), data=data)


@router.post("/reidentify", response_model=AnalysisVerdict)
async def reidentify(
    body: AnalysisRequest,
    service: ReIdentificationService = Depends(get_reidentification_service),
    policy: MediaPolicy = Depends(get_media_policy),
) -> AnalysisVerdict:
    """Ask whether the photographed person appears in the video.

    Internal failures come back as a negative verdict, not an HTTP error.
    """
    _check_photo(policy, _parse(body.photo_data_uri, "photoDataUri"))
    _check_video(policy, _parse(body.video_data_uri, "videoDataUri"))
    return await service.reidentify_person(body)


@router.post("/reidentify/upload", response_model=ReIdentificationResult)
async def reidentify_upload(
    photo: UploadFile = File(...),
    video: UploadFile = File(...),
    video_duration: float | None = Form(default=None, gt=0),
    extract_snapshots: bool = Form(default=True),
    service: ReIdentificationService = Depends(get_reidentification_service),
    policy: MediaPolicy = Depends(get_media_policy),
) -> ReIdentificationResult:
    """Upload a photo and a video; get the verdict with extracted snapshots."""
    photo_media = await _read_upload(photo, "image/jpeg")
    video_media = await _read_upload(video, "video/mp4")
    _check_photo(policy, photo_media, photo.filename)
    _check_video(policy, video_media, video.filename)

    request = AnalysisRequest(
        photo_data_uri=photo_media.to_string(),
        video_data_uri=video_media.to_string(),
        video_duration=video_duration,
    )
    return await service.reidentify_with_snapshots(
        request, extract_snapshots=extract_snapshots
    )


@router.post("/snapshots", response_model=SnapshotResponse)
async def extract_snapshots(
    body: SnapshotRequest,
    service: ReIdentificationService = Depends(get_reidentification_service),
    policy: MediaPolicy = Depends(get_media_policy),
) -> SnapshotResponse:
    """Capture frames for identifications returned by an earlier verdict."""
    video = _parse(body.video_data_uri, "videoDataUri")
    _check_video(policy, video)
    snapshots = await service.extract_snapshots(video, body.identifications)
    return SnapshotResponse(snapshots=snapshots)


@router.get("/health", response_model=HealthResponse)
async def health(
    service: ReIdentificationService = Depends(get_reidentification_service),
) -> HealthResponse:
    """Check service health: model key configured, model reachable, ffmpeg on PATH."""
    grabber = service.extractor.grabber
    ffmpeg_available = (
        grabber.is_available() if isinstance(grabber, FfmpegFrameGrabber) else True
    )
    llm_reachable = await service.is_model_reachable()
    return HealthResponse(
        llm_configured=settings.llm_configured,
        llm_reachable=llm_reachable,
        ffmpeg_available=ffmpeg_available,
    )
