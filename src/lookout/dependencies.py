from fastapi import Request

from lookout.services.pipeline import ReIdentificationService
from lookout.utils.media import MediaPolicy


def get_reidentification_service(request: Request) -> ReIdentificationService:
    """Retrieve the ReIdentificationService singleton from app state."""
    return request.app.state.reidentification


def get_media_policy(request: Request) -> MediaPolicy:
    """Retrieve the upload MediaPolicy from app state."""
    return request.app.state.media_policy
