"""Upload constraint checks shared by the HTTP routes."""

import mimetypes
from pathlib import Path

from lookout.config import Settings
from lookout.exceptions import InvalidMediaError
from lookout.utils.data_uri import DataUri


def _split_extensions(value: str) -> set[str]:
    return {e.strip().lower() for e in value.split(",") if e.strip()}


class MediaPolicy:
    """Accepted photo/video types and the video size ceiling."""

    def __init__(self, settings: Settings) -> None:
        self._image_exts = _split_extensions(settings.image_extensions)
        self._video_exts = _split_extensions(settings.video_extensions)
        self.max_video_bytes = settings.max_video_size_bytes

    def check_photo(self, media: DataUri, filename: str | None = None) -> None:
        self._check(media, filename, "image", self._image_exts)

    def check_video(self, media: DataUri, filename: str | None = None) -> None:
        self._check(media, filename, "video", self._video_exts)

    def video_too_large(self, size: int) -> bool:
        return size > self.max_video_bytes

    @staticmethod
    def _check(
        media: DataUri,
        filename: str | None,
        kind: str,
        accepted: set[str],
    ) -> None:
        if media.kind != kind:
            raise InvalidMediaError(f"Expected {kind} data, got '{media.mime_type}'")
        if filename:
            suffix = Path(filename).suffix.lower()
        else:
            suffix = (mimetypes.guess_extension(media.mime_type) or "").lower()
        # Unknown MIME subtypes are let through, the provider decides.
        if suffix and suffix not in accepted:
            raise InvalidMediaError(
                f"Unsupported {kind} type '{suffix}'. Accepted: {', '.join(sorted(accepted))}"
            )
