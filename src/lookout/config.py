from pydantic_settings import BaseSettings, SettingsConfigDict

# 1x1 PNG shown in place of frames that could not be extracted
_PLACEHOLDER_DATA_URI = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwAD+wGmE3+gYwAAAABJRU5ErkJggg=="
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Model provider (Gemini generateContent REST API)
    llm_api_key: str = ""
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    llm_model_name: str = "gemini-2.0-flash"
    llm_temperature: float = 0.1
    llm_timeout: float = 120.0  # per-request read timeout, video prompts are slow
    llm_max_retries: int = 2
    llm_retry_delay: float = 2.0  # first retry delay (s), doubles afterwards
    llm_max_concurrent: int = 3
    llm_max_identifications: int = 3  # requested in the prompt, not enforced

    # Duration heuristic
    duration_min_seconds: float = 1.0
    duration_max_seconds: float = 120.0
    duration_bytes_per_second: float = 0.5 * 1024 * 1024  # ~4 Mbps

    # Snapshot extraction
    snapshot_enabled: bool = True
    snapshot_metadata_timeout_s: float = 4.0
    snapshot_seek_timeout_s: float = 2.5
    snapshot_retry_delay_s: float = 0.12
    snapshot_jpeg_quality: int = 3  # ffmpeg -q:v, 2 (best) .. 31
    snapshot_placeholder_data_uri: str = _PLACEHOLDER_DATA_URI
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"

    # Upload settings
    max_video_size_mb: int = 100
    image_extensions: str = ".jpeg,.jpg,.png,.gif,.bmp,.webp"
    video_extensions: str = ".mp4,.mov,.avi,.wmv,.webm,.mkv"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def max_video_size_bytes(self) -> int:
        return self.max_video_size_mb * 1024 * 1024

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_api_key)


settings = Settings()
