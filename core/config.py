"""Pipeline configuration using pydantic-settings"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables and .env"""

    # Provider mode
    provider_mode: Literal["mock", "live"] = "mock"

    # API keys
    shotstack_api_key: str = ""
    shotstack_env: Literal["stage", "v1"] = "stage"
    anthropic_api_key: str = ""

    # Storage
    temp_dir: str = ".temp-preprocess"
    render_output_dir: str = "artifacts/renders"
    library_path: str = "artifacts/video_library.json"

    # Source clips are fetched from this URL; {source_id} is substituted
    source_url_template: str = "https://drive.google.com/uc?export=download&confirm=t&id={source_id}"

    # Transcoding
    transcode_timeout: float = Field(default=180.0, gt=0)
    local_render_timeout: float = Field(default=300.0, gt=0)

    # Cloud polling: 120 x 5s is roughly ten minutes
    poll_interval: float = Field(default=5.0, ge=0)
    poll_max_attempts: int = Field(default=120, ge=1)

    # Review / revise loop
    max_revisions: int = Field(default=2, ge=0, le=2)
    auto_revise: bool = True
    review_model: str = "claude-sonnet-4-20250514"
    review_frame_count: int = Field(default=8, ge=2)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"
