from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        env_prefix='PAGECRAFT_',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'PageCraft PDF Toolkit'
    producer: str = 'PageCraft'

    # Input limits
    max_input_bytes: int = 100 * 1024 * 1024

    # Page selection
    quick_select_count: int = 5
    merge_min_documents: int = 2

    # Watermark defaults
    watermark_font_size: float = 50.0
    watermark_rotation: float = 45.0
    watermark_gray: float = 0.7
    watermark_font: str = 'helv'

    # Annotation defaults
    annotation_font: str = 'helv'
    # TrueType/OpenType file used when text falls outside Latin-1
    unicode_font_file: Path | None = None
    highlight_opacity: float = 0.35

    # Serialization
    serialize_garbage: int = 3
    serialize_deflate: bool = True
    verify_output: bool = True

    # CLI
    output_dir: Path = Field(default=Path('./output'))
    log_level: str = Field(
        default='INFO',
        validation_alias=AliasChoices('PAGECRAFT_LOG_LEVEL', 'LOG_LEVEL'),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
