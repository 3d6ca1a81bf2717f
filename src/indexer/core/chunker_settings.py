"""
Chunking configuration read from environment variables.

Only three values affect chunk boundaries:
- INDEXER_CHUNK_SIZE: target chunk size in characters (default: 1024)
- INDEXER_OVERLAP: overlap for the fixed-window fallback (default: 128)
- INDEXER_MAX_CHUNK_SIZE: hard upper bound per chunk (default: 3 x chunk size)
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHUNK_SIZE = 1024
DEFAULT_OVERLAP = 128
MAX_CHUNK_SIZE_FACTOR = 3


class ChunkerSettings(BaseSettings):
    """Per-project chunking settings."""

    model_config = SettingsConfigDict(
        env_prefix="INDEXER_",
        env_file=".env",
        extra="ignore",
    )

    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=128, le=8192)
    overlap: int = Field(default=DEFAULT_OVERLAP, ge=0)
    max_chunk_size: int | None = None

    @model_validator(mode="after")
    def check_bounds(self) -> ChunkerSettings:
        if self.overlap >= self.chunk_size:
            raise ValueError(
                f"overlap must be between 0 and chunk_size ({self.chunk_size}), got {self.overlap}"
            )
        if self.max_chunk_size is not None and self.max_chunk_size < self.chunk_size:
            raise ValueError(
                f"max_chunk_size must be >= chunk_size ({self.chunk_size}), got {self.max_chunk_size}"
            )
        return self

    @property
    def effective_max_chunk_size(self) -> int:
        if self.max_chunk_size is not None:
            return self.max_chunk_size
        return self.chunk_size * MAX_CHUNK_SIZE_FACTOR
