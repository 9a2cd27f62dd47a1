"""
Configuration management for the Thesis Diff Service.

This module handles all application configuration using Pydantic settings.
Environment variables are loaded from .env file or system environment.
"""

import os
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults and can be overridden via environment variables.
    """

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    api_title: str = Field(default="Thesis Diff Service", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")
    debug: bool = Field(default=False, description="Debug mode")

    # Celery Configuration
    celery_broker_url: str = Field(
        default="redis://localhost:6379/0",
        description="Celery broker URL"
    )
    celery_result_backend: str = Field(
        default="redis://localhost:6379/0",
        description="Celery result backend URL"
    )
    celery_task_timeout: int = Field(default=600, description="Task timeout in seconds")
    celery_max_retries: int = Field(default=3, description="Maximum task retries")
    celery_retry_delay: int = Field(default=60, description="Seconds between task retries")
    celery_result_expires: int = Field(default=3600, description="Seconds a finished job result is kept")

    # Upload Configuration
    max_file_size_mb: int = Field(default=20, description="Maximum file size in MB")
    min_file_size_bytes: int = Field(default=100, description="Minimum file size in bytes")
    temp_dir: str = Field(default="/tmp/thesis_diff", description="Temporary directory")
    cleanup_temp_files: bool = Field(default=True, description="Cleanup temporary files")

    # Text Extraction
    text_extraction_enabled: bool = Field(
        default=True,
        description="Whether parser-backed text extraction is available"
    )
    pdf_max_pages: int = Field(default=500, description="Maximum PDF pages to process")
    max_extracted_chars: int = Field(
        default=120000,
        description="Extracted text is cut to this many characters"
    )

    # Diff Engine
    diff_line_limit: int = Field(
        default=4000,
        description="Combined line count above which the line diff is truncated"
    )
    binary_sample_size: int = Field(
        default=3000,
        description="Characters inspected when checking for raw PDF streams"
    )
    binary_nonprintable_ratio: float = Field(
        default=0.08,
        ge=0.0,
        le=1.0,
        description="Share of non-printable characters that marks text as binary"
    )
    edit_overlap_threshold: float = Field(
        default=0.55,
        ge=0.0,
        le=1.0,
        description="Token overlap at which two lines count as an edit of each other"
    )
    max_addition_markers: int = Field(default=6, description="Addition markers in the PDF view")
    max_removal_markers: int = Field(default=4, description="Removal markers in the PDF view")
    max_edit_markers: int = Field(default=4, description="Edit markers in the PDF view")
    max_change_markers: int = Field(default=10, description="Total markers in the PDF view")
    marker_preview_chars: int = Field(default=220, description="Characters in a marker preview")

    # PDF View
    pdf_url_template: str = Field(
        default="/submissions/{locator}/file",
        description="Template turning a storage locator into a PDF URL"
    )
    pdf_view_with_ready_diff: bool = Field(
        default=True,
        description="Attach the PDF view to ready text diffs as well"
    )

    # Security
    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins"
    )
    enable_cors: bool = Field(default=True, description="Enable CORS")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    @field_validator("diff_line_limit", "binary_sample_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Diff limits must be positive."""
        if v <= 0:
            raise ValueError("Value must be greater than zero")
        return v

    @property
    def max_file_size_bytes(self) -> int:
        """Convert max file size from MB to bytes."""
        return self.max_file_size_mb * 1024 * 1024

    def ensure_directories(self) -> None:
        """Ensure required directories exist."""
        if self.temp_dir and not os.path.exists(self.temp_dir):
            os.makedirs(self.temp_dir, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.

    Returns:
        Settings: Application settings instance
    """
    settings = Settings()
    settings.ensure_directories()
    return settings
