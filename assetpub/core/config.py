"""Configuration management for assetpub."""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, field_validator

logger = structlog.get_logger()


class PublishConfig(BaseModel):
    """Publishing API, upload and polling configuration."""

    api_url: str = Field(
        default="https://api.expo.dev/graphql",
        description="GraphQL endpoint of the publishing API"
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    max_retries: int = Field(default=3, description="Connection retries handled by the HTTP transport")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    upload_concurrency: int = Field(default=15, description="Maximum concurrent asset uploads")
    hash_workers: int = Field(default=8, description="Threads used to hash assets")
    initial_poll_delay: float = Field(
        default=1.0,
        description="Seconds to wait after a polling round that confirmed nothing"
    )
    max_poll_delay: float = Field(default=10.0, description="Upper bound for the polling backoff")
    max_poll_rounds: int | None = Field(
        default=None,
        description="Give up after this many polling rounds (None polls until cancelled)"
    )

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate API URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid API URL: {v}")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout value."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """Validate max retries value."""
        if v < 0:
            raise ValueError("Max retries must be non-negative")
        return v

    @field_validator("upload_concurrency", "hash_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Validate concurrency values."""
        if v < 1:
            raise ValueError("Concurrency must be at least 1")
        return v

    @field_validator("initial_poll_delay", "max_poll_delay")
    @classmethod
    def validate_poll_delay(cls, v: float) -> float:
        """Validate polling delays."""
        if v < 0:
            raise ValueError("Poll delay must be non-negative")
        return v

    @field_validator("max_poll_rounds")
    @classmethod
    def validate_max_poll_rounds(cls, v: int | None) -> int | None:
        """Validate polling ceiling."""
        if v is not None and v < 1:
            raise ValueError("Max poll rounds must be at least 1")
        return v


class AppConfig(BaseModel):
    """Application configuration."""

    config_dir: Path = Field(
        default=Path.home() / ".config" / "assetpub",
        description="Configuration directory"
    )

    publish: PublishConfig = Field(default_factory=PublishConfig, description="Publishing settings")

    # Output settings
    output_format: str = Field(
        default="rich",
        description="Output format (rich, json, plain)"
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @classmethod
    def load(cls, config_file: Path | None = None) -> AppConfig:
        """Load configuration from file.

        Args:
            config_file: Path to config file, uses default if None

        Returns:
            Application configuration
        """
        if config_file is None:
            config_file = Path.home() / ".config" / "assetpub" / "config.json"

        if config_file.exists():
            with open(config_file) as f:
                data = json.load(f)
                return cls(**data)

        # Return defaults
        return cls()

    def save(self, config_file: Path | None = None) -> None:
        """Save configuration to file.

        Args:
            config_file: Path to config file, uses default if None
        """
        if config_file is None:
            config_file = self.config_dir / "config.json"

        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

        logger.info("config_saved", path=str(config_file))

    @field_validator("output_format")
    @classmethod
    def validate_output_format(cls, v: str) -> str:
        """Validate output format."""
        valid_formats = {"rich", "json", "plain"}
        if v not in valid_formats:
            raise ValueError(f"Invalid output format: {v}. Valid formats: {valid_formats}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Valid levels: {valid_levels}")
        return v
