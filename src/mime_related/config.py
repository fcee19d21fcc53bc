"""
Library configuration management.

This module handles configuration from environment variables using Pydantic Settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Library configuration from environment variables.

    Every setting can be overridden with an environment variable carrying the
    ``MIME_RELATED_`` prefix (e.g. ``MIME_RELATED_LOG_LEVEL=DEBUG``).
    """

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Streaming
    read_chunk_size: int = 8192  # Bytes pulled from the source stream per read

    model_config = {
        "env_prefix": "MIME_RELATED_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()
