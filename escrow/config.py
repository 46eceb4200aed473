"""
Model Escrow API: configuration via environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All settings read from env / .env file."""

    # Persistence: "memory" keeps everything in-process, "sql" uses database_url
    storage_backend: str = Field(
        default="memory",
        description="Store backend: 'memory' or 'sql'",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./escrow.db",
        description="Async SQLAlchemy DB URL (used when storage_backend='sql')",
    )

    # Uploads
    upload_dir: str = Field(default="./uploads")
    max_upload_mb: int = Field(default=50)
    allowed_extensions: list[str] = Field(default=["stl", "step", "obj", "ply"])

    # Dashboard
    recent_activity_limit: int = Field(default=10)

    # Service
    log_level: str = Field(default="INFO")
    cors_origins: list[str] = Field(default=["*"])

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
