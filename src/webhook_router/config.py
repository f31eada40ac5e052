"""
Configuration management for the webhook router.

Loads settings from environment variables (and a project-root .env file)
with sensible defaults.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


class Settings(BaseSettings):
    """Router settings loaded from environment variables."""

    # Signature verification
    WEBHOOK_SIGNING_SECRET: str = ''
    WEBHOOK_TOLERANCE_SECONDS: int = Field(default=300, ge=0)

    # Logging
    LOG_LEVEL: str = 'INFO'
    LOG_JSON: bool = False

    def missing(self) -> list[str]:
        """
        Validate that required configuration is present.

        Returns:
            List of missing required configuration keys
        """
        missing = []
        if not self.WEBHOOK_SIGNING_SECRET:
            missing.append('WEBHOOK_SIGNING_SECRET')
        return missing


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
