"""Configuration management using Pydantic settings."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

UI_DIR = Path(__file__).parent / "ui" / "admin"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Plugin Foundry"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./foundry.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Admin API mount point; also cut from request URLs to get the callback URL
    admin_prefix: str = "/foundry/admin"
    admin_ui_dir: Path = UI_DIR

    # Build pipeline
    workspace_root: Path = Path("cicd")
    git_executable: str = "git"
    build_executable: str = "mvn"
    build_property_prefix: str = "foundry"
    build_timeout: Optional[float] = None  # seconds; None waits forever

    # Accounts (JSON in env: USERS='{"alice": "secret"}', ADMIN_USERS='["alice"]')
    users: dict[str, str] = {}
    admin_users: list[str] = []


settings = Settings()
