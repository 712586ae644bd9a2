# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from typing import List
from pathlib import Path

class Settings(BaseSettings):
    # Storage settings
    # Only the JSON file store ships today; override via .env (STORAGE_BACKEND=json)
    storage_backend: str = "json"
    data_dir: str = "data"

    # CORS settings
    allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    # Public share links are built as <public_base_url>/view?token=...
    public_base_url: str = "http://localhost:5173"

    # ---- Report branding ----
    brand_name: str = "Lunex"
    report_attribution: str = Field(
        default="Shared securely via Lunex - lunexweb.com",
        description="Footer text stamped on every page of an exported file report",
    )

    # ---- Identifier formats ----
    # Example identifiers used to infer prefix + zero padding for auto numbering.
    reference_format_example: str = "REF-001"
    project_number_format_example: str = "PRJ-0001"

    # How long an open view-share gate stays cached in this process. Lockouts
    # are stored on the share itself and never expire.
    share_attempts_ttl_seconds: int = 3600
    share_attempts_max_tokens: int = 10_000

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
