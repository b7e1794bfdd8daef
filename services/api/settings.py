# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from typing import List, Optional
from pathlib import Path

class Settings(BaseSettings):
    # Storage settings
    db_url: str = "sqlite:///data/productsheet.db"

    # Where uploaded family photos / schematics are written.
    # Served back under /uploads/familias-produtos/<file>
    upload_dir: str = "data/uploads/familias-produtos"
    max_upload_bytes: int = 8 * 1024 * 1024

    # Active technical variables are read on every editor open;
    # keep them in a short TTL cache (seconds). 0 disables caching.
    variable_cache_ttl: int = 30

    # Root log level (DEBUG, INFO, WARNING, ...)
    log_level: str = "INFO"

    # CORS settings
    allowed_origins: str = "http://localhost:3000,http://localhost:3001,http://localhost:8000"

    # ---- HTTP client (client/ package) ----
    # Example in .env:
    # API_BASE_URL=https://erp.example.com/api
    api_base_url: str = "http://localhost:8000"
    api_timeout_seconds: float = 30.0
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent by the client on every request",
    )

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
