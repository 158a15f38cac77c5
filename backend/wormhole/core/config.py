"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/wormhole/core/config.py
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent.parent
_project_root = _backend_dir.parent
ENV_FILE = _project_root / ".env"
# Fallback: try in backend/ directory if not found in project root
if not ENV_FILE.exists():
    ENV_FILE = _backend_dir / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """Application settings"""
    
    # Application
    app_name: str = "Wormhole"
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")
    
    # Logging
    log_uvicorn_access: bool = Field(default=False, description="Enable Uvicorn access logging")
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"wormhole.services": "DEBUG"})'
    )
    log_format: str = Field(
        default="text",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_file_enabled: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/wormhole.log",
        description="Path to log file (relative to project root)"
    )
    log_file_rotation: str = Field(
        default="midnight",
        description="Log file rotation: 'midnight' or 'W0'..'W6' (weekly)"
    )
    log_file_retention: int = Field(
        default=30,
        ge=1,
        description="Number of days to keep log files"
    )
    log_sensitive_data: bool = Field(
        default=False,
        description="Enable logging of sensitive data (secrets, signatures) - NOT RECOMMENDED"
    )
    
    # Resolution
    fetch_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Timeout for the default HTTP fetcher (seconds)"
    )
    retry_failed_sources: bool = Field(
        default=False,
        description="Start a fresh attempt for a previously failed uri on next demand instead of rejecting it"
    )
    sandbox_allowed_modules: str = Field(
        default="math,json",
        description="Modules compiled sources may obtain through require() (comma-separated)"
    )
    
    # Dev server
    api_host: str = Field(default="127.0.0.1", description="Dev server host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="Dev server port")
    sources_dir: str = Field(
        default="sources",
        description="Directory served by the dev server (relative to project root)"
    )
    signing_secret: str = Field(default="", description="Secret used to sign served sources")
    signature_header: str = Field(
        default="X-Signature",
        description="Response header carrying the source signature"
    )
    
    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only json and text formats are supported"""
        if v.lower() not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v.lower()
    
    @property
    def sandbox_allowed_modules_list(self) -> List[str]:
        """Parse allowed sandbox modules from comma-separated string"""
        return [name.strip() for name in self.sandbox_allowed_modules.split(",") if name.strip()]
    
    @property
    def sources_path(self) -> Path:
        """Resolve sources directory relative to project root"""
        path = Path(self.sources_dir)
        if not path.is_absolute():
            path = _project_root / path
        return path
    
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
