"""
Configuration management for the FastAPI backend.
Loads settings from environment variables and secrets.toml
"""
from typing import Dict, Any, Optional
import os

from pydantic_settings import BaseSettings
from pydantic import Field

import configs


class Settings(BaseSettings):
    """Application settings"""

    # JWT Configuration
    jwt_secret: str = Field(default="your-secret-key-change-in-production", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expire_minutes: int = Field(default=1440, alias="JWT_EXPIRE_MINUTES")  # 24 hours

    # CORS
    cors_origins: list = Field(default=["http://localhost:3000", "http://localhost:5173"], alias="CORS_ORIGINS")

    # Google Sheets export
    google_apps_script_url: Optional[str] = Field(default=None, alias="GOOGLE_APPS_SCRIPT_URL")
    google_sheets_api_key: Optional[str] = Field(default=None, alias="GOOGLE_SHEETS_API_KEY")
    spreadsheet_id: Optional[str] = Field(default=None, alias="GOOGLE_SPREADSHEET_ID")
    sheet_name: str = Field(default="Onboarding-Tracker", alias="GOOGLE_SHEET_NAME")
    export_timeout_seconds: float = Field(default=30.0, alias="EXPORT_TIMEOUT_SECONDS")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_users_db() -> Dict[str, Dict[str, Any]]:
    """Get user directory from secrets"""
    return configs.get_users_db()


def get_supabase_config() -> Optional[Dict[str, str]]:
    """
    Returns Supabase configuration.
    Checks environment variables first, then falls back to secrets file.
    """
    # Check environment variables first
    env_config = {
        "url": os.getenv("SUPABASE_URL"),
        "anon_key": os.getenv("SUPABASE_ANON_KEY"),
        "service_role_key": os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    }

    # If all env vars present, return them
    if all(env_config.values()):
        return env_config

    # A single SUPABASE_KEY serves as both keys
    supabase_key = os.getenv("SUPABASE_KEY") or env_config["service_role_key"]
    if supabase_key and env_config["url"]:
        return {
            "url": env_config["url"],
            "anon_key": env_config["anon_key"] or supabase_key,
            "service_role_key": supabase_key
        }

    # Fallback to secrets file
    supabase = configs.get_supabase_secrets()

    if supabase.get("url"):
        return {
            "url": supabase.get("url"),
            "anon_key": supabase.get("anon_key"),
            "service_role_key": supabase.get("service_role_key") or supabase.get("anon_key")
        }

    return None


def get_sheets_config() -> Dict[str, Any]:
    """
    Google Sheets export configuration.
    Settings (env vars) win over the [google_sheets] table in secrets.toml.
    """
    secrets = configs.get_google_sheets_secrets()
    return {
        "apps_script_url": settings.google_apps_script_url or secrets.get("apps_script_url"),
        "api_key": settings.google_sheets_api_key or secrets.get("api_key"),
        "spreadsheet_id": settings.spreadsheet_id or secrets.get("spreadsheet_id"),
        "sheet_name": secrets.get("sheet_name") or settings.sheet_name,
        "timeout": settings.export_timeout_seconds,
    }
