"""
Secrets loading.
Environment variables win; otherwise values come from secrets.toml.
"""
from typing import Dict, Any, Optional
import json
import logging
import os

import toml
from dotenv import load_dotenv

load_dotenv()  # Load .env file into environment variables

logger = logging.getLogger(__name__)


def _load_from_file(path: str = "secrets.toml") -> Optional[Dict[str, Any]]:
    """Load secrets from a local TOML file. Returns None if not possible."""
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning(f"Could not read secrets file {path}: {e}")
        return None


# Cache loaded secrets in module scope
_secrets_cache: Optional[Dict[str, Any]] = None


def load_secrets() -> Dict[str, Any]:
    """Load secrets from a local secrets.toml; return empty dict if none found."""
    global _secrets_cache
    if _secrets_cache is not None:
        return _secrets_cache

    base_dir = os.path.dirname(os.path.abspath(__file__))

    # Same folder as configs.py, its .streamlit subdir, then the CWD
    candidates = [
        os.getenv("SECRETS_FILE"),
        os.path.join(base_dir, "secrets.toml"),
        os.path.join(base_dir, ".streamlit", "secrets.toml"),
        "secrets.toml",
        ".streamlit/secrets.toml",
    ]

    for path in candidates:
        if not path:
            continue
        secrets = _load_from_file(path)
        if secrets:
            logger.info(f"Loaded secrets from: {path}")
            _secrets_cache = secrets
            return _secrets_cache

    logger.debug("No secrets file found")
    _secrets_cache = {}
    return _secrets_cache


def clear_secrets_cache():
    """Forget cached secrets (tests and config reloads)"""
    global _secrets_cache
    _secrets_cache = None


def get_users_db() -> Dict[str, Dict[str, Any]]:
    """
    Returns the user directory from environment variables or secrets file:
      { email: { password: str, role: str, employee_id?: int, employee_name?: str, display_name?: str } }
    """
    # Check environment variable first (JSON format)
    users_json = os.getenv("USERS_CONFIG_JSON")
    if users_json:
        try:
            users = json.loads(users_json)
            if isinstance(users, dict):
                return users
        except json.JSONDecodeError:
            logger.warning("USERS_CONFIG_JSON is not valid JSON, falling back to secrets file")

    secrets = load_secrets()
    users = secrets.get("users") or secrets.get("Users") or {}

    if isinstance(users, dict) and users and all(isinstance(v, dict) for v in users.values()):
        return users

    return {}


def get_supabase_secrets() -> Dict[str, Any]:
    """The [supabase] table of secrets.toml"""
    supabase = load_secrets().get("supabase", {})
    return supabase if isinstance(supabase, dict) else {}


def get_google_sheets_secrets() -> Dict[str, Any]:
    """
    The [google_sheets] table of secrets.toml.
    Keys: apps_script_url, api_key, spreadsheet_id, sheet_name
    """
    sheets = load_secrets().get("google_sheets", {})
    return sheets if isinstance(sheets, dict) else {}
