"""Utility functions shared across PromptTracker."""

import json
import os
from datetime import datetime
from typing import Any


def get_app_name() -> str:
    """Get the application name from environment variable.

    Returns:
        str: Application name from APP_NAME environment variable,
             defaults to "PromptTracker" if not set.
    """
    return os.getenv("APP_NAME", "PromptTracker")


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 text (the format stored in Text columns)."""
    return datetime.utcnow().isoformat()


def load_json(value: str, default: Any = None) -> Any:
    """Decode a JSON Text column, returning default for empty or broken values."""
    if not value:
        return default
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return default


def dump_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)
