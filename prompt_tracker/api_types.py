"""API type identifiers for the supported provider APIs.

An API type is the (provider, api) pair stored in a model config, flattened
into one identifier, e.g. ``("openai", "responses") -> "openai_responses"``.
"""

from enum import Enum
from typing import List, Optional


class ApiType(str, Enum):
    OPENAI_CHAT_COMPLETIONS = "openai_chat_completions"
    OPENAI_RESPONSES = "openai_responses"
    OPENAI_ASSISTANTS = "openai_assistants"
    ANTHROPIC_MESSAGES = "anthropic_messages"
    GOOGLE_GEMINI = "google_gemini"


# (provider, api) -> ApiType
_CONFIG_MAP = {
    ("openai", "chat_completions"): ApiType.OPENAI_CHAT_COMPLETIONS,
    ("openai", "responses"): ApiType.OPENAI_RESPONSES,
    ("openai", "assistants"): ApiType.OPENAI_ASSISTANTS,
    ("anthropic", "messages"): ApiType.ANTHROPIC_MESSAGES,
    ("google", "gemini"): ApiType.GOOGLE_GEMINI,
}

_DISPLAY_NAMES = {
    ApiType.OPENAI_CHAT_COMPLETIONS: "OpenAI Chat Completions",
    ApiType.OPENAI_RESPONSES: "OpenAI Responses",
    ApiType.OPENAI_ASSISTANTS: "OpenAI Assistants",
    ApiType.ANTHROPIC_MESSAGES: "Anthropic Messages",
    ApiType.GOOGLE_GEMINI: "Google Gemini",
}


def from_config(provider: str, api: str) -> Optional[ApiType]:
    """Map a (provider, api) pair to its ApiType, or None if unknown."""
    if not provider or not api:
        return None
    return _CONFIG_MAP.get((str(provider).lower(), str(api).lower()))


def to_config(api_type) -> Optional[dict]:
    """Inverse of from_config: ApiType -> {"provider": ..., "api": ...}."""
    if not is_valid(api_type):
        return None
    api_type = ApiType(api_type)
    for (provider, api), value in _CONFIG_MAP.items():
        if value == api_type:
            return {"provider": provider, "api": api}
    return None


def api_type_for(model_config: dict) -> Optional[ApiType]:
    model_config = model_config or {}
    return from_config(model_config.get("provider"), model_config.get("api"))


def all_types() -> List[ApiType]:
    return list(ApiType)


def is_valid(value) -> bool:
    try:
        ApiType(value)
    except ValueError:
        return False
    return True


def display_name(api_type) -> str:
    if not is_valid(api_type):
        return str(api_type)
    return _DISPLAY_NAMES[ApiType(api_type)]
