"""LLM client modules for PromptTracker."""

from .base import LLMClient, LLMResponse, LLMCallError, NormalizedLLMResponse, EnvVarConfig
from .factory import get_llm_client, get_available_api_types, get_client_for_model

__all__ = [
    "LLMClient",
    "LLMResponse",
    "LLMCallError",
    "NormalizedLLMResponse",
    "EnvVarConfig",
    "get_llm_client",
    "get_available_api_types",
    "get_client_for_model",
]
