"""LLM client factory.

Maps an API type (see prompt_tracker.api_types) to the client implementing it.
"""

import logging
from typing import List, Dict

from ..api_types import ApiType, display_name, is_valid
from .base import LLMClient
from .anthropic_messages import AnthropicMessagesClient
from .google_gemini import GoogleGeminiClient
from .openai_assistants import OpenAIAssistantsClient
from .openai_chat import OpenAIChatCompletionsClient
from .openai_responses import OpenAIResponsesClient

logger = logging.getLogger(__name__)

CLIENT_CLASSES = {
    ApiType.OPENAI_CHAT_COMPLETIONS: OpenAIChatCompletionsClient,
    ApiType.OPENAI_RESPONSES: OpenAIResponsesClient,
    ApiType.OPENAI_ASSISTANTS: OpenAIAssistantsClient,
    ApiType.ANTHROPIC_MESSAGES: AnthropicMessagesClient,
    ApiType.GOOGLE_GEMINI: GoogleGeminiClient,
}


def get_llm_client(api_type, model: str = None, assistant_id: str = None) -> LLMClient:
    """Get LLM client instance for an API type.

    Args:
        api_type: ApiType or its string value
        model: Vendor model identifier (client default when None)
        assistant_id: Required for the Assistants API

    Returns:
        LLMClient instance

    Raises:
        ValueError: If api_type is not supported or its configuration is incomplete
    """
    if not is_valid(api_type):
        raise ValueError(
            f"Unsupported API: {api_type}. "
            f"Supported APIs: {', '.join(t.value for t in ApiType)}"
        )

    api_type = ApiType(api_type)
    if api_type == ApiType.OPENAI_ASSISTANTS:
        if not assistant_id:
            raise ValueError("assistant_id is required for the Assistants API")
        return OpenAIAssistantsClient(assistant_id=assistant_id, model=model)

    return CLIENT_CLASSES[api_type](model=model)


def get_available_api_types() -> List[Dict[str, str]]:
    """List API types whose environment configuration is complete.

    Returns:
        List of dicts with api_type, display_name and default_model
    """
    available = []
    for api_type, client_class in CLIENT_CLASSES.items():
        missing = [
            config.primary_env for config in client_class.ENV_VARS
            if not client_class._get_env_var(config.name)
        ]
        if missing:
            logger.debug(f"Skipping {api_type.value}: missing {', '.join(missing)}")
            continue
        available.append({
            "api_type": api_type.value,
            "display_name": display_name(api_type),
            "default_model": client_class.DEFAULT_MODEL,
        })
    return available


def get_client_for_model(model: str) -> LLMClient:
    """Get a stateless client for a bare model name (judges, interlocutor).

    claude-* models use the Anthropic Messages API, gemini-* models use
    Gemini, everything else OpenAI Chat Completions.
    """
    name = (model or "").lower()
    if name.startswith("claude"):
        api_type = ApiType.ANTHROPIC_MESSAGES
    elif name.startswith("gemini"):
        api_type = ApiType.GOOGLE_GEMINI
    else:
        api_type = ApiType.OPENAI_CHAT_COMPLETIONS
    return get_llm_client(api_type, model=model)
