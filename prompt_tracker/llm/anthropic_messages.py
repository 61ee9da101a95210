"""Anthropic Messages API client implementation.

Uses the official Anthropic Python SDK.
"""

import time
from typing import List
import anthropic

from .base import LLMClient, LLMResponse, Message, EnvVarConfig
from .normalizers import AnthropicMessagesNormalizer


class AnthropicMessagesClient(LLMClient):
    """Anthropic Claude client.

    Configuration from environment variables:
    - ANTHROPIC_API_KEY or ANTHROPIC_CLAUDE_API_KEY
    """

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    DEFAULT_MAX_TOKENS = 4096

    ENV_VARS = [
        EnvVarConfig("api_key", "ANTHROPIC_API_KEY", "ANTHROPIC_CLAUDE_API_KEY"),
    ]

    def __init__(self, model: str = None):
        """Initialize Anthropic client with environment configuration."""
        self._validate_env_vars()

        self.api_key = self._get_env_var("api_key")
        self.model = model or self.DEFAULT_MODEL
        self.client = anthropic.Anthropic(api_key=self.api_key)

    def call(
        self,
        prompt: str = None,
        messages: List[Message] = None,
        **kwargs
    ) -> LLMResponse:
        """Execute Claude API call.

        Args:
            prompt: The prompt text to send (treated as 'user' role)
            messages: List of message dicts; a 'system' message becomes the
                      separate system parameter
            **kwargs: Optional parameters
                - system (str): System prompt (overrides a system message)
                - temperature (float): Default 0.7
                - max_tokens (int): Default 4096 (required by the API)
                - tools (list): Tool definitions in Anthropic format

        Returns:
            LLMResponse with result or error
        """
        start_time = time.time()

        try:
            system_content = kwargs.get("system")
            api_messages = []
            for msg in self._normalize_messages(prompt, messages):
                if msg["role"] == "system":
                    system_content = system_content or msg["content"]
                    continue
                api_messages.append(msg)

            api_params = {
                "model": self.model,
                "max_tokens": kwargs.get("max_tokens") or self.DEFAULT_MAX_TOKENS,
                "messages": api_messages,
                "temperature": kwargs.get("temperature", 0.7),
            }
            if system_content:
                api_params["system"] = system_content

            tools = [t for t in kwargs.get("tools") or [] if isinstance(t, dict) and "input_schema" in t]
            if tools:
                api_params["tools"] = tools

            response = self.client.messages.create(**api_params)
            normalized = AnthropicMessagesNormalizer.normalize(response)

            return LLMResponse(
                success=True,
                response_text=normalized.text,
                turnaround_ms=int((time.time() - start_time) * 1000),
                normalized=normalized
            )

        except Exception as e:
            return LLMResponse(
                success=False,
                error_message=str(e),
                turnaround_ms=int((time.time() - start_time) * 1000)
            )

    def get_default_parameters(self) -> dict:
        return {
            "temperature": 0.7,
            "max_tokens": self.DEFAULT_MAX_TOKENS
        }
