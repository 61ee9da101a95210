"""OpenAI Chat Completions client implementation."""

import time
from typing import List
from openai import OpenAI

from .base import LLMClient, LLMResponse, Message, EnvVarConfig
from .normalizers import ChatCompletionsNormalizer


class OpenAIBaseClient(LLMClient):
    """Shared configuration for the OpenAI API clients.

    Configuration from environment variables:
    - OPENAI_API_KEY
    """

    ENV_VARS = [
        EnvVarConfig("api_key", "OPENAI_API_KEY"),
    ]

    DEFAULT_MODEL = "gpt-4o"

    def __init__(self, model: str = None):
        """Initialize OpenAI client with environment configuration."""
        self._validate_env_vars()

        self.api_key = self._get_env_var("api_key")
        self.model = model or self.DEFAULT_MODEL
        self.client = OpenAI(api_key=self.api_key)

    def get_default_parameters(self) -> dict:
        return {
            "temperature": 0.7,
            "top_p": 1.0
        }


class OpenAIChatCompletionsClient(OpenAIBaseClient):
    """OpenAI Chat Completions API client (stateless, full history each call)."""

    def call(
        self,
        prompt: str = None,
        messages: List[Message] = None,
        **kwargs
    ) -> LLMResponse:
        """Execute a chat completion.

        Args:
            prompt: The prompt text to send (treated as 'user' role)
            messages: List of message dicts with 'role' and 'content' keys
            **kwargs: Optional parameters
                - temperature (float): Default 0.7
                - max_tokens (int): Omitted unless given
                - tools (list): Function tool definitions
                - response_format (dict): Structured output format

        Returns:
            LLMResponse with result or error
        """
        start_time = time.time()

        try:
            api_params = {
                "model": self.model,
                "messages": self._normalize_messages(prompt, messages),
                "temperature": kwargs.get("temperature", 0.7),
            }
            if kwargs.get("max_tokens"):
                api_params["max_tokens"] = kwargs["max_tokens"]

            tools = [t for t in kwargs.get("tools") or [] if isinstance(t, dict) and t.get("type") == "function"]
            if tools:
                api_params["tools"] = tools
            if kwargs.get("response_format"):
                api_params["response_format"] = kwargs["response_format"]

            response = self.client.chat.completions.create(**api_params)
            normalized = ChatCompletionsNormalizer.normalize(response)

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

    def call_structured(self, messages: List[Message], schema: dict, schema_name: str = "evaluation", **kwargs) -> LLMResponse:
        """Execute a chat completion constrained to a JSON schema.

        The response_text of a successful call is the JSON document.
        """
        response_format = {
            "type": "json_schema",
            "json_schema": {"name": schema_name, "schema": schema, "strict": True},
        }
        return self.call(messages=messages, response_format=response_format, **kwargs)
