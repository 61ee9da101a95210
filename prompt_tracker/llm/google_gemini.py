"""Google Gemini client implementation.

Uses the google-generativeai package.
"""

import logging
import time
from typing import List
import google.generativeai as genai

from .base import LLMClient, LLMResponse, Message, EnvVarConfig, NormalizedLLMResponse
from .normalizers import _usage

logger = logging.getLogger(__name__)


class GoogleGeminiClient(LLMClient):
    """Google Gemini client.

    Configuration from environment variables:
    - GOOGLE_GEMINI_API_KEY or GEMINI_API_KEY
    """

    DEFAULT_MODEL = "gemini-2.0-flash"

    ENV_VARS = [
        EnvVarConfig("api_key", "GOOGLE_GEMINI_API_KEY", "GEMINI_API_KEY"),
    ]

    def __init__(self, model: str = None):
        """Initialize Google Gemini client with environment configuration."""
        self._validate_env_vars()

        self.api_key = self._get_env_var("api_key")
        self.model = model or self.DEFAULT_MODEL

        genai.configure(api_key=self.api_key)

    def call(
        self,
        prompt: str = None,
        messages: List[Message] = None,
        **kwargs
    ) -> LLMResponse:
        """Execute Google Gemini call.

        Note:
            Gemini uses different role names:
            - "assistant" -> "model"
            - "system" -> handled as system instruction
        """
        start_time = time.time()

        try:
            generation_config = genai.GenerationConfig(
                temperature=kwargs.get("temperature", 0.7),
                max_output_tokens=kwargs.get("max_tokens") or 4096
            )

            system_instruction = kwargs.get("system")
            chat_messages = []
            for msg in self._normalize_messages(prompt, messages):
                if msg["role"] == "system":
                    system_instruction = system_instruction or msg["content"]
                    continue
                gemini_role = "model" if msg["role"] == "assistant" else "user"
                chat_messages.append({"role": gemini_role, "parts": [msg["content"]]})

            if system_instruction:
                model = genai.GenerativeModel(self.model, system_instruction=system_instruction)
            else:
                model = genai.GenerativeModel(self.model)

            chat = model.start_chat(history=chat_messages[:-1])
            response = chat.send_message(
                chat_messages[-1]["parts"],
                generation_config=generation_config
            )

            usage = getattr(response, "usage_metadata", None)
            normalized = NormalizedLLMResponse(
                text=response.text,
                usage=_usage(
                    getattr(usage, "prompt_token_count", 0),
                    getattr(usage, "candidates_token_count", 0)
                ),
                model=self.model,
                raw_response=response
            )

            return LLMResponse(
                success=True,
                response_text=normalized.text,
                turnaround_ms=int((time.time() - start_time) * 1000),
                normalized=normalized
            )

        except Exception as e:
            logger.error(f"Gemini API error: {e}")

            return LLMResponse(
                success=False,
                error_message=str(e),
                turnaround_ms=int((time.time() - start_time) * 1000)
            )

    def get_default_parameters(self) -> dict:
        return {
            "temperature": 0.7,
            "max_tokens": 4096
        }
