"""Conversation runner for stateless completion APIs.

Chat Completions, Anthropic Messages and Gemini keep no server-side state,
so every turn resends the system prompt and the full history.
"""

from typing import List

from .runner import SimulatedConversationRunner, ConversationParams
from ..llm.base import NormalizedLLMResponse


class CompletionConversationRunner(SimulatedConversationRunner):
    """Runner for Chat Completions style APIs."""

    def call_assistant(self, user_message: str, messages: List[dict], params: ConversationParams, turn: int) -> NormalizedLLMResponse:
        if not self.use_real_llm:
            return self.mock_llm_response(turn)

        api_messages = []
        if params.system_prompt:
            api_messages.append({"role": "system", "content": params.system_prompt})
        api_messages.extend({"role": m["role"], "content": m["content"]} for m in messages)

        kwargs = {"temperature": self.temperature}
        if self.model_config.get("max_tokens"):
            kwargs["max_tokens"] = self.model_config["max_tokens"]
        function_tools = self.function_tools()
        if function_tools:
            kwargs["tools"] = function_tools

        return self.unwrap(self.client.call(messages=api_messages, **kwargs))

    def function_tools(self) -> list:
        """Function definitions from tool_config in the provider's tool format."""
        functions = self.tool_config.get("functions") or []
        if self.provider == "anthropic":
            return [
                {
                    "name": func["name"],
                    "description": func.get("description", ""),
                    "input_schema": func.get("parameters") or {"type": "object", "properties": {}},
                }
                for func in functions
            ]
        return [
            {
                "type": "function",
                "function": {
                    "name": func["name"],
                    "description": func.get("description", ""),
                    "parameters": func.get("parameters") or {},
                },
            }
            for func in functions
        ]
