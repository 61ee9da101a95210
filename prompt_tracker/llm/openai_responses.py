"""OpenAI Responses API client implementation.

Conversation state lives server side: follow-up calls pass the previous
response id instead of resending the history.
"""

import time
from typing import List

from .base import LLMResponse, Message
from .normalizers import ResponsesNormalizer
from .openai_chat import OpenAIBaseClient

WEB_SEARCH_TOOLS = ("web_search", "web_search_preview")


def format_response_tools(tools: list, tool_config: dict = None) -> list:
    """Convert model_config tool names into Responses API tool definitions.

    Args:
        tools: Tool names ("web_search", "file_search", "code_interpreter",
               "functions") or ready-made tool dicts
        tool_config: Per-tool settings (vector_store_ids, function definitions)

    Returns:
        List of tool dicts accepted by responses.create
    """
    tool_config = tool_config or {}
    formatted = []

    for tool in tools or []:
        if isinstance(tool, dict):
            formatted.append(tool)
        elif tool == "web_search":
            formatted.append({"type": "web_search_preview"})
        elif tool == "file_search":
            tool_def = {"type": "file_search"}
            vector_store_ids = (tool_config.get("file_search") or {}).get("vector_store_ids") or []
            if vector_store_ids:
                tool_def["vector_store_ids"] = vector_store_ids
            formatted.append(tool_def)
        elif tool == "code_interpreter":
            formatted.append({"type": "code_interpreter", "container": {"type": "auto"}})
        elif tool == "functions":
            for func in tool_config.get("functions") or []:
                formatted.append({
                    "type": "function",
                    "name": func["name"],
                    "description": func.get("description", ""),
                    "parameters": func.get("parameters") or {},
                    "strict": func.get("strict", False),
                })
        else:
            formatted.append({"type": str(tool)})

    return formatted


class OpenAIResponsesClient(OpenAIBaseClient):
    """OpenAI Responses API client."""

    def call(
        self,
        prompt: str = None,
        messages: List[Message] = None,
        **kwargs
    ) -> LLMResponse:
        """Create a response.

        Args:
            prompt: User input text
            messages: Alternative input as role/content messages
            **kwargs: Optional parameters
                - instructions (str): System prompt
                - previous_response_id (str): Continue a conversation
                - input_items (list): Raw input items, e.g. function_call_output
                - tools (list): Tool definitions (already formatted)
                - temperature (float): Only sent on the first turn
                - max_tokens (int): Sent as max_output_tokens

        Returns:
            LLMResponse with result or error
        """
        start_time = time.time()

        try:
            previous_response_id = kwargs.get("previous_response_id")
            tools = kwargs.get("tools") or []

            api_params = {
                "model": self.model,
                "input": kwargs.get("input_items") or prompt or self._normalize_messages(prompt, messages),
            }
            if kwargs.get("instructions"):
                api_params["instructions"] = kwargs["instructions"]
            if tools:
                api_params["tools"] = tools
            if previous_response_id:
                api_params["previous_response_id"] = previous_response_id
            else:
                if kwargs.get("temperature") is not None:
                    api_params["temperature"] = kwargs["temperature"]
                if kwargs.get("max_tokens"):
                    api_params["max_output_tokens"] = kwargs["max_tokens"]
                if any(t.get("type") in WEB_SEARCH_TOOLS for t in tools):
                    api_params["include"] = ["web_search_call.action.sources"]

            response = self.client.responses.create(**api_params)
            normalized = ResponsesNormalizer.normalize(response)

            return LLMResponse(
                success=True,
                response_text=normalized.text,
                turnaround_ms=int((time.time() - start_time) * 1000),
                normalized=normalized
            )

        except Exception as e:
            return LLMResponse(
                success=False,
                error_message=f"OpenAI Responses API error: {e}",
                turnaround_ms=int((time.time() - start_time) * 1000)
            )
