"""Conversation runner for the OpenAI Responses API.

Turn 1 sends the instructions (system prompt); later turns only send the
new user message and chain on previous_response_id. Function calls are
answered with mock outputs by FunctionCallHandler before the turn ends.
"""

import dataclasses
from typing import List

from ..api_types import ApiType
from ..llm.base import NormalizedLLMResponse
from ..llm.openai_responses import format_response_tools
from .helpers import FunctionCallHandler, ToolResultExtractor
from .runner import SimulatedConversationRunner, ConversationParams


class ResponsesConversationRunner(SimulatedConversationRunner):
    """Runner for the Responses API."""

    DEFAULT_API_TYPE = ApiType.OPENAI_RESPONSES

    def reset(self):
        self.previous_response_id = None
        self.all_responses = []

    def call_assistant(self, user_message: str, messages: List[dict], params: ConversationParams, turn: int) -> NormalizedLLMResponse:
        initial_response = self._call_responses_api(
            user_message,
            system_prompt=params.system_prompt if turn == 1 else None,
            turn=turn
        )

        handler = FunctionCallHandler(
            client=self._client if not self.use_real_llm else self.client,
            tools=self._formatted_tools(),
            use_real_llm=self.use_real_llm,
            mock_function_outputs=params.mock_function_outputs,
            model=self.model
        )
        result = handler.process(initial_response, turn=turn)

        final_response = result["final_response"]
        self.previous_response_id = final_response.response_id
        self.all_responses.extend(result["all_responses"])

        # One assistant message per turn: every tool call and the summed usage
        return dataclasses.replace(
            final_response,
            tool_calls=result["all_tool_calls"],
            usage=self.token_aggregator.aggregate_from_responses(result["all_responses"])
        )

    def extra_output(self, messages: List[dict]) -> dict:
        output = ToolResultExtractor(self.all_responses).all_results()
        output["previous_response_id"] = self.previous_response_id
        return output

    def _call_responses_api(self, user_message: str, system_prompt: str, turn: int) -> NormalizedLLMResponse:
        if not self.use_real_llm:
            return self.mock_llm_response(turn, response_id=self.mock_id("resp"))

        kwargs = {"tools": self._formatted_tools()}
        if self.previous_response_id:
            kwargs["previous_response_id"] = self.previous_response_id
        else:
            kwargs["temperature"] = self.temperature
            if self.model_config.get("max_tokens"):
                kwargs["max_tokens"] = self.model_config["max_tokens"]
        if system_prompt:
            kwargs["instructions"] = system_prompt

        return self.unwrap(self.client.call(prompt=user_message, **kwargs))

    def _formatted_tools(self) -> list:
        return format_response_tools(self.tools, self.tool_config)
