"""Conversation runner for the OpenAI Assistants API.

The whole conversation happens in one thread; each turn only sends the new
user message and the assistant's configured instructions apply.
"""

from typing import List

from ..api_types import ApiType
from ..llm.base import NormalizedLLMResponse
from .runner import SimulatedConversationRunner, ConversationParams


class AssistantsConversationRunner(SimulatedConversationRunner):
    """Runner for the Assistants API."""

    DEFAULT_API_TYPE = ApiType.OPENAI_ASSISTANTS

    @property
    def assistant_id(self):
        return self.model_config.get("assistant_id")

    @property
    def model(self) -> str:
        return self.model_config.get("model") or self.assistant_id

    def reset(self):
        self.thread_id = None

    def call_assistant(self, user_message: str, messages: List[dict], params: ConversationParams, turn: int) -> NormalizedLLMResponse:
        if not self.use_real_llm:
            if self.thread_id is None:
                self.thread_id = self.mock_id("thread")
            return self.mock_llm_response(
                turn, thread_id=self.thread_id, run_id=self.mock_id("run"), annotations=[]
            )

        if self.thread_id is None:
            self.thread_id = self.client.create_thread()

        response = self.unwrap(self.client.call(prompt=user_message, thread_id=self.thread_id))
        self.thread_id = response.thread_id or self.thread_id
        return response

    def extra_output(self, messages: List[dict]) -> dict:
        output = super().extra_output(messages)
        output["thread_id"] = self.thread_id
        return output
