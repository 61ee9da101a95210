"""Simulated conversation runner base class.

A simulated conversation alternates user and assistant turns:

    turn 1:  user = first_user_message       -> assistant reply
    turn N:  user = interlocutor simulation  -> assistant reply

The loop stops after max_turns or when the interlocutor ends the
conversation. Single-turn runs are the same loop with max_turns=1.

Subclasses implement call_assistant() for their provider API; everything
else (message bookkeeping, mock responses, output shape) lives here.
"""

import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .. import config
from ..api_types import ApiType, api_type_for
from ..llm.base import LLMClient, LLMCallError, LLMResponse, NormalizedLLMResponse
from ..llm.factory import get_llm_client
from .helpers import InterlocutorSimulator, TokenAggregator, ToolResultExtractor

logger = logging.getLogger(__name__)


@dataclass
class ConversationParams:
    """Inputs of one conversation run."""
    system_prompt: Optional[str]
    first_user_message: str
    max_turns: int = 1
    interlocutor_prompt: Optional[str] = None
    mock_function_outputs: Optional[dict] = None


@dataclass
class ConversationMessage:
    """One message of a conversation, as stored in TestRun.output_data."""
    role: str
    content: str
    turn: int
    usage: Optional[dict] = None
    tool_calls: List[dict] = field(default_factory=list)
    file_search_results: List[dict] = field(default_factory=list)
    web_search_results: List[dict] = field(default_factory=list)
    code_interpreter_results: List[dict] = field(default_factory=list)
    api_metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "content": self.content,
            "turn": self.turn,
            "usage": self.usage,
            "tool_calls": self.tool_calls,
            "file_search_results": self.file_search_results,
            "web_search_results": self.web_search_results,
            "code_interpreter_results": self.code_interpreter_results,
            "api_metadata": self.api_metadata,
        }

    @classmethod
    def from_response(cls, response: NormalizedLLMResponse, turn: int) -> "ConversationMessage":
        return cls(
            role="assistant",
            content=response.text,
            turn=turn,
            usage=response.usage,
            tool_calls=response.tool_calls,
            file_search_results=response.file_search_results,
            web_search_results=response.web_search_results,
            code_interpreter_results=response.code_interpreter_results,
            api_metadata=response.api_metadata,
        )


class SimulatedConversationRunner:
    """Base class for provider-specific conversation runners."""

    DEFAULT_API_TYPE = ApiType.OPENAI_CHAT_COMPLETIONS

    def __init__(
        self,
        model_config: dict,
        use_real_llm: bool = False,
        client: LLMClient = None,
        interlocutor: InterlocutorSimulator = None
    ):
        self.model_config = model_config or {}
        self.use_real_llm = use_real_llm
        self._client = client
        self.interlocutor = interlocutor or InterlocutorSimulator(use_real_llm=use_real_llm)
        self.token_aggregator = TokenAggregator()

    # ---- model_config accessors ----

    @property
    def model(self) -> str:
        return self.model_config.get("model") or config.DEFAULT_MODEL

    @property
    def temperature(self) -> float:
        temperature = self.model_config.get("temperature")
        return config.DEFAULT_TEMPERATURE if temperature is None else temperature

    @property
    def tools(self) -> list:
        return self.model_config.get("tools") or []

    @property
    def tool_config(self) -> dict:
        return self.model_config.get("tool_config") or {}

    @property
    def provider(self) -> str:
        return self.model_config.get("provider") or "openai"

    @property
    def api(self) -> Optional[str]:
        return self.model_config.get("api")

    @property
    def client(self) -> LLMClient:
        if self._client is None:
            api_type = api_type_for(self.model_config) or self.DEFAULT_API_TYPE
            self._client = get_llm_client(
                api_type, model=self.model, assistant_id=self.model_config.get("assistant_id")
            )
        return self._client

    # ---- conversation loop ----

    def run(self, params: ConversationParams) -> dict:
        """Run the conversation and return the output_data dict."""
        self.reset()
        start_time = time.time()

        messages = self.execute_conversation(params)

        response_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"[CONVERSATION] {self.provider}/{self.api} finished "
            f"{sum(1 for m in messages if m['role'] == 'assistant')} turn(s) in {response_time_ms}ms"
        )

        return self.build_output_data(
            messages,
            params,
            response_time_ms=response_time_ms,
            tokens=self.token_aggregator.aggregate_from_messages(messages),
            tools_used=[t if isinstance(t, str) else t.get("type") for t in self.tools],
            **self.extra_output(messages)
        )

    def execute_conversation(self, params: ConversationParams) -> List[dict]:
        messages = []
        max_turns = params.max_turns or 1

        for turn in range(1, max_turns + 1):
            if turn == 1:
                user_message = params.first_user_message
            else:
                user_message = self.interlocutor.generate_next_message(
                    interlocutor_prompt=params.interlocutor_prompt,
                    conversation_history=messages,
                    turn=turn
                )
            if user_message is None:
                break

            messages.append(ConversationMessage(role="user", content=user_message, turn=turn).to_dict())

            response = self.call_assistant(user_message, messages, params, turn)
            messages.append(ConversationMessage.from_response(response, turn).to_dict())

        return messages

    def reset(self):
        """Clear per-run state. Subclasses holding conversation ids extend this."""
        pass

    def call_assistant(self, user_message: str, messages: List[dict], params: ConversationParams, turn: int) -> NormalizedLLMResponse:
        """Produce the assistant reply for one turn."""
        raise NotImplementedError("Subclasses must implement call_assistant()")

    def extra_output(self, messages: List[dict]) -> dict:
        """API-specific keys merged into output_data."""
        return ToolResultExtractor(messages).all_results()

    # ---- shared helpers ----

    def unwrap(self, response: LLMResponse) -> NormalizedLLMResponse:
        """Return the normalized response or raise LLMCallError on failure."""
        if not response.success:
            raise LLMCallError(response.error_message or "LLM call failed")
        return response.normalized or NormalizedLLMResponse(text=response.response_text or "")

    def mock_llm_response(self, turn: int, **api_metadata) -> NormalizedLLMResponse:
        return NormalizedLLMResponse(
            text=f"Mock LLM response for testing (turn {turn})",
            usage={"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
            model=self.model,
            api_metadata=api_metadata,
        )

    @staticmethod
    def mock_id(prefix: str) -> str:
        return f"{prefix}_mock_{secrets.token_hex(8)}"

    def build_output_data(self, messages: List[dict], params: ConversationParams, **extra) -> dict:
        output = {
            "rendered_system_prompt": params.system_prompt,
            "rendered_user_prompt": params.first_user_message,
            "rendered_prompt": self.build_rendered_prompt_display(params),
            "model": self.model,
            "provider": self.provider,
            "api": self.api,
            "messages": messages,
            "total_turns": sum(1 for m in messages if m.get("role") == "assistant"),
            "status": "completed",
            "max_turns": params.max_turns,
            "interlocutor_prompt": params.interlocutor_prompt,
        }
        output.update(extra)
        return output

    @staticmethod
    def build_rendered_prompt_display(params: ConversationParams) -> str:
        parts = []
        if params.system_prompt:
            parts.append(f"[System]\n{params.system_prompt}")
        if params.first_user_message:
            parts.append(f"[User]\n{params.first_user_message}")
        return "\n\n".join(parts)
