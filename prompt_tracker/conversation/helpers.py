"""Helpers shared by the simulated conversation runners."""

import json
import logging
import secrets
from typing import List, Optional

from .. import config
from ..llm.base import LLMClient, LLMCallError, NormalizedLLMResponse, empty_usage
from ..llm.openai_chat import OpenAIChatCompletionsClient

logger = logging.getLogger(__name__)

END_CONVERSATION_MARKER = "[END_CONVERSATION]"

SIMULATION_PROMPT_TEMPLATE = (
    "You are simulating a user in a conversation. Based on the following context "
    "and conversation history, generate your NEXT response.\n"
    "\n"
    "Context: {interlocutor_prompt}\n"
    "\n"
    "Conversation so far:\n"
    "{history}\n"
    "\n"
    f"If the conversation has naturally concluded, respond with exactly: {END_CONVERSATION_MARKER}\n"
    "Otherwise, generate ONLY the user's next message, nothing else.\n"
)


def _field(item, key: str):
    """Read key from a message dict or a NormalizedLLMResponse."""
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


class InterlocutorSimulator:
    """Plays the user side of a simulated conversation.

    In mock mode every turn answers "I have another question.". In real mode
    an OpenAI chat model writes the next user message, or ends the
    conversation by replying with the end marker.
    """

    MOCK_MESSAGE = "I have another question."

    def __init__(self, use_real_llm: bool = False, client: LLMClient = None, model: str = None):
        self.use_real_llm = use_real_llm
        self.model = model or config.interlocutor_model()
        self._client = client

    @property
    def client(self) -> LLMClient:
        if self._client is None:
            self._client = OpenAIChatCompletionsClient(model=self.model)
        return self._client

    def generate_next_message(self, interlocutor_prompt: str, conversation_history: List[dict], turn: int) -> Optional[str]:
        """Generate the next user message.

        Args:
            interlocutor_prompt: Description of the simulated user
            conversation_history: Messages exchanged so far
            turn: Turn number being generated (1-based)

        Returns:
            The next user message, or None when the conversation is over

        Raises:
            LLMCallError: If the simulation call fails
        """
        if not self.use_real_llm:
            return self.MOCK_MESSAGE

        prompt = SIMULATION_PROMPT_TEMPLATE.format(
            interlocutor_prompt=interlocutor_prompt,
            history=self.format_history(conversation_history)
        )
        response = self.client.call(prompt=prompt, temperature=config.DEFAULT_TEMPERATURE)
        if not response.success:
            raise LLMCallError(f"Interlocutor simulation failed on turn {turn}: {response.error_message}")

        text = (response.response_text or "").strip()
        if END_CONVERSATION_MARKER in text:
            logger.info(f"[CONVERSATION] Interlocutor ended the conversation at turn {turn}")
            return None
        return text

    @staticmethod
    def format_history(conversation_history: List[dict]) -> str:
        return "\n\n".join(
            f"{str(msg.get('role', '')).capitalize()}: {msg.get('content', '')}"
            for msg in conversation_history
        )


class TokenAggregator:
    """Sums token usage across messages or API responses."""

    TOKEN_KEYS = ("prompt_tokens", "completion_tokens", "total_tokens")

    def aggregate_from_messages(self, messages: List[dict]) -> Optional[dict]:
        """Total usage of assistant messages, or None if none carry usage."""
        with_usage = [m for m in messages if m.get("role") == "assistant" and m.get("usage")]
        if not with_usage:
            return None
        return self._sum([m["usage"] for m in with_usage])

    def aggregate_from_responses(self, responses: list) -> dict:
        return self._sum([_field(r, "usage") or {} for r in responses])

    def _sum(self, usages: List[dict]) -> dict:
        return {key: sum(usage.get(key) or 0 for usage in usages) for key in self.TOKEN_KEYS}


class ToolResultExtractor:
    """Flattens built-in tool results from responses or assistant messages."""

    def __init__(self, responses: list):
        self.responses = responses

    def _collect(self, key: str) -> list:
        results = []
        for response in self.responses:
            results.extend(_field(response, key) or [])
        return results

    def web_search_results(self) -> list:
        return self._collect("web_search_results")

    def code_interpreter_results(self) -> list:
        return self._collect("code_interpreter_results")

    def file_search_results(self) -> list:
        return self._collect("file_search_results")

    def all_results(self) -> dict:
        return {
            "web_search_results": self.web_search_results(),
            "code_interpreter_results": self.code_interpreter_results(),
            "file_search_results": self.file_search_results(),
        }


class FunctionCallHandler:
    """Answers function calls of the Responses API with mock outputs.

    The model keeps receiving function_call_output items until it produces a
    response without tool calls, or MAX_ITERATIONS round trips are spent.
    """

    MAX_ITERATIONS = 10

    def __init__(
        self,
        client: LLMClient = None,
        tools: list = None,
        use_real_llm: bool = False,
        mock_function_outputs: dict = None,
        model: str = None
    ):
        self.client = client
        self.tools = tools or []
        self.use_real_llm = use_real_llm
        self.mock_function_outputs = mock_function_outputs or {}
        self.model = model

    def process(self, initial_response: NormalizedLLMResponse, turn: int = 1) -> dict:
        """Resolve every function call triggered by initial_response.

        Returns:
            Dict with final_response, all_tool_calls and all_responses
        """
        all_tool_calls = []
        all_responses = [initial_response]
        response = initial_response
        iteration_count = 0

        while response.tool_calls and iteration_count < self.MAX_ITERATIONS:
            iteration_count += 1
            all_tool_calls.extend(response.tool_calls)
            function_outputs = self.build_function_outputs(response.tool_calls)
            response = self._submit(function_outputs, response.response_id)
            all_responses.append(response)

        if iteration_count >= self.MAX_ITERATIONS and response.tool_calls:
            all_tool_calls.extend(response.tool_calls)
            logger.warning(
                f"[FUNCTION-CALL] Function call iteration limit ({self.MAX_ITERATIONS}) reached for turn {turn}. "
                f"Model may be stuck in a function calling loop."
            )

        return {
            "final_response": response,
            "all_tool_calls": all_tool_calls,
            "all_responses": all_responses,
        }

    def build_function_outputs(self, tool_calls: List[dict]) -> List[dict]:
        return [
            {
                "type": "function_call_output",
                "call_id": tool_call.get("id"),
                "output": self.execute_function_call(tool_call),
            }
            for tool_call in tool_calls
        ]

    def execute_function_call(self, tool_call: dict) -> str:
        """Mock output for one call: configured output, else a generic success."""
        function_name = tool_call.get("function_name")
        custom = self.mock_function_outputs.get(function_name)
        if custom is not None:
            return custom if isinstance(custom, str) else json.dumps(custom)

        return json.dumps({
            "success": True,
            "message": f"Mock result for {function_name}",
            "data": tool_call.get("arguments") or {},
        })

    def _submit(self, function_outputs: List[dict], previous_response_id: str) -> NormalizedLLMResponse:
        if not self.use_real_llm:
            return NormalizedLLMResponse(
                text="Mock response after function call",
                usage={"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
                model=self.model,
                api_metadata={"response_id": f"resp_mock_{secrets.token_hex(8)}"},
            )

        result = self.client.call(
            input_items=function_outputs,
            previous_response_id=previous_response_id,
            tools=self.tools
        )
        if not result.success:
            raise LLMCallError(result.error_message)
        return result.normalized or NormalizedLLMResponse(text=result.response_text or "", usage=empty_usage())
