"""Evaluator base class working on a unified conversation format.

Any evaluator input is normalized to:

    {
        "messages": [{"role", "content", "tool_calls", "turn"}, ...],
        "tool_usage": [...],
        "web_search_results": [...],
        "code_interpreter_results": [...],
        "file_search_results": [...],
        "run_steps": [...] or None,
        "metadata": {...},
    }

Accepted inputs are a plain response string, a single-response dict
({"text", "tool_calls"}) or a conversation dict with "messages" (the
output_data of a TestRun).
"""

from typing import Any, List

from .base import BaseEvaluator


class BaseNormalizedEvaluator(BaseEvaluator):
    """Base class for evaluators that read messages instead of raw text."""

    def __init__(self, data: Any, config: dict = None):
        super().__init__(data, config)
        self.raw_data = data
        self.data = self.normalize_input(data)

    # ---- accessors ----

    @property
    def messages(self) -> List[dict]:
        return self.data["messages"]

    @property
    def assistant_messages(self) -> List[dict]:
        return [m for m in self.messages if m["role"] == "assistant"]

    @property
    def user_messages(self) -> List[dict]:
        return [m for m in self.messages if m["role"] == "user"]

    @property
    def response_text(self) -> str:
        """Content of the last assistant message."""
        for message in reversed(self.messages):
            if message["role"] == "assistant":
                return message["content"] or ""
        return ""

    @property
    def tool_usage(self) -> list:
        return self.data["tool_usage"]

    @property
    def web_search_results(self) -> list:
        return self.data["web_search_results"]

    @property
    def code_interpreter_results(self) -> list:
        return self.data["code_interpreter_results"]

    @property
    def file_search_results(self) -> list:
        return self.data["file_search_results"]

    @property
    def run_steps(self):
        return self.data["run_steps"]

    # ---- normalization ----

    @classmethod
    def normalize_input(cls, data: Any) -> dict:
        if isinstance(data, dict):
            if "messages" not in data and "text" in data:
                return cls._from_single_response(data)
            return cls._from_conversation(data)
        return cls._from_single_response({"text": "" if data is None else str(data)})

    @staticmethod
    def _from_single_response(data: dict) -> dict:
        tool_calls = data.get("tool_calls") or []
        return {
            "messages": [{"role": "assistant", "content": data.get("text") or "", "tool_calls": tool_calls, "turn": 1}],
            "tool_usage": tool_calls,
            "web_search_results": [],
            "code_interpreter_results": [],
            "file_search_results": [],
            "run_steps": None,
            "metadata": data.get("metadata") or {},
        }

    @staticmethod
    def _from_conversation(data: dict) -> dict:
        raw_messages = data.get("messages") or []
        messages = [
            {
                "role": msg.get("role") or "unknown",
                "content": msg.get("content") or "",
                "tool_calls": msg.get("tool_calls") or [],
                "turn": msg.get("turn") or index + 1,
            }
            for index, msg in enumerate(raw_messages)
            if isinstance(msg, dict)
        ]

        run_steps = data.get("run_steps")
        file_search_results = data.get("file_search_results") or []
        if not file_search_results and isinstance(run_steps, list):
            for step in run_steps:
                file_search_results.extend(step.get("file_search_results") or [])

        return {
            "messages": messages,
            "tool_usage": data.get("tool_usage") or [],
            "web_search_results": data.get("web_search_results") or [],
            "code_interpreter_results": data.get("code_interpreter_results") or [],
            "file_search_results": file_search_results,
            "run_steps": run_steps,
            "metadata": data.get("metadata") or {},
        }
