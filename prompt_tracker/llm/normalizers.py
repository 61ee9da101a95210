"""Response normalizers for each supported provider API.

Each normalizer accepts the raw vendor response (an SDK object or a plain
dict) and returns a NormalizedLLMResponse. SDK objects are dumped to dicts
first, so every extraction below works on dict payloads.
"""

import json
from typing import Any, Optional

from .base import NormalizedLLMResponse


def to_dict(raw: Any) -> dict:
    """Convert an SDK response object to a plain dict."""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    if hasattr(raw, "model_dump"):
        return raw.model_dump()
    if hasattr(raw, "to_dict"):
        return raw.to_dict()
    return dict(raw)


def parse_json_arguments(args: Any) -> dict:
    """Parse function call arguments, returning {} for None or invalid JSON."""
    if args is None:
        return {}
    if isinstance(args, dict):
        return args
    try:
        parsed = json.loads(args)
    except (json.JSONDecodeError, TypeError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _usage(prompt_tokens: Optional[int], completion_tokens: Optional[int], total_tokens: Optional[int] = None) -> dict:
    prompt_tokens = prompt_tokens or 0
    completion_tokens = completion_tokens or 0
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": total_tokens if total_tokens is not None else prompt_tokens + completion_tokens,
    }


class BaseNormalizer:
    """Base class for response normalizers."""

    def __init__(self, raw_response: Any):
        self.raw_response = raw_response
        self.data = to_dict(raw_response)

    @classmethod
    def normalize(cls, raw_response: Any) -> NormalizedLLMResponse:
        return cls(raw_response).build()

    def build(self) -> NormalizedLLMResponse:
        raise NotImplementedError("Subclasses must implement build()")


class ChatCompletionsNormalizer(BaseNormalizer):
    """OpenAI Chat Completions API."""

    def build(self) -> NormalizedLLMResponse:
        choices = self.data.get("choices") or []
        message = (choices[0].get("message") or {}) if choices else {}
        usage = self.data.get("usage") or {}

        return NormalizedLLMResponse(
            text=message.get("content") or "",
            usage=_usage(usage.get("prompt_tokens"), usage.get("completion_tokens"), usage.get("total_tokens")),
            model=self.data.get("model"),
            tool_calls=self._extract_tool_calls(message),
            api_metadata={"response_id": self.data.get("id")} if self.data.get("id") else {},
            raw_response=self.raw_response
        )

    def _extract_tool_calls(self, message: dict) -> list:
        tool_calls = []
        for tc in message.get("tool_calls") or []:
            function = tc.get("function") or {}
            tool_calls.append({
                "id": tc.get("id"),
                "type": "function",
                "function_name": function.get("name"),
                "arguments": parse_json_arguments(function.get("arguments")),
            })
        return tool_calls


class ResponsesNormalizer(BaseNormalizer):
    """OpenAI Responses API, including built-in tool call output items."""

    def build(self) -> NormalizedLLMResponse:
        usage = self.data.get("usage") or {}

        return NormalizedLLMResponse(
            text=self._extract_text(),
            usage=_usage(usage.get("input_tokens"), usage.get("output_tokens")),
            model=self.data.get("model"),
            tool_calls=self._extract_tool_calls(),
            file_search_results=self._extract_file_search_results(),
            web_search_results=self._extract_web_search_results(),
            code_interpreter_results=self._extract_code_interpreter_results(),
            api_metadata={"response_id": self.data.get("id")},
            raw_response=self.raw_response
        )

    @property
    def output(self) -> list:
        return self.data.get("output") or []

    def _items(self, item_type: str) -> list:
        return [item for item in self.output if item.get("type") == item_type]

    def _extract_text(self) -> str:
        parts = [
            content.get("text")
            for item in self._items("message")
            for content in item.get("content") or []
            if content.get("type") == "output_text"
        ]
        text = "\n".join(part for part in parts if part)
        return text or self.data.get("output_text") or self.data.get("text") or ""

    def _extract_tool_calls(self) -> list:
        return [
            {
                "id": item.get("call_id") or item.get("id"),
                "type": "function",
                "function_name": item.get("name"),
                "arguments": parse_json_arguments(item.get("arguments")),
            }
            for item in self._items("function_call")
        ]

    def _extract_file_search_results(self) -> list:
        results = []
        for item in self._items("file_search_call"):
            hits = item.get("results") or []
            queries = item.get("queries") or []
            results.append({
                "query": item.get("query") or (queries[0] if queries else None),
                "files": [hit.get("filename") for hit in hits],
                "scores": [hit.get("score") for hit in hits],
            })
        return results

    def _extract_web_search_results(self) -> list:
        citations = self._extract_url_citations()
        results = []
        for item in self._items("web_search_call"):
            action = item.get("action") or {}
            queries = action.get("queries") or []
            results.append({
                "id": item.get("id"),
                "status": item.get("status"),
                "query": action.get("query") or (queries[0] if queries else None) or item.get("query"),
                "sources": [
                    {"title": s.get("title"), "url": s.get("url"), "snippet": s.get("snippet")}
                    for s in action.get("sources") or []
                ],
                "citations": citations,
            })
        return results

    def _extract_url_citations(self) -> list:
        citations = []
        for item in self._items("message"):
            for content in item.get("content") or []:
                for annotation in content.get("annotations") or []:
                    if annotation.get("type") != "url_citation":
                        continue
                    citations.append({
                        "title": annotation.get("title"),
                        "url": annotation.get("url"),
                        "start_index": annotation.get("start_index"),
                        "end_index": annotation.get("end_index"),
                    })
        return citations

    def _extract_code_interpreter_results(self) -> list:
        results = []
        for item in self._items("code_interpreter_call"):
            ci = item.get("code_interpreter") or {}
            code = ci.get("code") or item.get("code")
            results.append({
                "id": item.get("id"),
                "status": item.get("status"),
                "code": code,
                "language": ci.get("language") or detect_code_language(code),
                "output": self._code_output(ci.get("output", item.get("outputs"))),
                "files_created": ci.get("files_created") or [],
                "error": ci.get("error"),
            })
        return results

    @staticmethod
    def _code_output(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, list):
            return "\n".join(
                o.get("text") or o.get("logs") for o in value
                if isinstance(o, dict) and (o.get("text") or o.get("logs"))
            )
        return str(value)


def detect_code_language(code: Optional[str]) -> Optional[str]:
    """Guess the language of a code interpreter snippet."""
    if not code:
        return None
    if "import " in code or "def " in code or "print(" in code:
        return "python"
    if "const " in code or "let " in code or "function " in code:
        return "javascript"
    return None


class AnthropicMessagesNormalizer(BaseNormalizer):
    """Anthropic Messages API."""

    def build(self) -> NormalizedLLMResponse:
        content = self.data.get("content") or []
        usage = self.data.get("usage") or {}

        text = "\n".join(
            block.get("text") for block in content
            if block.get("type") == "text" and block.get("text")
        )
        tool_calls = [
            {
                "id": block.get("id"),
                "type": "function",
                "function_name": block.get("name"),
                "arguments": block.get("input") or {},
            }
            for block in content if block.get("type") == "tool_use"
        ]

        return NormalizedLLMResponse(
            text=text,
            usage=_usage(usage.get("input_tokens"), usage.get("output_tokens")),
            model=self.data.get("model"),
            tool_calls=tool_calls,
            api_metadata={
                "message_id": self.data.get("id"),
                "stop_reason": self.data.get("stop_reason"),
            },
            raw_response=self.raw_response
        )


class AssistantsNormalizer(BaseNormalizer):
    """OpenAI Assistants API.

    The raw response is the dict assembled by OpenAIAssistantsClient:
    content, assistant_id, thread_id, run_id, usage, annotations and
    run_steps (the listed run steps page, with a "data" list).
    """

    def build(self) -> NormalizedLLMResponse:
        usage = self.data.get("usage") or {}

        return NormalizedLLMResponse(
            text=self.data.get("content") or "",
            usage=_usage(usage.get("prompt_tokens"), usage.get("completion_tokens"), usage.get("total_tokens")),
            model=self.data.get("assistant_id"),
            tool_calls=self._extract_tool_calls(),
            file_search_results=self._extract_file_search_results(),
            api_metadata={
                "thread_id": self.data.get("thread_id"),
                "run_id": self.data.get("run_id"),
                "annotations": self.data.get("annotations") or [],
                "run_steps": self._step_tool_calls_page(),
            },
            raw_response=self.raw_response
        )

    def _step_tool_calls_page(self) -> list:
        run_steps = self.data.get("run_steps") or {}
        if isinstance(run_steps, list):
            return run_steps
        return run_steps.get("data") or []

    def _step_tool_calls(self, tool_type: str) -> list:
        calls = []
        for step in self._step_tool_calls_page():
            if step.get("type") != "tool_calls":
                continue
            details = step.get("step_details") or {}
            calls.extend(tc for tc in details.get("tool_calls") or [] if tc.get("type") == tool_type)
        return calls

    def _extract_file_search_results(self) -> list:
        results = []
        for tool_call in self._step_tool_calls("file_search"):
            for hit in (tool_call.get("file_search") or {}).get("results") or []:
                results.append({
                    "file_id": hit.get("file_id"),
                    "file_name": hit.get("file_name"),
                    "score": hit.get("score"),
                    "content": hit.get("content"),
                })
        return results

    def _extract_tool_calls(self) -> list:
        tool_calls = []
        for tool_call in self._step_tool_calls("function"):
            function = tool_call.get("function") or {}
            tool_calls.append({
                "id": tool_call.get("id"),
                "type": "function",
                "function_name": function.get("name"),
                "arguments": parse_json_arguments(function.get("arguments")),
            })
        return tool_calls
