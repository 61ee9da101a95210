"""OpenAI Assistants API client implementation.

A conversation is a server-side thread: each call appends the user message
to the thread, runs the assistant and reads back its latest reply.
"""

import time
from typing import List

from .base import LLMResponse, Message
from .normalizers import AssistantsNormalizer, to_dict
from .openai_chat import OpenAIBaseClient


class OpenAIAssistantsClient(OpenAIBaseClient):
    """OpenAI Assistants API client bound to one assistant."""

    def __init__(self, assistant_id: str, model: str = None):
        super().__init__(model=model)
        self.assistant_id = assistant_id

    def create_thread(self) -> str:
        """Create an empty thread and return its id."""
        thread = self.client.beta.threads.create()
        return thread.id

    def call(
        self,
        prompt: str = None,
        messages: List[Message] = None,
        **kwargs
    ) -> LLMResponse:
        """Send one user message to the thread and run the assistant.

        Args:
            prompt: The user message
            messages: Only the last user message is sent (the thread holds history)
            **kwargs: Optional parameters
                - thread_id (str): Existing thread, created when missing
                - instructions (str): Per-run instruction override

        Returns:
            LLMResponse with result or error
        """
        start_time = time.time()

        try:
            if not prompt and messages:
                user_messages = [m for m in messages if m.get("role") == "user"]
                prompt = user_messages[-1]["content"] if user_messages else ""

            thread_id = kwargs.get("thread_id") or self.create_thread()

            self.client.beta.threads.messages.create(
                thread_id=thread_id,
                role="user",
                content=prompt
            )

            run_params = {"thread_id": thread_id, "assistant_id": self.assistant_id}
            if kwargs.get("instructions"):
                run_params["instructions"] = kwargs["instructions"]
            run = self.client.beta.threads.runs.create_and_poll(**run_params)

            if run.status != "completed":
                last_error = getattr(run, "last_error", None)
                detail = f": {last_error.message}" if last_error else ""
                return LLMResponse(
                    success=False,
                    error_message=f"Assistant run {run.id} ended with status '{run.status}'{detail}",
                    turnaround_ms=int((time.time() - start_time) * 1000)
                )

            reply = self.client.beta.threads.messages.list(
                thread_id=thread_id, run_id=run.id, order="desc", limit=1
            )
            content, annotations = self._extract_message_text(reply.data[0] if reply.data else None)
            steps = self.client.beta.threads.runs.steps.list(thread_id=thread_id, run_id=run.id)

            raw = {
                "content": content,
                "assistant_id": self.assistant_id,
                "thread_id": thread_id,
                "run_id": run.id,
                "usage": to_dict(run.usage),
                "annotations": annotations,
                "run_steps": {"data": [to_dict(step) for step in steps.data]},
            }
            normalized = AssistantsNormalizer.normalize(raw)

            return LLMResponse(
                success=True,
                response_text=normalized.text,
                turnaround_ms=int((time.time() - start_time) * 1000),
                normalized=normalized
            )

        except Exception as e:
            return LLMResponse(
                success=False,
                error_message=f"OpenAI Assistants API error: {e}",
                turnaround_ms=int((time.time() - start_time) * 1000)
            )

    @staticmethod
    def _extract_message_text(message) -> tuple:
        if message is None:
            return "", []

        data = to_dict(message)
        texts, annotations = [], []
        for block in data.get("content") or []:
            if block.get("type") != "text":
                continue
            text = block.get("text") or {}
            texts.append(text.get("value") or "")
            annotations.extend(text.get("annotations") or [])
        return "\n".join(texts), annotations
