"""Base LLM client interface and the normalized response value object."""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


# Each message is a dict with 'role' and 'content' keys
# role: 'system', 'user', or 'assistant'
Message = Dict[str, Union[str, list]]


def empty_usage() -> dict:
    return {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}


@dataclass
class NormalizedLLMResponse:
    """Provider-independent view of one LLM response.

    Every normalizer produces this shape so the conversation loop and the
    evaluators never look at vendor payloads directly.
    """
    text: str = ""
    usage: Dict[str, int] = field(default_factory=empty_usage)
    model: Optional[str] = None
    tool_calls: List[dict] = field(default_factory=list)
    file_search_results: List[dict] = field(default_factory=list)
    web_search_results: List[dict] = field(default_factory=list)
    code_interpreter_results: List[dict] = field(default_factory=list)
    api_metadata: Dict[str, Any] = field(default_factory=dict)
    raw_response: Any = None

    def to_dict(self) -> dict:
        """Serializable form; raw_response is left out."""
        return {
            "text": self.text,
            "usage": dict(self.usage),
            "model": self.model,
            "tool_calls": list(self.tool_calls),
            "file_search_results": list(self.file_search_results),
            "web_search_results": list(self.web_search_results),
            "code_interpreter_results": list(self.code_interpreter_results),
            "api_metadata": dict(self.api_metadata),
        }

    def __getitem__(self, key: str):
        return getattr(self, key)

    @property
    def thread_id(self) -> Optional[str]:
        return self.api_metadata.get("thread_id")

    @property
    def run_id(self) -> Optional[str]:
        return self.api_metadata.get("run_id")

    @property
    def response_id(self) -> Optional[str]:
        return self.api_metadata.get("response_id")

    @property
    def annotations(self) -> list:
        return self.api_metadata.get("annotations") or []

    @property
    def run_steps(self) -> list:
        return self.api_metadata.get("run_steps") or []


@dataclass
class LLMResponse:
    """Standard response from LLM execution."""
    success: bool
    response_text: Optional[str] = None
    error_message: Optional[str] = None
    turnaround_ms: Optional[int] = None
    normalized: Optional[NormalizedLLMResponse] = None


@dataclass
class EnvVarConfig:
    """Environment variable a client needs, with an optional fallback name."""
    name: str
    primary_env: str
    fallback_env: Optional[str] = None


class LLMClient(ABC):
    """Abstract base class for LLM clients."""

    # Environment variable configuration - override in subclasses
    ENV_VARS: List[EnvVarConfig] = []

    # Default vendor model - override in subclasses
    DEFAULT_MODEL = None

    @abstractmethod
    def call(
        self,
        prompt: str = None,
        messages: List[Message] = None,
        **kwargs
    ) -> LLMResponse:
        """Execute LLM call with given prompt/messages.

        Args:
            prompt: The prompt text to send to LLM (treated as 'user' role)
            messages: List of message dicts with 'role' and 'content' keys
            **kwargs: Additional parameters (temperature, max_tokens, tools, etc.)

        Returns:
            LLMResponse object with result or error. On success,
            ``normalized`` holds the NormalizedLLMResponse.

        Note:
            If both prompt and messages are provided, messages takes precedence
        """
        pass

    @abstractmethod
    def get_default_parameters(self) -> dict:
        """Get default parameters for this LLM client."""
        pass

    def get_model_name(self) -> str:
        """Get the vendor model identifier used by this client."""
        return self.model

    def _validate_env_vars(self):
        """Raise ValueError if any required environment variable is missing."""
        missing = [
            config.primary_env for config in self.ENV_VARS
            if not self._get_env_var(config.name)
        ]
        if missing:
            raise ValueError(
                f"{self.__class__.__name__} configuration incomplete. "
                f"Please set {', '.join(missing)} in .env file."
            )

    @classmethod
    def _get_env_var(cls, name: str) -> Optional[str]:
        for config in cls.ENV_VARS:
            if config.name != name:
                continue
            value = os.getenv(config.primary_env)
            if not value and config.fallback_env:
                value = os.getenv(config.fallback_env)
            return value
        return None

    def _normalize_messages(
        self,
        prompt: str = None,
        messages: List[Message] = None
    ) -> List[Message]:
        """Normalize input to a list of role/content messages."""
        if messages:
            return [
                {"role": msg.get("role", "user"), "content": msg.get("content", "")}
                for msg in messages
            ]
        if prompt:
            return [{"role": "user", "content": prompt}]
        return []


class LLMCallError(RuntimeError):
    """Raised when a vendor call fails in the middle of a test run."""
