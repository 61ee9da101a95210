"""Evaluator registry.

Single source of truth for the evaluators a test can be configured with.
Built-in evaluators are registered on import; custom evaluators can be
added with EvaluatorRegistry.register().
"""

import logging
from typing import Any, Dict, Optional, Type

from ..api_types import ApiType
from ..llm.normalizers import (
    AnthropicMessagesNormalizer,
    AssistantsNormalizer,
    BaseNormalizer,
    ChatCompletionsNormalizer,
    ResponsesNormalizer,
)
from .base import BaseEvaluator
from .code_interpreter import CodeInterpreterEvaluator
from .conversation_judge import ConversationJudgeEvaluator
from .exact_match import ExactMatchEvaluator
from .file_search import FileSearchEvaluator
from .function_call import FunctionCallEvaluator
from .keyword import KeywordEvaluator
from .length import LengthEvaluator
from .llm_judge import LLMJudgeEvaluator
from .pattern_match import PatternMatchEvaluator
from .web_search import WebSearchEvaluator

logger = logging.getLogger(__name__)

BUILTIN_EVALUATORS = [
    LengthEvaluator,
    KeywordEvaluator,
    ExactMatchEvaluator,
    PatternMatchEvaluator,
    LLMJudgeEvaluator,
    ConversationJudgeEvaluator,
    FunctionCallEvaluator,
    WebSearchEvaluator,
    FileSearchEvaluator,
    CodeInterpreterEvaluator,
]

NORMALIZERS = {
    ApiType.OPENAI_CHAT_COMPLETIONS: ChatCompletionsNormalizer,
    ApiType.OPENAI_RESPONSES: ResponsesNormalizer,
    ApiType.OPENAI_ASSISTANTS: AssistantsNormalizer,
    ApiType.ANTHROPIC_MESSAGES: AnthropicMessagesNormalizer,
}


class EvaluatorRegistry:
    """Class-level registry of evaluator_key -> metadata.

    Metadata keys: key, name, description, icon, category, default_config,
    evaluator_class.
    """

    _registry: Dict[str, dict] = {}

    @classmethod
    def all(cls) -> Dict[str, dict]:
        return dict(cls._registry)

    @classmethod
    def get(cls, key: str) -> Optional[dict]:
        return cls._registry.get(str(key))

    @classmethod
    def exists(cls, key: str) -> bool:
        return str(key) in cls._registry

    @classmethod
    def build(cls, key: str, data: Any, config: dict = None) -> BaseEvaluator:
        """Instantiate the evaluator registered under key.

        Raises:
            ValueError: If no evaluator is registered under key
        """
        meta = cls.get(key)
        if meta is None:
            raise ValueError(f"Evaluator '{key}' not found in registry")
        return meta["evaluator_class"](data, config or {})

    @classmethod
    def register(
        cls,
        key: str,
        name: str,
        description: str,
        evaluator_class: Type[BaseEvaluator],
        icon: str = "check",
        default_config: dict = None,
        category: str = None
    ):
        key = str(key)
        if key in cls._registry:
            logger.warning(f"[EVALUATOR] Overriding registered evaluator '{key}'")
        cls._registry[key] = {
            "key": key,
            "name": name,
            "description": description,
            "icon": icon,
            "category": category or getattr(evaluator_class, "category", "single_response"),
            "default_config": dict(default_config if default_config is not None else evaluator_class.DEFAULT_CONFIG),
            "evaluator_class": evaluator_class,
        }

    @classmethod
    def unregister(cls, key: str):
        cls._registry.pop(str(key), None)

    @classmethod
    def reset(cls):
        """Drop custom registrations and restore the built-in evaluators."""
        cls._registry = {}
        for evaluator_class in BUILTIN_EVALUATORS:
            cls.register(
                key=evaluator_class.key,
                name=evaluator_class.name,
                description=evaluator_class.description,
                evaluator_class=evaluator_class,
                icon=evaluator_class.icon,
                default_config=evaluator_class.DEFAULT_CONFIG,
            )

    @classmethod
    def by_category(cls, category: str) -> Dict[str, dict]:
        return {k: meta for k, meta in cls._registry.items() if meta["category"] == category}

    @classmethod
    def for_api(cls, api_type) -> Dict[str, dict]:
        return {
            k: meta for k, meta in cls._registry.items()
            if meta["evaluator_class"].is_compatible_with_api(api_type)
        }

    @staticmethod
    def normalizer_for(api_type) -> Type[BaseNormalizer]:
        """Response normalizer class for an API type.

        Raises:
            ValueError: If the API type has no normalizer
        """
        try:
            return NORMALIZERS[ApiType(getattr(api_type, "value", api_type))]
        except (KeyError, ValueError):
            raise ValueError(f"No normalizer for API type: {api_type}")

    @staticmethod
    def serialize(meta: dict) -> dict:
        """Metadata without the class object, for JSON responses."""
        return {k: v for k, v in meta.items() if k != "evaluator_class"}


EvaluatorRegistry.reset()
