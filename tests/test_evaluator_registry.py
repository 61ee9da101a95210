"""Tests for the evaluator registry."""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from prompt_tracker.evaluators import EvaluatorRegistry, KeywordEvaluator, BaseNormalizedEvaluator
from prompt_tracker.llm.normalizers import ResponsesNormalizer


class ShoutingEvaluator(BaseNormalizedEvaluator):
    key = "shouting"
    name = "Shouting"
    description = "Checks the response is upper case"
    COMPATIBLE_APIS = ["openai_responses"]

    def evaluate_score(self):
        return 100 if self.response_text.isupper() else 0


@pytest.fixture(autouse=True)
def clean_registry():
    EvaluatorRegistry.reset()
    yield
    EvaluatorRegistry.reset()


class TestEvaluatorRegistry:
    def test_builtins_registered(self):
        keys = set(EvaluatorRegistry.all())
        assert {"keyword", "length", "exact_match", "pattern_match", "llm_judge",
                "conversation_judge", "function_call", "web_search", "file_search",
                "code_interpreter"} <= keys
        assert EvaluatorRegistry.get("keyword")["evaluator_class"] is KeywordEvaluator

    def test_build(self):
        evaluator = EvaluatorRegistry.build("keyword", "hello world", {"required_keywords": ["hello"]})
        assert isinstance(evaluator, KeywordEvaluator)
        assert evaluator.evaluate().passed is True

    def test_build_unknown(self):
        with pytest.raises(ValueError, match="Evaluator 'nope' not found in registry"):
            EvaluatorRegistry.build("nope", "text")

    def test_register_and_unregister(self):
        EvaluatorRegistry.register(
            key="shouting",
            name="Shouting",
            description="Checks the response is upper case",
            evaluator_class=ShoutingEvaluator,
            icon="megaphone",
        )
        assert EvaluatorRegistry.exists("shouting")
        assert EvaluatorRegistry.build("shouting", "HELLO").evaluate().score == 100

        EvaluatorRegistry.unregister("shouting")
        assert not EvaluatorRegistry.exists("shouting")

    def test_reset_drops_custom(self):
        EvaluatorRegistry.register("shouting", "Shouting", "", ShoutingEvaluator)
        EvaluatorRegistry.reset()
        assert not EvaluatorRegistry.exists("shouting")
        assert EvaluatorRegistry.exists("keyword")

    def test_by_category(self):
        conversational = EvaluatorRegistry.by_category("conversational")
        assert set(conversational) == {"conversation_judge", "function_call"}
        assert set(EvaluatorRegistry.by_category("tool_use")) == {"web_search", "code_interpreter"}

    def test_for_api(self):
        for_assistants = EvaluatorRegistry.for_api("openai_assistants")
        assert "keyword" in for_assistants
        assert "llm_judge" not in for_assistants
        assert "llm_judge" in EvaluatorRegistry.for_api("openai_chat_completions")
        assert "file_search" in for_assistants
        assert "file_search" not in EvaluatorRegistry.for_api("openai_responses")

    def test_normalizer_for(self):
        assert EvaluatorRegistry.normalizer_for("openai_responses") is ResponsesNormalizer
        with pytest.raises(ValueError):
            EvaluatorRegistry.normalizer_for("google_gemini")

    def test_serialize_drops_class(self):
        meta = EvaluatorRegistry.serialize(EvaluatorRegistry.get("length"))
        assert "evaluator_class" not in meta
        assert meta["default_config"] == {"min_length": 10, "max_length": 2000}
