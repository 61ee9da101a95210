"""Tests for API type identifiers, the client factory and config helpers."""

import os
import sys
from unittest.mock import MagicMock, patch

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from prompt_tracker import config
from prompt_tracker.api_types import ApiType, from_config, to_config, api_type_for, is_valid, display_name, all_types
from prompt_tracker.llm.factory import get_llm_client, get_available_api_types, get_client_for_model
from prompt_tracker.llm.anthropic_messages import AnthropicMessagesClient
from prompt_tracker.llm.openai_chat import OpenAIChatCompletionsClient
from prompt_tracker.llm.openai_assistants import OpenAIAssistantsClient


class TestApiTypes:
    def test_from_config(self):
        assert from_config("openai", "responses") == ApiType.OPENAI_RESPONSES
        assert from_config("OpenAI", "Chat_Completions") == ApiType.OPENAI_CHAT_COMPLETIONS
        assert from_config("anthropic", "messages") == ApiType.ANTHROPIC_MESSAGES
        assert from_config("openai", "unknown") is None
        assert from_config(None, "messages") is None

    def test_to_config_round_trip(self):
        assert to_config(ApiType.OPENAI_ASSISTANTS) == {"provider": "openai", "api": "assistants"}
        assert to_config("not_an_api") is None

    def test_api_type_for_model_config(self):
        assert api_type_for({"provider": "openai", "api": "chat_completions", "model": "gpt-4o"}) == ApiType.OPENAI_CHAT_COMPLETIONS
        assert api_type_for({}) is None
        assert api_type_for(None) is None

    def test_is_valid_and_display_name(self):
        assert is_valid("openai_responses")
        assert not is_valid("openai_batch")
        assert display_name(ApiType.ANTHROPIC_MESSAGES) == "Anthropic Messages"
        assert ApiType.GOOGLE_GEMINI in all_types()
        assert len(all_types()) == 5


class TestClientFactory:
    def test_unsupported_api(self):
        with pytest.raises(ValueError, match="Unsupported API"):
            get_llm_client("cohere_chat")

    def test_assistants_requires_assistant_id(self):
        with pytest.raises(ValueError, match="assistant_id"):
            get_llm_client(ApiType.OPENAI_ASSISTANTS)

    @patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"})
    def test_chat_completions_client(self):
        client = get_llm_client("openai_chat_completions", model="gpt-4o-mini")
        assert isinstance(client, OpenAIChatCompletionsClient)
        assert client.get_model_name() == "gpt-4o-mini"

    @patch.dict(os.environ, {"ANTHROPIC_API_KEY": "sk-ant-test"})
    def test_client_for_claude_model(self):
        client = get_client_for_model("claude-sonnet-4-20250514")
        assert isinstance(client, AnthropicMessagesClient)

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_key_raises(self):
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            get_llm_client("openai_chat_completions")

    @patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"}, clear=True)
    def test_available_api_types_only_configured(self):
        available = [entry["api_type"] for entry in get_available_api_types()]
        assert "openai_chat_completions" in available
        assert "anthropic_messages" not in available


class TestConfig:
    def test_calculate_cost(self):
        usage = {"prompt_tokens": 1_000_000, "completion_tokens": 1_000_000}
        assert config.calculate_cost("gpt-4o", usage) == 12.5

    def test_calculate_cost_unknown_model(self):
        assert config.calculate_cost("my-local-model", {"prompt_tokens": 10}) is None
        assert config.calculate_cost("gpt-4o", None) is None

    @patch.dict(os.environ, {"PROMPT_TRACKER_USE_REAL_LLM": "TRUE"})
    def test_use_real_llm(self):
        assert config.use_real_llm() is True

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        assert config.use_real_llm() is False
        assert config.judge_model() == "gpt-4o"
        assert config.interlocutor_model() == "gpt-4o-mini"


class TestAssistantsClient:
    @patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"})
    def test_requires_action_fails_turn(self):
        client = OpenAIAssistantsClient("asst_1")
        client.client = MagicMock()
        client.client.beta.threads.runs.create_and_poll.return_value = MagicMock(
            status="requires_action", id="run_1", last_error=None
        )

        response = client.call(prompt="hi", thread_id="thread_1")

        assert response.success is False
        assert "requires_action" in response.error_message
        client.client.beta.threads.messages.list.assert_not_called()
