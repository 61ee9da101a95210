"""Tests for PromptVersion <-> OpenAI Assistant field mapping."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from prompt_tracker.database.models import Prompt, PromptVersion
from prompt_tracker.field_normalizer import FieldNormalizer


def make_version(model_config):
    prompt = Prompt(id=4, name="Support Bot", slug="support-bot")
    version = PromptVersion(
        id=9, prompt_id=4, version_number=2,
        user_prompt="{{user_message}}", system_prompt="You are helpful.", notes="Support assistant"
    )
    version.prompt = prompt
    version.model_config = model_config
    return version


class TestToOpenAI:
    def test_payload(self):
        version = make_version({
            "model": "gpt-4o",
            "tools": ["file_search", "code_interpreter"],
            "tool_config": {"file_search": {"vector_store_ids": ["vs_1"]}},
        })

        payload = FieldNormalizer.to_openai(version, synced_at="2025-01-01T00:00:00")

        assert payload["model"] == "gpt-4o"
        assert payload["name"] == "Support Bot"
        assert payload["instructions"] == "You are helpful."
        assert payload["description"] == "Support assistant"
        assert payload["tools"] == [{"type": "file_search"}, {"type": "code_interpreter"}]
        assert payload["tool_resources"] == {"file_search": {"vector_store_ids": ["vs_1"]}}
        assert payload["temperature"] == 0.7
        assert payload["top_p"] == 1.0
        assert payload["metadata"]["managed_by"] == "prompt_tracker"
        assert payload["metadata"]["version_id"] == "9"
        assert all(isinstance(v, str) for v in payload["metadata"].values())

    def test_none_values_dropped(self):
        payload = FieldNormalizer.to_openai(make_version({"model": "gpt-4o"}))
        assert "tool_resources" not in payload


class TestFromOpenAI:
    def test_attributes(self):
        data = {
            "id": "asst_1",
            "name": "Support Bot",
            "description": "Answers tickets",
            "instructions": "Be brief.",
            "model": "gpt-4o-mini",
            "temperature": 0.2,
            "tools": [{"type": "file_search"}],
            "tool_resources": {"file_search": {"vector_store_ids": ["vs_1", "vs_2"]}},
        }

        attrs = FieldNormalizer.from_openai(data, vector_store_names={"vs_1": "Docs"}, synced_at="now")

        assert attrs["system_prompt"] == "Be brief."
        assert attrs["notes"] == "Answers tickets"
        config = attrs["model_config"]
        assert config["provider"] == "openai"
        assert config["api"] == "assistants"
        assert config["assistant_id"] == "asst_1"
        assert config["temperature"] == 0.2
        assert config["top_p"] == 1.0
        assert config["tools"] == ["file_search"]
        assert config["tool_config"]["file_search"]["vector_stores"] == [
            {"id": "vs_1", "name": "Docs"}, {"id": "vs_2", "name": "vs_2"}
        ]
        assert config["metadata"]["synced_from"] == "openai"


class TestZeroSampling:
    def test_to_openai_keeps_zero(self):
        payload = FieldNormalizer.to_openai(make_version({"model": "gpt-4o", "temperature": 0.0, "top_p": 0.0}))

        assert payload["temperature"] == 0.0
        assert payload["top_p"] == 0.0

    def test_from_openai_keeps_zero(self):
        config = FieldNormalizer.from_openai({"id": "asst_1", "temperature": 0.0, "top_p": 0})["model_config"]

        assert config["temperature"] == 0.0
        assert config["top_p"] == 0

    def test_missing_values_use_defaults(self):
        config = FieldNormalizer.from_openai({"id": "asst_1", "temperature": None})["model_config"]

        assert config["temperature"] == 0.7
        assert config["top_p"] == 1.0
