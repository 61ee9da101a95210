"""Tests for {{}} template parsing and rendering."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from prompt_tracker.prompt import PromptTemplateParser, VariableDefinition


class TestExtractVariableNames:
    def test_unique_names_in_order(self):
        parser = PromptTemplateParser()
        names = parser.extract_variable_names("Hi {{name}}, about {{ topic }} and {{name}} again")
        assert names == ["name", "topic"]

    def test_empty_template(self):
        parser = PromptTemplateParser()
        assert parser.extract_variable_names("") == []
        assert parser.extract_variable_names(None) == []

    def test_invalid_names_ignored(self):
        parser = PromptTemplateParser()
        assert parser.extract_variable_names("{{1abc}} {{ok_1}}") == ["ok_1"]


class TestRender:
    def test_substitutes_values(self):
        parser = PromptTemplateParser()
        result = parser.render("Hello {{name}}, you are {{ age }}", {"name": "Alice", "age": 30})
        assert result == "Hello Alice, you are 30"

    def test_unknown_placeholder_left_untouched(self):
        parser = PromptTemplateParser()
        assert parser.render("Hello {{name}} {{missing}}", {"name": "Bob"}) == "Hello Bob {{missing}}"

    def test_none_renders_empty(self):
        parser = PromptTemplateParser()
        assert parser.render("[{{value}}]", {"value": None}) == "[]"

    def test_empty_template(self):
        parser = PromptTemplateParser()
        assert parser.render(None, {"a": 1}) == ""


class TestVariablesSchema:
    def test_system_variables_first(self):
        parser = PromptTemplateParser()
        schema = parser.build_variables_schema("Question: {{question}} for {{name}}", "You help {{name}}")
        assert [v["name"] for v in schema] == ["name", "question"]
        assert all(v["required"] for v in schema)

    def test_variable_definition_to_dict(self):
        definition = VariableDefinition(name="tone", required=False, default="friendly")
        assert definition.to_dict() == {
            "name": "tone", "type": "string", "required": False, "default": "friendly"
        }
