"""Tests for the simulated conversation runners and their helpers."""

import json
import os
import sys
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from prompt_tracker.conversation import (
    AssistantsConversationRunner,
    CompletionConversationRunner,
    ConversationParams,
    FunctionCallHandler,
    InterlocutorSimulator,
    ResponsesConversationRunner,
    TokenAggregator,
    ToolResultExtractor,
    build_conversation_runner,
)
from prompt_tracker.llm.base import LLMCallError, LLMResponse, NormalizedLLMResponse

CHAT_CONFIG = {"provider": "openai", "api": "chat_completions", "model": "gpt-4o"}
RESPONSES_CONFIG = {"provider": "openai", "api": "responses", "model": "gpt-4o"}
ASSISTANTS_CONFIG = {"provider": "openai", "api": "assistants", "assistant_id": "asst_123"}


def ok(text, **kwargs):
    normalized = NormalizedLLMResponse(text=text, **kwargs)
    return LLMResponse(success=True, response_text=text, normalized=normalized)


# ============================================================
# Factory
# ============================================================

class TestBuildConversationRunner:
    def test_routes_by_api(self):
        assert isinstance(build_conversation_runner(CHAT_CONFIG), CompletionConversationRunner)
        assert isinstance(build_conversation_runner(RESPONSES_CONFIG), ResponsesConversationRunner)
        assert isinstance(build_conversation_runner(ASSISTANTS_CONFIG), AssistantsConversationRunner)
        anthropic = {"provider": "anthropic", "api": "messages", "model": "claude-sonnet-4-20250514"}
        assert isinstance(build_conversation_runner(anthropic), CompletionConversationRunner)

    def test_missing_provider_and_api(self):
        with pytest.raises(ValueError, match="provider and api"):
            build_conversation_runner({"model": "gpt-4o"})

    def test_missing_api(self):
        with pytest.raises(ValueError, match="api"):
            build_conversation_runner({"provider": "openai"})


# ============================================================
# Mock mode
# ============================================================

class TestMockConversations:
    def test_single_turn_output(self):
        runner = build_conversation_runner(CHAT_CONFIG)
        output = runner.run(ConversationParams(system_prompt="Be nice.", first_user_message="Hello"))

        assert output["total_turns"] == 1
        assert output["status"] == "completed"
        assert output["rendered_user_prompt"] == "Hello"
        assert output["rendered_prompt"] == "[System]\nBe nice.\n\n[User]\nHello"
        assert [m["role"] for m in output["messages"]] == ["user", "assistant"]
        assert output["messages"][1]["content"] == "Mock LLM response for testing (turn 1)"
        assert output["tokens"] == {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30}

    def test_multi_turn_uses_interlocutor(self):
        runner = build_conversation_runner(CHAT_CONFIG)
        output = runner.run(ConversationParams(
            system_prompt=None,
            first_user_message="Hi",
            max_turns=3,
            interlocutor_prompt="You are a curious customer."
        ))

        messages = output["messages"]
        assert len(messages) == 6
        assert messages[2]["content"] == InterlocutorSimulator.MOCK_MESSAGE
        assert [m["turn"] for m in messages] == [1, 1, 2, 2, 3, 3]
        assert output["total_turns"] == 3
        assert output["tokens"]["total_tokens"] == 90

    def test_responses_mock_chains_response_ids(self):
        runner = build_conversation_runner(RESPONSES_CONFIG)
        output = runner.run(ConversationParams(system_prompt="Sys", first_user_message="Hi", max_turns=2))

        assert output["previous_response_id"].startswith("resp_mock_")
        assert output["messages"][-1]["api_metadata"]["response_id"] == output["previous_response_id"]

    def test_assistants_mock_keeps_one_thread(self):
        runner = build_conversation_runner(ASSISTANTS_CONFIG)
        output = runner.run(ConversationParams(system_prompt=None, first_user_message="Hi", max_turns=2))

        thread_ids = {m["api_metadata"]["thread_id"] for m in output["messages"] if m["role"] == "assistant"}
        assert len(thread_ids) == 1
        assert output["thread_id"] in thread_ids
        assert output["model"] == "asst_123"


# ============================================================
# Real mode with stubbed clients
# ============================================================

class TestRealConversations:
    def test_completion_resends_full_history(self):
        client = MagicMock()
        client.call.side_effect = [ok("First answer"), ok("Second answer")]
        interlocutor = MagicMock()
        interlocutor.generate_next_message.return_value = "Follow-up?"

        runner = CompletionConversationRunner(CHAT_CONFIG, use_real_llm=True, client=client, interlocutor=interlocutor)
        output = runner.run(ConversationParams(
            system_prompt="System", first_user_message="Question", max_turns=2, interlocutor_prompt="Customer"
        ))

        second_call_messages = client.call.call_args_list[1].kwargs["messages"]
        assert second_call_messages[0] == {"role": "system", "content": "System"}
        assert [m["content"] for m in second_call_messages[1:]] == ["Question", "First answer", "Follow-up?"]
        assert output["messages"][-1]["content"] == "Second answer"

    def test_interlocutor_ending_stops_loop(self):
        client = MagicMock()
        client.call.return_value = ok("Answer")
        interlocutor = MagicMock()
        interlocutor.generate_next_message.return_value = None

        runner = CompletionConversationRunner(CHAT_CONFIG, use_real_llm=True, client=client, interlocutor=interlocutor)
        output = runner.run(ConversationParams(system_prompt=None, first_user_message="Q", max_turns=5, interlocutor_prompt="x"))

        assert output["total_turns"] == 1
        assert client.call.call_count == 1

    def test_failed_vendor_call_raises(self):
        client = MagicMock()
        client.call.return_value = LLMResponse(success=False, error_message="rate limited")

        runner = CompletionConversationRunner(CHAT_CONFIG, use_real_llm=True, client=client)
        with pytest.raises(LLMCallError, match="rate limited"):
            runner.run(ConversationParams(system_prompt=None, first_user_message="Q"))

    def test_anthropic_function_tools_format(self):
        config = {
            "provider": "anthropic", "api": "messages", "model": "claude-sonnet-4-20250514",
            "tool_config": {"functions": [{"name": "lookup", "parameters": {"type": "object"}}]},
        }
        runner = CompletionConversationRunner(config)
        assert runner.function_tools() == [
            {"name": "lookup", "description": "", "input_schema": {"type": "object"}}
        ]

    def test_responses_runner_handles_function_calls(self):
        client = MagicMock()
        client.call.side_effect = [
            ok("", tool_calls=[{"id": "call_1", "type": "function", "function_name": "get_order",
                                "arguments": {"id": 7}}],
               usage={"prompt_tokens": 5, "completion_tokens": 5, "total_tokens": 10},
               api_metadata={"response_id": "resp_1"}),
            ok("Your order shipped.", usage={"prompt_tokens": 7, "completion_tokens": 3, "total_tokens": 10},
               api_metadata={"response_id": "resp_2"}),
        ]

        runner = ResponsesConversationRunner(RESPONSES_CONFIG, use_real_llm=True, client=client)
        output = runner.run(ConversationParams(
            system_prompt="Sys", first_user_message="Where is my order?",
            mock_function_outputs={"get_order": {"status": "shipped"}}
        ))

        assistant = output["messages"][-1]
        assert assistant["content"] == "Your order shipped."
        assert assistant["tool_calls"][0]["function_name"] == "get_order"
        assert assistant["usage"]["total_tokens"] == 20
        assert output["previous_response_id"] == "resp_2"

        submit_kwargs = client.call.call_args_list[1].kwargs
        assert submit_kwargs["previous_response_id"] == "resp_1"
        assert submit_kwargs["input_items"][0]["output"] == json.dumps({"status": "shipped"})

        first_kwargs = client.call.call_args_list[0].kwargs
        assert first_kwargs["instructions"] == "Sys"

    def test_assistants_runner_creates_thread_once(self):
        client = MagicMock()
        client.create_thread.return_value = "thread_abc"
        client.call.side_effect = [
            ok("One", api_metadata={"thread_id": "thread_abc", "run_id": "run_1"}),
            ok("Two", api_metadata={"thread_id": "thread_abc", "run_id": "run_2"}),
        ]
        interlocutor = MagicMock()
        interlocutor.generate_next_message.return_value = "More?"

        runner = AssistantsConversationRunner(ASSISTANTS_CONFIG, use_real_llm=True, client=client, interlocutor=interlocutor)
        output = runner.run(ConversationParams(system_prompt=None, first_user_message="Hi", max_turns=2, interlocutor_prompt="x"))

        client.create_thread.assert_called_once()
        assert all(call.kwargs["thread_id"] == "thread_abc" for call in client.call.call_args_list)
        assert output["thread_id"] == "thread_abc"


# ============================================================
# Helpers
# ============================================================

class TestInterlocutorSimulator:
    def test_mock_message(self):
        simulator = InterlocutorSimulator(use_real_llm=False)
        assert simulator.generate_next_message("x", [], 2) == "I have another question."

    def test_end_marker_returns_none(self):
        client = MagicMock()
        client.call.return_value = ok("[END_CONVERSATION]")
        simulator = InterlocutorSimulator(use_real_llm=True, client=client)
        assert simulator.generate_next_message("x", [{"role": "user", "content": "Hi"}], 2) is None

    def test_prompt_contains_history(self):
        client = MagicMock()
        client.call.return_value = ok("  Thanks!  ")
        simulator = InterlocutorSimulator(use_real_llm=True, client=client)

        message = simulator.generate_next_message(
            "Angry customer", [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello"}], 2
        )

        assert message == "Thanks!"
        prompt = client.call.call_args.kwargs["prompt"]
        assert "Context: Angry customer" in prompt
        assert "User: Hi\n\nAssistant: Hello" in prompt

    def test_failure_raises(self):
        client = MagicMock()
        client.call.return_value = LLMResponse(success=False, error_message="boom")
        simulator = InterlocutorSimulator(use_real_llm=True, client=client)
        with pytest.raises(LLMCallError):
            simulator.generate_next_message("x", [], 2)


class TestTokenAggregator:
    def test_messages_without_usage(self):
        assert TokenAggregator().aggregate_from_messages([{"role": "user", "content": "hi"}]) is None

    def test_responses_sum(self):
        responses = [
            NormalizedLLMResponse(usage={"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3}),
            {"usage": {"prompt_tokens": 4, "completion_tokens": 5, "total_tokens": 9}},
        ]
        assert TokenAggregator().aggregate_from_responses(responses) == {
            "prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12
        }


class TestToolResultExtractor:
    def test_collects_from_messages(self):
        messages = [
            {"role": "assistant", "web_search_results": [{"query": "a"}]},
            {"role": "assistant", "web_search_results": [{"query": "b"}], "file_search_results": [{"files": []}]},
        ]
        results = ToolResultExtractor(messages).all_results()
        assert [r["query"] for r in results["web_search_results"]] == ["a", "b"]
        assert len(results["file_search_results"]) == 1
        assert results["code_interpreter_results"] == []


class TestFunctionCallHandler:
    def test_default_mock_output(self):
        handler = FunctionCallHandler()
        output = json.loads(handler.execute_function_call({"function_name": "search", "arguments": {"q": "x"}}))
        assert output == {"success": True, "message": "Mock result for search", "data": {"q": "x"}}

    def test_custom_string_output_passed_through(self):
        handler = FunctionCallHandler(mock_function_outputs={"search": "no results"})
        assert handler.execute_function_call({"function_name": "search"}) == "no results"

    def test_no_tool_calls(self):
        handler = FunctionCallHandler()
        initial = NormalizedLLMResponse(text="done")
        result = handler.process(initial)
        assert result["final_response"] is initial
        assert result["all_tool_calls"] == []

    def test_iteration_limit(self):
        looping = NormalizedLLMResponse(
            text="", tool_calls=[{"id": "c", "function_name": "loop"}], api_metadata={"response_id": "r"}
        )
        client = MagicMock()
        client.call.return_value = LLMResponse(success=True, response_text="", normalized=looping)

        handler = FunctionCallHandler(client=client, use_real_llm=True)
        result = handler.process(looping)

        assert client.call.call_count == FunctionCallHandler.MAX_ITERATIONS
        assert len(result["all_tool_calls"]) == FunctionCallHandler.MAX_ITERATIONS + 1
