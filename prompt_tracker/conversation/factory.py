"""Selects the conversation runner for a model configuration."""

from ..api_types import ApiType, api_type_for
from ..llm.base import LLMClient
from .assistants import AssistantsConversationRunner
from .completion import CompletionConversationRunner
from .helpers import InterlocutorSimulator
from .responses import ResponsesConversationRunner
from .runner import SimulatedConversationRunner


def build_conversation_runner(
    model_config: dict,
    use_real_llm: bool = False,
    client: LLMClient = None,
    interlocutor: InterlocutorSimulator = None
) -> SimulatedConversationRunner:
    """Build the runner matching model_config's provider and api.

    Responses API and Assistants API get their stateful runners; every other
    API (Chat Completions, Anthropic, Gemini, unknown) uses the stateless
    completion runner.

    Raises:
        ValueError: If provider or api is missing from model_config
    """
    model_config = model_config or {}
    missing = [key for key in ("provider", "api") if not model_config.get(key)]
    if missing:
        raise ValueError(f"model_config must include {' and '.join(missing)}")

    api_type = api_type_for(model_config)
    if api_type == ApiType.OPENAI_RESPONSES:
        runner_class = ResponsesConversationRunner
    elif api_type == ApiType.OPENAI_ASSISTANTS:
        runner_class = AssistantsConversationRunner
    else:
        runner_class = CompletionConversationRunner

    return runner_class(
        model_config,
        use_real_llm=use_real_llm,
        client=client,
        interlocutor=interlocutor
    )
