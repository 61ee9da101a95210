"""Simulated conversation runners."""

from .runner import SimulatedConversationRunner, ConversationParams, ConversationMessage
from .completion import CompletionConversationRunner
from .responses import ResponsesConversationRunner
from .assistants import AssistantsConversationRunner
from .helpers import InterlocutorSimulator, TokenAggregator, ToolResultExtractor, FunctionCallHandler
from .factory import build_conversation_runner

__all__ = [
    "SimulatedConversationRunner",
    "ConversationParams",
    "ConversationMessage",
    "CompletionConversationRunner",
    "ResponsesConversationRunner",
    "AssistantsConversationRunner",
    "InterlocutorSimulator",
    "TokenAggregator",
    "ToolResultExtractor",
    "FunctionCallHandler",
    "build_conversation_runner",
]
