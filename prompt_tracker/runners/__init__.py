"""Test runners executing TestRuns per testable type."""

from .base import TestRunner
from .prompt_version_runner import PromptVersionRunner
from .assistant_runner import AssistantRunner

__all__ = ["TestRunner", "PromptVersionRunner", "AssistantRunner"]
