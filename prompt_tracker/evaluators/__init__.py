"""Pluggable evaluators scoring test run output."""

from .base import BaseEvaluator, EvaluationResult
from .normalized import BaseNormalizedEvaluator
from .keyword import KeywordEvaluator
from .length import LengthEvaluator
from .exact_match import ExactMatchEvaluator
from .pattern_match import PatternMatchEvaluator
from .llm_judge import LLMJudgeEvaluator
from .conversation_judge import ConversationJudgeEvaluator
from .function_call import FunctionCallEvaluator
from .web_search import WebSearchEvaluator
from .file_search import FileSearchEvaluator
from .code_interpreter import CodeInterpreterEvaluator
from .registry import EvaluatorRegistry

__all__ = [
    "BaseEvaluator",
    "EvaluationResult",
    "BaseNormalizedEvaluator",
    "KeywordEvaluator",
    "LengthEvaluator",
    "ExactMatchEvaluator",
    "PatternMatchEvaluator",
    "LLMJudgeEvaluator",
    "ConversationJudgeEvaluator",
    "FunctionCallEvaluator",
    "WebSearchEvaluator",
    "FileSearchEvaluator",
    "CodeInterpreterEvaluator",
    "EvaluatorRegistry",
]
