"""Function call evaluator.

Checks that the assistant called the expected functions somewhere in the
conversation, optionally with matching arguments.

Config:
    expected_functions: function names that should be called
    require_all: True scores the percentage of expected functions called,
        False scores 100 when any of them was called
    check_arguments: also compare arguments with expected_arguments
    expected_arguments: {function_name: {arg: value}}; nested dicts are
        compared recursively, leaf values as strings
    threshold_score: passing score (80)
"""

import json
import math
from typing import Any, Dict, List, Optional

from .normalized import BaseNormalizedEvaluator


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class FunctionCallEvaluator(BaseNormalizedEvaluator):
    """Checks if the assistant called expected functions during the conversation."""

    key = "function_call"
    name = "Function Call"
    description = "Checks if the assistant called expected functions during the conversation"
    icon = "gear"
    category = "conversational"

    DEFAULT_CONFIG = {
        "expected_functions": [],
        "require_all": True,
        "check_arguments": False,
        "expected_arguments": {},
        "threshold_score": 80,
    }
    PARAM_SCHEMA = {
        "expected_functions": {"type": "array"},
        "require_all": {"type": "boolean"},
        "check_arguments": {"type": "boolean"},
        "expected_arguments": {"type": "json"},
        "threshold_score": {"type": "integer"},
    }

    def __init__(self, data, config: dict = None):
        super().__init__(data, config)
        self._all_tool_calls = None
        self._matching_functions = None
        self._argument_failures = None

    # ---- config accessors ----

    @property
    def expected_functions(self) -> List[str]:
        value = self.config.get("expected_functions") or []
        if not isinstance(value, list):
            value = [value]
        return [str(f) for f in value]

    @property
    def expected_arguments(self) -> Dict[str, Any]:
        args = self.config.get("expected_arguments") or {}
        if not isinstance(args, dict):
            return {}
        return {str(k): v for k, v in args.items()}

    # ---- scoring ----

    def evaluate_score(self) -> float:
        expected = self.expected_functions
        if not expected:
            return 100

        matched = self.matching_functions()
        if self.config.get("require_all"):
            return math.floor(len(matched) / len(expected) * 100 + 0.5)
        return 100 if matched else 0

    def generate_feedback(self) -> str:
        called = self.called_functions()
        expected = self.expected_functions
        matched = self.matching_functions()
        arg_failures = self.argument_failures()
        called_text = ", ".join(called) if called else "none"

        if not expected:
            return "No expected functions specified - evaluation passed by default."

        if self.config.get("require_all"):
            missing = [f for f in expected if f not in matched]
            if not missing:
                return f"✓ All expected functions were called: {', '.join(expected)}"
            feedback = f"✗ Missing function calls: {', '.join(missing)}. Called: {called_text}"
        else:
            if matched:
                return f"✓ Expected function(s) called: {', '.join(matched)}"
            feedback = (
                "✗ None of the expected functions were called. "
                f"Expected one of: {', '.join(expected)}. Called: {called_text}"
            )

        if arg_failures:
            feedback += f". Argument mismatches: {'; '.join(arg_failures)}"
        return feedback

    def get_metadata(self) -> dict:
        metadata = super().get_metadata()
        metadata.update({
            "expected_functions": self.expected_functions,
            "called_functions": self.called_functions(),
            "matched_functions": self.matching_functions(),
            "require_all": self.config.get("require_all"),
            "check_arguments": self.config.get("check_arguments"),
            "argument_failures": self.argument_failures(),
            "threshold": self.threshold,
            "all_tool_calls": self.all_tool_calls(),
        })
        return metadata

    # ---- tool call extraction ----

    def all_tool_calls(self) -> List[dict]:
        if self._all_tool_calls is None:
            calls = []
            for message in self.messages:
                for tc in message.get("tool_calls") or []:
                    function = tc.get("function") or {}
                    calls.append({
                        "id": tc.get("id"),
                        "type": tc.get("type"),
                        "function_name": tc.get("function_name") or function.get("name"),
                        "arguments": self.parse_arguments(
                            tc.get("arguments") if tc.get("arguments") is not None else function.get("arguments")
                        ),
                    })
            self._all_tool_calls = calls
        return self._all_tool_calls

    def called_functions(self) -> List[str]:
        names = []
        for call in self.all_tool_calls():
            name = call["function_name"]
            if name and name not in names:
                names.append(name)
        return names

    def matching_functions(self) -> List[str]:
        if self._matching_functions is None:
            called = self.called_functions()
            if self.config.get("check_arguments"):
                self._matching_functions = [
                    name for name in self.expected_functions
                    if name in called and self._arguments_satisfied(name)
                ]
            else:
                self._matching_functions = [name for name in self.expected_functions if name in called]
        return self._matching_functions

    def argument_failures(self) -> List[str]:
        if not self.config.get("check_arguments"):
            return []
        if self._argument_failures is None:
            failures = []
            called = self.called_functions()
            for name in self.expected_functions:
                if name not in called or self._arguments_satisfied(name):
                    continue
                calls = self.function_calls_with_args(name)
                got = json.dumps(calls[0]) if calls else "no args"
                failures.append(f"{name}: expected {json.dumps(self.expected_arguments[name])}, got {got}")
            self._argument_failures = failures
        return self._argument_failures

    def _arguments_satisfied(self, name: str) -> bool:
        expected = self.expected_arguments.get(name)
        if not expected:
            return True
        return any(self.arguments_match(expected, actual) for actual in self.function_calls_with_args(name))

    def function_calls_with_args(self, name: str) -> List[dict]:
        return [call["arguments"] or {} for call in self.all_tool_calls() if call["function_name"] == name]

    @classmethod
    def arguments_match(cls, expected: Optional[dict], actual: Optional[dict]) -> bool:
        """True when every expected key is present in actual with an equal value."""
        if not expected:
            return True
        if actual is None:
            return False

        for key, expected_value in expected.items():
            actual_value = actual.get(str(key))
            if isinstance(expected_value, dict) and isinstance(actual_value, dict):
                if not cls.arguments_match(expected_value, actual_value):
                    return False
            elif _as_text(actual_value) != _as_text(expected_value):
                return False
        return True

    @staticmethod
    def parse_arguments(arguments: Any) -> Optional[dict]:
        if arguments is None:
            return None
        if isinstance(arguments, dict):
            return arguments
        try:
            return json.loads(arguments)
        except (TypeError, ValueError):
            return {"raw": arguments}
