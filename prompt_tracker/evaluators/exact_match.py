"""Exact output comparison."""

from .normalized import BaseNormalizedEvaluator


class ExactMatchEvaluator(BaseNormalizedEvaluator):
    """Binary check that the response equals expected_output."""

    key = "exact_match"
    name = "Exact Match"
    description = "Checks that the response exactly matches the expected output"
    icon = "check2-square"

    DEFAULT_CONFIG = {
        "expected_output": "",
        "case_sensitive": True,
        "strip_whitespace": True,
    }
    PARAM_SCHEMA = {
        "expected_output": {"type": "string"},
        "case_sensitive": {"type": "boolean"},
        "strip_whitespace": {"type": "boolean"},
    }

    def _prepare(self, text) -> str:
        text = "" if text is None else str(text)
        if self.config.get("strip_whitespace"):
            text = text.strip()
        if not self.config.get("case_sensitive"):
            text = text.lower()
        return text

    def matches(self) -> bool:
        return self._prepare(self.response_text) == self._prepare(self.config.get("expected_output"))

    def evaluate_score(self) -> float:
        return 100 if self.matches() else 0

    def is_passed(self) -> bool:
        return self.matches()

    def generate_feedback(self) -> str:
        if self.matches():
            return "Response matches the expected output."
        return "Response does not match the expected output."
