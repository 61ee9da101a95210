"""Keyword presence evaluator."""

from typing import List

from .normalized import BaseNormalizedEvaluator


class KeywordEvaluator(BaseNormalizedEvaluator):
    """Checks required keywords are present and forbidden keywords are absent.

    The score is the percentage of satisfied checks (one per keyword). The
    evaluation passes only when every check is satisfied.
    """

    key = "keyword"
    name = "Keyword Checker"
    description = "Checks that required keywords appear and forbidden keywords do not"
    icon = "key"

    DEFAULT_CONFIG = {
        "required_keywords": [],
        "forbidden_keywords": [],
        "case_sensitive": False,
    }
    PARAM_SCHEMA = {
        "required_keywords": {"type": "array"},
        "forbidden_keywords": {"type": "array"},
        "case_sensitive": {"type": "boolean"},
        "threshold_score": {"type": "integer"},
    }

    def _prepare(self, text: str) -> str:
        return text if self.config.get("case_sensitive") else text.lower()

    @property
    def required_keywords(self) -> List[str]:
        return [str(k) for k in self.config.get("required_keywords") or []]

    @property
    def forbidden_keywords(self) -> List[str]:
        return [str(k) for k in self.config.get("forbidden_keywords") or []]

    def missing_keywords(self) -> List[str]:
        text = self._prepare(self.response_text)
        return [k for k in self.required_keywords if self._prepare(k) not in text]

    def found_forbidden(self) -> List[str]:
        text = self._prepare(self.response_text)
        return [k for k in self.forbidden_keywords if self._prepare(k) in text]

    def evaluate_score(self) -> float:
        total = len(self.required_keywords) + len(self.forbidden_keywords)
        if total == 0:
            return 100
        failures = len(self.missing_keywords()) + len(self.found_forbidden())
        return round((total - failures) / total * 100, 2)

    def is_passed(self) -> bool:
        return not self.missing_keywords() and not self.found_forbidden()

    def generate_feedback(self) -> str:
        missing = self.missing_keywords()
        forbidden = self.found_forbidden()
        if not missing and not forbidden:
            return "All keyword checks passed."

        parts = []
        if missing:
            parts.append(f"Missing required keywords: {', '.join(missing)}")
        if forbidden:
            parts.append(f"Found forbidden keywords: {', '.join(forbidden)}")
        return ". ".join(parts)

    def get_metadata(self) -> dict:
        metadata = super().get_metadata()
        metadata.update({
            "missing_keywords": self.missing_keywords(),
            "found_forbidden_keywords": self.found_forbidden(),
        })
        return metadata
