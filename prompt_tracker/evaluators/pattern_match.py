"""Regular expression evaluator."""

import logging
import re
from typing import List

from .normalized import BaseNormalizedEvaluator

logger = logging.getLogger(__name__)


class PatternMatchEvaluator(BaseNormalizedEvaluator):
    """Scores the percentage of regex patterns found in the response.

    With match_all (default) every pattern must match to pass; otherwise
    one match is enough. Invalid patterns count as not matched.
    """

    key = "pattern_match"
    name = "Pattern Match"
    description = "Checks the response against regular expression patterns"
    icon = "regex"

    DEFAULT_CONFIG = {
        "patterns": [],
        "match_all": True,
    }
    PARAM_SCHEMA = {
        "patterns": {"type": "array"},
        "match_all": {"type": "boolean"},
        "threshold_score": {"type": "integer"},
    }

    @property
    def patterns(self) -> List[str]:
        return [str(p) for p in self.config.get("patterns") or []]

    def matched_patterns(self) -> List[str]:
        text = self.response_text
        matched = []
        for pattern in self.patterns:
            try:
                if re.search(pattern, text):
                    matched.append(pattern)
            except re.error as e:
                logger.warning(f"[EVALUATOR] Invalid pattern {pattern!r}: {e}")
        return matched

    def evaluate_score(self) -> float:
        if not self.patterns:
            return 100
        return round(len(self.matched_patterns()) / len(self.patterns) * 100, 2)

    def is_passed(self) -> bool:
        if not self.patterns:
            return True
        matched = self.matched_patterns()
        if self.config.get("match_all", True):
            return len(matched) == len(self.patterns)
        return bool(matched)

    def generate_feedback(self) -> str:
        matched = self.matched_patterns()
        unmatched = [p for p in self.patterns if p not in matched]
        if not unmatched:
            return "All patterns matched."
        return f"Matched {len(matched)}/{len(self.patterns)} patterns. Unmatched: {', '.join(unmatched)}"

    def get_metadata(self) -> dict:
        metadata = super().get_metadata()
        metadata["matched_patterns"] = self.matched_patterns()
        return metadata
