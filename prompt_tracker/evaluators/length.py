"""Response length evaluator."""

from .normalized import BaseNormalizedEvaluator


class LengthEvaluator(BaseNormalizedEvaluator):
    """Scores the response length (in characters) against a range.

    Inside [min_length, max_length] the score is 100. Outside, the score
    drops in proportion to how far the length is from the nearest bound.
    """

    key = "length"
    name = "Length Validator"
    description = "Checks that the response length is within a character range"
    icon = "rulers"

    DEFAULT_CONFIG = {
        "min_length": 10,
        "max_length": 2000,
    }
    PARAM_SCHEMA = {
        "min_length": {"type": "integer"},
        "max_length": {"type": "integer"},
        "threshold_score": {"type": "integer"},
    }

    @property
    def length(self) -> int:
        return len(self.response_text)

    @property
    def min_length(self):
        return self.config.get("min_length")

    @property
    def max_length(self):
        return self.config.get("max_length")

    def evaluate_score(self) -> float:
        length = self.length
        if self.min_length is not None and length < self.min_length:
            return round(length / self.min_length * 100, 2) if self.min_length > 0 else 0
        if self.max_length is not None and length > self.max_length:
            overflow = (length - self.max_length) / self.max_length if self.max_length > 0 else 1
            return round(max(0.0, 100 - overflow * 100), 2)
        return 100

    def generate_feedback(self) -> str:
        length = self.length
        if self.min_length is not None and length < self.min_length:
            return f"Response too short: {length} characters (minimum {self.min_length})"
        if self.max_length is not None and length > self.max_length:
            return f"Response too long: {length} characters (maximum {self.max_length})"
        return f"Response length OK: {length} characters"

    def get_metadata(self) -> dict:
        metadata = super().get_metadata()
        metadata["length"] = self.length
        return metadata
