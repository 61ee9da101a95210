"""Evaluator base class.

An evaluator scores one test run output on a 0-100 scale and decides
whether it passed. Subclasses implement evaluate_score() and may override
generate_feedback(), get_metadata() and is_passed().

Evaluator configuration arrives as a JSON dict (string keys). Form input can
be converted with process_params(), driven by the class PARAM_SCHEMA:

    PARAM_SCHEMA = {
        "min_length": {"type": "integer"},
        "case_sensitive": {"type": "boolean"},
        "required_keywords": {"type": "array"},
    }
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    """Outcome of one evaluator run, ready to be stored as an Evaluation."""
    evaluator_type: str
    score: float
    passed: bool
    feedback: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    evaluator_config_id: Optional[int] = None
    evaluation_context: str = "tracked_call"


class BaseEvaluator:
    """Abstract base class for all evaluators."""

    # Registry metadata - override in subclasses
    key: str = None
    name: str = None
    description: str = ""
    icon: str = "check"
    category: str = "single_response"

    DEFAULT_CONFIG: Dict[str, Any] = {}
    PARAM_SCHEMA: Dict[str, dict] = {}
    # API types this evaluator understands; "all" matches every API
    COMPATIBLE_APIS: List[str] = ["all"]
    DEFAULT_THRESHOLD = 80

    # Config keys injected by the runner, not user settings
    RUNTIME_KEYS = ("evaluator_config_id", "evaluation_context", "use_real_llm", "test_run_id")

    def __init__(self, data: Any, config: dict = None):
        self.data = data
        self.config = {**self.DEFAULT_CONFIG, **(config or {})}
        self._score = None

    # ---- class-level helpers ----

    @classmethod
    def process_params(cls, raw_params: dict) -> dict:
        """Convert raw form parameters according to PARAM_SCHEMA.

        Unknown keys are kept as-is.
        """
        if not raw_params:
            return {}

        processed = {}
        for key, value in raw_params.items():
            param_def = cls.PARAM_SCHEMA.get(key)
            processed[key] = cls.convert_param(value, param_def["type"]) if param_def else value
        return processed

    @staticmethod
    def convert_param(value: Any, param_type: str) -> Any:
        """Convert a form value to integer, boolean, array, json, string or symbol."""
        if param_type == "integer":
            try:
                return int(value)
            except (TypeError, ValueError):
                return 0
        if param_type == "boolean":
            return value in (True, "true", "1", 1)
        if param_type == "array":
            if isinstance(value, str):
                return [line.strip() for line in value.split("\n") if line.strip()]
            if isinstance(value, list):
                return [item for item in value if item not in (None, "")]
            return []
        if param_type == "json":
            if value and isinstance(value, str):
                try:
                    return json.loads(value)
                except json.JSONDecodeError as e:
                    logger.warning(f"Failed to parse JSON parameter: {e}")
                    return None
            return value
        if param_type in ("string", "symbol"):
            return "" if value is None else str(value)
        return value

    @classmethod
    def compatible_apis(cls) -> List[str]:
        return list(cls.COMPATIBLE_APIS)

    @classmethod
    def is_compatible_with_api(cls, api_type) -> bool:
        apis = cls.compatible_apis()
        value = getattr(api_type, "value", api_type)
        return "all" in apis or value in apis

    @classmethod
    def registry_metadata(cls) -> dict:
        return {
            "name": cls.name,
            "description": cls.description,
            "icon": cls.icon,
            "category": cls.category,
            "default_config": dict(cls.DEFAULT_CONFIG),
        }

    # ---- evaluation ----

    def evaluate(self) -> EvaluationResult:
        """Score the data and build the EvaluationResult."""
        score = self.score
        return EvaluationResult(
            evaluator_type=self.key or self.__class__.__name__,
            score=score,
            passed=self.is_passed(),
            feedback=self.generate_feedback(),
            metadata=self.get_metadata(),
            evaluator_config_id=self.config.get("evaluator_config_id"),
            evaluation_context=self.config.get("evaluation_context") or "tracked_call",
        )

    @property
    def score(self) -> float:
        """evaluate_score(), computed once."""
        if self._score is None:
            self._score = self.evaluate_score()
        return self._score

    @property
    def threshold(self) -> float:
        threshold = self.config.get("threshold_score")
        return self.DEFAULT_THRESHOLD if threshold is None else threshold

    def evaluate_score(self) -> float:
        raise NotImplementedError("Subclasses must implement evaluate_score()")

    def generate_feedback(self) -> Optional[str]:
        return None

    def get_metadata(self) -> dict:
        return {
            "config": {k: v for k, v in self.config.items() if k not in self.RUNTIME_KEYS},
        }

    def is_passed(self) -> bool:
        return self.score >= self.threshold
