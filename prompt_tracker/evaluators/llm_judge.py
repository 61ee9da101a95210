"""LLM-as-judge evaluator.

Sends the response and custom instructions to a judge model and reads back
{overall_score, feedback}. OpenAI judges get a strict JSON schema; other
judge models are asked for JSON and the object is extracted from the text.
"""

import json
import logging
import re

from .. import config as app_config
from ..llm.base import LLMCallError
from ..llm.factory import get_client_for_model
from .normalized import BaseNormalizedEvaluator

logger = logging.getLogger(__name__)

JUDGE_SCHEMA = {
    "type": "object",
    "properties": {
        "overall_score": {"type": "number", "description": "Score from 0 to 100"},
        "feedback": {"type": "string", "description": "Detailed explanation of the score"},
    },
    "required": ["overall_score", "feedback"],
    "additionalProperties": False,
}

MOCK_SCORE = 85


class LLMJudgeEvaluator(BaseNormalizedEvaluator):
    """Uses an LLM to evaluate response quality based on custom instructions."""

    key = "llm_judge"
    name = "LLM Judge"
    description = "Uses an LLM to evaluate response quality based on custom instructions"
    icon = "robot"

    DEFAULT_CONFIG = {
        "judge_model": "gpt-4o",
        "custom_instructions": "Evaluate the quality and appropriateness of the response",
    }
    PARAM_SCHEMA = {
        "judge_model": {"type": "string"},
        "custom_instructions": {"type": "string"},
        "threshold_score": {"type": "integer"},
    }
    COMPATIBLE_APIS = ["openai_chat_completions", "anthropic_messages"]
    DEFAULT_THRESHOLD = 70

    def __init__(self, data, config: dict = None, client=None):
        super().__init__(data, config)
        self._client = client
        self._judge_result = None

    @property
    def judge_model(self) -> str:
        return self.config.get("judge_model") or app_config.judge_model()

    @property
    def mock_mode(self) -> bool:
        use_real_llm = self.config.get("use_real_llm")
        if use_real_llm is None:
            use_real_llm = app_config.use_real_llm()
        return not use_real_llm

    def build_judge_prompt(self) -> str:
        return (
            "You are an expert evaluator of AI-generated responses. "
            "Please evaluate the following LLM response.\n\n"
            f"LLM RESPONSE TO EVALUATE:\n{self.response_text}\n\n"
            f"EVALUATION INSTRUCTIONS:\n{self.config.get('custom_instructions')}\n\n"
            "Please provide your evaluation with:\n"
            "- overall_score: A number from 0 to 100\n"
            "- feedback: Detailed explanation of your score\n\n"
            "Respond with a JSON object containing overall_score and feedback."
        )

    @property
    def judge_result(self) -> dict:
        if self._judge_result is None:
            self._judge_result = self._compute_judge_result()
        return self._judge_result

    def _compute_judge_result(self) -> dict:
        if self.mock_mode:
            return {
                "overall_score": MOCK_SCORE,
                "feedback": (
                    "MOCK EVALUATION: This is a simulated evaluation. "
                    f"In production, this would be generated by {self.judge_model}."
                ),
                "raw_response": "MOCK_RESPONSE",
            }

        client = self._client or get_client_for_model(self.judge_model)
        messages = [{"role": "user", "content": self.build_judge_prompt()}]

        structured = hasattr(client, "call_structured")
        if structured:
            response = client.call_structured(messages, JUDGE_SCHEMA, temperature=0)
        else:
            response = client.call(messages=messages, temperature=0)

        if not response.success:
            raise LLMCallError(f"Judge call failed: {response.error_message}")

        parsed = self.parse_judge_response(response.response_text)
        parsed["raw_response"] = response.response_text
        parsed["structured"] = structured
        return parsed

    @staticmethod
    def parse_judge_response(text: str) -> dict:
        """Read {overall_score, feedback} from the judge output."""
        match = re.search(r'\{[\s\S]*\}', text or "")
        if not match:
            raise LLMCallError(f"Judge response is not JSON: {text[:200] if text else text}")
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise LLMCallError(f"Failed to parse judge response: {e}") from e

        try:
            score = float(data.get("overall_score"))
        except (TypeError, ValueError) as e:
            raise LLMCallError(f"Judge response has no numeric overall_score: {data}") from e

        return {
            "overall_score": max(0.0, min(100.0, score)),
            "feedback": data.get("feedback") or "",
        }

    def evaluate_score(self) -> float:
        return self.judge_result["overall_score"]

    def generate_feedback(self) -> str:
        return self.judge_result["feedback"]

    def get_metadata(self) -> dict:
        metadata = super().get_metadata()
        metadata.update({
            "judge_model": self.judge_model,
            "custom_instructions": self.config.get("custom_instructions"),
            "judge_prompt": self.build_judge_prompt(),
            "raw_judge_response": self.judge_result.get("raw_response"),
            "used_structured_output": self.judge_result.get("structured", False),
            "mock_mode": self.mock_mode,
            "threshold_score": self.threshold,
        })
        return metadata
