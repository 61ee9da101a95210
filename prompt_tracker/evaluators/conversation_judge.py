"""Per-message LLM judge for simulated conversations.

Every assistant message is scored by the judge model together with the
conversation up to that message. The run score is the average.
"""

import logging
import re
from typing import List

from .. import config as app_config
from ..llm.base import LLMCallError
from ..llm.factory import get_client_for_model
from .normalized import BaseNormalizedEvaluator

logger = logging.getLogger(__name__)

MOCK_JUDGE_RESPONSE = (
    "Score: 85\n"
    "Feedback: This is a mock evaluation. The assistant message demonstrates "
    "good quality and appropriateness."
)


class ConversationJudgeEvaluator(BaseNormalizedEvaluator):
    """Uses an LLM to evaluate each assistant message in a conversation."""

    key = "conversation_judge"
    name = "Conversation Judge"
    description = "Uses an LLM to evaluate each assistant message in a conversation"
    icon = "chat-dots"
    category = "conversational"

    DEFAULT_CONFIG = {
        "judge_model": "gpt-4o",
        "evaluation_prompt": "Evaluate this assistant message for quality and appropriateness. Score 0-100.",
        "threshold_score": 70,
    }
    PARAM_SCHEMA = {
        "judge_model": {"type": "string"},
        "evaluation_prompt": {"type": "string"},
        "threshold_score": {"type": "integer"},
    }
    DEFAULT_THRESHOLD = 70

    def __init__(self, data, config: dict = None, client=None):
        super().__init__(data, config)
        self._client = client
        self._message_scores = None

    @property
    def judge_model(self) -> str:
        return self.config.get("judge_model") or app_config.judge_model()

    @property
    def mock_mode(self) -> bool:
        use_real_llm = self.config.get("use_real_llm")
        if use_real_llm is None:
            use_real_llm = app_config.use_real_llm()
        return not use_real_llm

    # ---- scoring ----

    @property
    def message_scores(self) -> List[dict]:
        if self._message_scores is None:
            self._message_scores = self._score_messages()
        return self._message_scores

    def _score_messages(self) -> List[dict]:
        if not self.raw_data:
            raise ValueError("Test run has no conversation data")
        if not self.messages:
            raise ValueError("Conversation data must have a messages array")
        if not self.assistant_messages:
            raise ValueError("No assistant messages found in conversation")

        scores = []
        assistant_index = 0
        for position, message in enumerate(self.messages):
            if message["role"] != "assistant":
                continue
            judge_response = self.call_judge(self.build_judge_prompt(self.messages[:position + 1]))
            scores.append({
                "message_index": assistant_index,
                "turn": message["turn"],
                "score": self.parse_score(judge_response),
                "feedback": judge_response,
                "content_preview": message["content"][:100],
            })
            assistant_index += 1
        return scores

    def build_judge_prompt(self, context_messages: List[dict]) -> str:
        conversation_context = "\n\n".join(
            f"{m['role'].upper()}: {m['content']}" for m in context_messages
        )
        return (
            f"{self.config.get('evaluation_prompt')}\n\n"
            f"CONVERSATION CONTEXT:\n{conversation_context}\n\n"
            "Please provide:\n"
            "1. A score from 0-100\n"
            "2. Brief feedback explaining the score\n\n"
            "Format your response as:\n"
            "Score: [number]\n"
            "Feedback: [your feedback]"
        )

    def call_judge(self, judge_prompt: str) -> str:
        """Return the judge's raw text. Failures become a neutral score of 50."""
        if self.mock_mode:
            return MOCK_JUDGE_RESPONSE

        try:
            client = self._client or get_client_for_model(self.judge_model)
            response = client.call(prompt=judge_prompt, temperature=0)
            if not response.success:
                raise LLMCallError(response.error_message or "Judge call failed")
            return response.response_text or ""
        except Exception as e:
            logger.error(f"[EVALUATOR] Conversation judge failed: {e}")
            return f"Score: 50\nFeedback: Error during evaluation: {e}"

    @staticmethod
    def parse_score(response: str) -> float:
        """Read "Score: N" (clamped to 0-100), else the first number in 0-100, else 50."""
        match = re.search(r'Score:\s*(\d+(?:\.\d+)?)', response or "", re.IGNORECASE)
        if match:
            return max(0.0, min(100.0, float(match.group(1))))

        for number in re.findall(r'\b(\d+(?:\.\d+)?)\b', response or ""):
            value = float(number)
            if 0 <= value <= 100:
                return value
        return 50.0

    def evaluate_score(self) -> float:
        scores = [ms["score"] for ms in self.message_scores]
        return round(sum(scores) / len(scores), 2)

    def generate_feedback(self) -> str:
        scores_list = ", ".join(f"Turn {ms['turn']}: {ms['score']}" for ms in self.message_scores)
        return f"Average conversation score: {self.score}/100. Message scores: {scores_list}"

    def get_metadata(self) -> dict:
        return {
            "message_scores": self.message_scores,
            "total_messages": len(self.assistant_messages),
            "threshold": self.threshold,
            "judge_model": self.judge_model,
        }
