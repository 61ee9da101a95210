"""Runs tests whose testable is an OpenAI Assistant."""

import logging
import time

from .. import config
from ..api_types import ApiType, to_config
from ..conversation import AssistantsConversationRunner, ConversationParams, InterlocutorSimulator
from ..database.models import TestRun
from .base import TestRunner

logger = logging.getLogger(__name__)


class AssistantRunner(TestRunner):
    """Runs a simulated conversation against an Assistant and evaluates it.

    Assistant runs are always conversational. The first user message is the
    user_message variable, or one generated by the interlocutor.
    """

    def __init__(self, test_run, test, db, use_real_llm: bool = False, client=None, interlocutor=None):
        super().__init__(test_run, test, db, use_real_llm=use_real_llm)
        self.client = client
        self.interlocutor = interlocutor or InterlocutorSimulator(use_real_llm=use_real_llm)

    @property
    def assistant(self):
        return self.test.assistant

    def model_config(self) -> dict:
        metadata = self.assistant.assistant_metadata
        return {
            **to_config(ApiType.OPENAI_ASSISTANTS),
            "assistant_id": self.assistant.assistant_id,
            "model": metadata.get("model"),
            "tools": metadata.get("tools") or [],
        }

    def run(self) -> TestRun:
        start_time = time.time()
        params = self.build_params(self.variables)

        runner = AssistantsConversationRunner(
            self.model_config(),
            use_real_llm=self.use_real_llm,
            client=self.client,
            interlocutor=self.interlocutor,
        )
        output_data = runner.run(params)
        self.save_output_data(output_data)

        evaluator_results = self.run_evaluators(output_data)
        passed = all(r["passed"] for r in evaluator_results)

        execution_time_ms = int((time.time() - start_time) * 1000)
        cost_usd = None
        if self.use_real_llm:
            cost_usd = config.calculate_cost(output_data.get("model"), output_data.get("tokens"))

        logger.info(
            f"[TEST-RUN] TestRun {self.test_run.id} assistant {self.assistant.assistant_id} "
            f"{'passed' if passed else 'failed'} in {execution_time_ms}ms"
        )
        return self.update_test_run_results(
            output_data, evaluator_results, passed, execution_time_ms, cost_usd=cost_usd
        )

    def build_params(self, variables: dict) -> ConversationParams:
        """Raises ValueError when the interlocutor prompt is blank."""
        interlocutor_prompt = variables.get("interlocutor_simulation_prompt")
        if not interlocutor_prompt or not str(interlocutor_prompt).strip():
            raise ValueError("interlocutor_simulation_prompt is required for assistant tests")

        first_user_message = variables.get("user_message")
        if not first_user_message:
            first_user_message = self.interlocutor.generate_next_message(
                interlocutor_prompt=interlocutor_prompt,
                conversation_history=[],
                turn=1
            ) or ""

        return ConversationParams(
            system_prompt=self.assistant.assistant_metadata.get("instructions"),
            first_user_message=first_user_message,
            max_turns=self.max_turns(variables),
            interlocutor_prompt=interlocutor_prompt,
            mock_function_outputs=variables.get("mock_function_outputs"),
        )
