"""Runs tests whose testable is a PromptVersion."""

import logging
import time

from .. import config
from ..conversation import ConversationParams, build_conversation_runner
from ..database.models import CONVERSATIONAL_FIELDS, TestRun
from .base import TestRunner

logger = logging.getLogger(__name__)

CONTROL_VARIABLES = [field["name"] for field in CONVERSATIONAL_FIELDS]


class PromptVersionRunner(TestRunner):
    """Executes a PromptVersion single-turn or as a simulated conversation.

    The run is conversational when the variables carry a non-blank
    interlocutor_simulation_prompt.
    """

    def __init__(self, test_run, test, db, use_real_llm: bool = False, client=None, interlocutor=None):
        super().__init__(test_run, test, db, use_real_llm=use_real_llm)
        self.client = client
        self.interlocutor = interlocutor

    @property
    def prompt_version(self):
        return self.test.prompt_version

    def is_conversational(self, variables: dict) -> bool:
        interlocutor_prompt = variables.get("interlocutor_simulation_prompt")
        return interlocutor_prompt is not None and bool(str(interlocutor_prompt).strip())

    def run(self) -> TestRun:
        start_time = time.time()
        variables = self.variables

        params = self.build_params(variables)
        runner = build_conversation_runner(
            self.prompt_version.model_config,
            use_real_llm=self.use_real_llm,
            client=self.client,
            interlocutor=self.interlocutor,
        )
        output_data = runner.run(params)
        self.save_output_data(output_data)

        conversational = self.is_conversational(variables)
        if conversational:
            evaluated_data = output_data
        else:
            evaluated_data = self.first_assistant_content(output_data)

        evaluator_results = self.run_evaluators(evaluated_data)
        passed = all(r["passed"] for r in evaluator_results)

        execution_time_ms = int((time.time() - start_time) * 1000)
        cost_usd = None
        if self.use_real_llm:
            cost_usd = config.calculate_cost(output_data.get("model"), output_data.get("tokens"))

        logger.info(
            f"[TEST-RUN] TestRun {self.test_run.id} "
            f"({'conversational' if conversational else 'single_turn'}) "
            f"{'passed' if passed else 'failed'} in {execution_time_ms}ms"
        )
        return self.update_test_run_results(
            output_data, evaluator_results, passed, execution_time_ms, cost_usd=cost_usd
        )

    def build_params(self, variables: dict) -> ConversationParams:
        """Render the prompts for a single-turn or conversational run.

        Raises:
            ValueError: If required template variables are missing
        """
        version = self.prompt_version
        rendered_user_prompt = version.render(variables)

        if not self.is_conversational(variables):
            return ConversationParams(
                system_prompt=version.render_system(variables),
                first_user_message=rendered_user_prompt,
                max_turns=1,
            )

        prompt_variables = {k: v for k, v in variables.items() if k not in CONTROL_VARIABLES}
        rendered_system_prompt = version.render_system(prompt_variables)
        if rendered_system_prompt is None:
            rendered_system_prompt = rendered_user_prompt

        return ConversationParams(
            system_prompt=rendered_system_prompt,
            first_user_message=rendered_user_prompt,
            max_turns=self.max_turns(variables),
            interlocutor_prompt=variables["interlocutor_simulation_prompt"],
            mock_function_outputs=variables.get("mock_function_outputs"),
        )

    @staticmethod
    def first_assistant_content(output_data: dict) -> str:
        for message in output_data.get("messages") or []:
            if message.get("role") == "assistant":
                return message.get("content") or ""
        return ""
