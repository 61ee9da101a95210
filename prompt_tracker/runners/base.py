"""Test runner base class.

A runner executes one TestRun: it produces the output_data for the run's
testable, evaluates it with the test's enabled evaluators and stores the
results on the TestRun.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .. import config
from ..database.models import Evaluation, Test, TestRun
from ..evaluators.registry import EvaluatorRegistry
from ..utils import utc_now_iso

logger = logging.getLogger(__name__)


class TestRunner:
    """Base class for testable-specific runners."""

    __test__ = False  # not a pytest class

    def __init__(self, test_run: TestRun, test: Test, db: Session, use_real_llm: bool = False):
        self.test_run = test_run
        self.test = test
        self.db = db
        self.use_real_llm = use_real_llm

    @property
    def testable(self):
        return self.test.testable

    def run(self) -> TestRun:
        raise NotImplementedError("Subclasses must implement run()")

    @property
    def variables(self) -> Dict[str, Any]:
        """Variables for this run: dataset row data, else custom variables."""
        if self.test_run.dataset_row is not None:
            return dict(self.test_run.dataset_row.row_data)
        custom_variables = self.test_run.run_metadata.get("custom_variables")
        if custom_variables:
            return dict(custom_variables)
        return {}

    def max_turns(self, variables: dict) -> int:
        """max_turns variable, DEFAULT_MAX_TURNS when unset or blank."""
        max_turns = variables.get("max_turns")
        if max_turns is None or max_turns == "":
            return config.DEFAULT_MAX_TURNS
        return int(max_turns)

    def save_output_data(self, output_data: dict) -> None:
        """Commit output_data before the evaluators run."""
        self.test_run.output_data = output_data
        self.db.commit()

    def run_evaluators(self, data: Any) -> List[dict]:
        """Run every enabled evaluator of the test and persist an Evaluation each.

        Returns:
            List of {evaluator_key, score, passed, feedback}
        """
        results = []
        configs = [c for c in self.test.evaluator_configs if c.enabled]

        for evaluator_config in configs:
            settings = dict(evaluator_config.config)
            if evaluator_config.threshold is not None and "threshold_score" not in settings:
                settings["threshold_score"] = evaluator_config.threshold
            settings.update({
                "evaluator_config_id": evaluator_config.id,
                "evaluation_context": "test_run",
                "use_real_llm": self.use_real_llm,
            })

            evaluator = EvaluatorRegistry.build(evaluator_config.evaluator_key, data, settings)
            result = evaluator.evaluate()

            score = result.score
            if evaluator_config.evaluation_mode == "binary":
                score = 100 if result.passed else 0

            evaluation = Evaluation(
                test_run_id=self.test_run.id,
                evaluator_config_id=evaluator_config.id,
                evaluator_type=result.evaluator_type,
                score=score,
                passed=1 if result.passed else 0,
                feedback=result.feedback,
                evaluation_context="test_run",
            )
            evaluation.evaluation_metadata = result.metadata
            self.db.add(evaluation)

            logger.info(
                f"[EVALUATOR] TestRun {self.test_run.id} {evaluator_config.evaluator_key}: "
                f"score={score} passed={result.passed}"
            )
            results.append({
                "evaluator_key": evaluator_config.evaluator_key,
                "score": score,
                "passed": result.passed,
                "feedback": result.feedback,
            })

        self.db.flush()
        return results

    def update_test_run_results(
        self,
        output_data: dict,
        evaluator_results: List[dict],
        passed: bool,
        execution_time_ms: int,
        cost_usd: Optional[float] = None
    ) -> TestRun:
        """Store the outcome of a completed run and commit."""
        test_run = self.test_run
        passed_count = sum(1 for r in evaluator_results if r["passed"])

        test_run.output_data = output_data
        test_run.status = "passed" if passed else "failed"
        test_run.passed = 1 if passed else 0
        test_run.error_message = None
        test_run.passed_evaluators = passed_count
        test_run.failed_evaluators = len(evaluator_results) - passed_count
        test_run.total_evaluators = len(evaluator_results)
        test_run.execution_time_ms = execution_time_ms
        if cost_usd is not None:
            test_run.cost_usd = cost_usd

        finished_at = utc_now_iso()
        test_run.finished_at = finished_at
        test_run.run_metadata = {
            **test_run.run_metadata,
            "completed_at": finished_at,
            "evaluator_results": evaluator_results,
        }

        self.db.commit()
        self.db.refresh(test_run)
        return test_run
