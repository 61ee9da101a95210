"""Test run execution entry point and TestRun creation.

TestRunManager creates pending TestRuns; run_test() executes one of them.
The HTTP layer calls run_test() from a background task with a fresh
session.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from .database.models import Dataset, DatasetRow, Test, TestRun
from .runners import AssistantRunner, PromptVersionRunner
from .utils import utc_now_iso

logger = logging.getLogger(__name__)

RUNNER_CLASSES = {
    "prompt_version": PromptVersionRunner,
    "assistant": AssistantRunner,
}


def run_test(db: Session, test_run_id: int, use_real_llm: bool = False, **runner_kwargs) -> TestRun:
    """Execute a pending TestRun.

    The run moves to "running", then to "passed"/"failed". Any exception
    marks it "error" with the exception message.

    Args:
        db: SQLAlchemy database session
        test_run_id: ID of the TestRun to execute
        use_real_llm: Call vendor APIs instead of mock responses
        **runner_kwargs: Passed to the runner (client, interlocutor)

    Returns:
        Updated TestRun

    Raises:
        ValueError: If the TestRun does not exist
    """
    test_run = db.query(TestRun).filter(TestRun.id == test_run_id).first()
    if not test_run:
        raise ValueError(f"TestRun {test_run_id} not found")

    test = test_run.test
    logger.info(f"[TEST-RUN] Starting TestRun {test_run.id} for test '{test.name}' (real_llm={use_real_llm})")

    test_run.status = "running"
    test_run.started_at = utc_now_iso()
    db.commit()

    try:
        runner_class = RUNNER_CLASSES.get(test.testable_type)
        if runner_class is None:
            raise ValueError(f"No runner found for testable type: {test.testable_type}")

        runner = runner_class(test_run, test, db, use_real_llm=use_real_llm, **runner_kwargs)
        runner.run()
        logger.info(f"[TEST-RUN] TestRun {test_run.id} completed with status {test_run.status}")

    except Exception as e:
        logger.error(f"[TEST-RUN] TestRun {test_run.id} failed: {e}", exc_info=True)
        db.rollback()
        test_run = db.query(TestRun).filter(TestRun.id == test_run_id).first()
        test_run.status = "error"
        test_run.passed = 0
        test_run.error_message = str(e)
        test_run.finished_at = utc_now_iso()
        db.commit()

    db.refresh(test_run)
    return test_run


class TestRunManager:
    """Creates pending TestRuns for a test."""

    __test__ = False

    def __init__(self, db: Session):
        """Initialize test run manager.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def _get_test(self, test_id: int) -> Test:
        test = self.db.query(Test).filter(Test.id == test_id).first()
        if not test:
            raise ValueError(f"Test {test_id} not found")
        if not test.enabled:
            raise ValueError(f"Test {test_id} is disabled")
        return test

    def create_run(self, test_id: int, dataset_row_id: int = None, custom_variables: dict = None) -> TestRun:
        """Create a TestRun for one dataset row or a set of custom variables.

        Raises:
            ValueError: If the test or row does not exist, or neither input is given
        """
        test = self._get_test(test_id)
        test_run = TestRun(test_id=test.id, status="pending")

        if dataset_row_id is not None:
            row = self.db.query(DatasetRow).filter(DatasetRow.id == dataset_row_id).first()
            if not row:
                raise ValueError(f"Dataset row {dataset_row_id} not found")
            test_run.dataset_row_id = row.id
            test_run.dataset_id = row.dataset_id
            test_run.run_metadata = {"run_mode": "dataset_row"}
        elif custom_variables is not None:
            test_run.run_metadata = {"run_mode": "custom", "custom_variables": custom_variables}
        else:
            raise ValueError("Either dataset_row_id or custom_variables must be provided")

        self.db.add(test_run)
        self.db.commit()
        self.db.refresh(test_run)
        logger.info(f"[TEST-RUN] Created TestRun {test_run.id} for test {test.id}")
        return test_run

    def create_dataset_runs(self, test_id: int, dataset_id: int) -> List[TestRun]:
        """Create one TestRun per row of a dataset.

        Raises:
            ValueError: If the test or dataset does not exist, or the dataset
                belongs to another testable
        """
        test = self._get_test(test_id)
        dataset = self.db.query(Dataset).filter(Dataset.id == dataset_id).first()
        if not dataset:
            raise ValueError(f"Dataset {dataset_id} not found")
        if (dataset.prompt_version_id, dataset.assistant_id) != (test.prompt_version_id, test.assistant_id):
            raise ValueError(f"Dataset {dataset_id} does not belong to the test's testable")

        test_runs = []
        for row in dataset.rows:
            test_run = TestRun(
                test_id=test.id,
                dataset_id=dataset.id,
                dataset_row_id=row.id,
                status="pending",
            )
            test_run.run_metadata = {"run_mode": "dataset", "dataset_name": dataset.name}
            self.db.add(test_run)
            test_runs.append(test_run)

        self.db.commit()
        for test_run in test_runs:
            self.db.refresh(test_run)
        logger.info(f"[TEST-RUN] Created {len(test_runs)} TestRun(s) for test {test.id} on dataset {dataset.id}")
        return test_runs
