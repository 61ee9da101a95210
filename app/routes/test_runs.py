"""Test run API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks
from sqlalchemy.orm import Session

from prompt_tracker.database import get_db, TestRun, SessionLocal
from prompt_tracker.job import TestRunManager, run_test
from app.schemas.requests import CreateTestRunRequest, CreateDatasetRunsRequest
from app.schemas.responses import CreateTestRunsResponse, TestRunResponse, EvaluationResponse

router = APIRouter()


def execute_test_run_background(test_run_ids: List[int], use_real_llm: bool):
    """Execute test runs in a background task.

    Creates new database session for background execution.
    """
    db = SessionLocal()
    try:
        for test_run_id in test_run_ids:
            run_test(db, test_run_id, use_real_llm=use_real_llm)
    finally:
        db.close()


def serialize_test_run(test_run: TestRun) -> TestRunResponse:
    return TestRunResponse(
        id=test_run.id,
        test_id=test_run.test_id,
        dataset_id=test_run.dataset_id,
        dataset_row_id=test_run.dataset_row_id,
        status=test_run.status,
        passed=None if test_run.passed is None else bool(test_run.passed),
        error_message=test_run.error_message,
        passed_evaluators=test_run.passed_evaluators or 0,
        failed_evaluators=test_run.failed_evaluators or 0,
        total_evaluators=test_run.total_evaluators or 0,
        execution_time_ms=test_run.execution_time_ms,
        cost_usd=test_run.cost_usd,
        metadata=test_run.run_metadata,
        output_data=test_run.output_data,
        created_at=test_run.created_at,
        started_at=test_run.started_at,
        finished_at=test_run.finished_at,
        evaluations=[
            EvaluationResponse(
                id=evaluation.id,
                evaluator_config_id=evaluation.evaluator_config_id,
                evaluator_type=evaluation.evaluator_type,
                score=evaluation.score,
                passed=bool(evaluation.passed),
                feedback=evaluation.feedback,
                evaluation_context=evaluation.evaluation_context,
                metadata=evaluation.evaluation_metadata,
                created_at=evaluation.created_at,
            )
            for evaluation in test_run.evaluations
        ],
    )


@router.post("/api/tests/{test_id}/runs", response_model=CreateTestRunsResponse)
def create_test_run(
    test_id: int,
    request: CreateTestRunRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Run a test against one dataset row or custom variables.

    The run executes in the background; the response holds the pending TestRun.
    """
    try:
        manager = TestRunManager(db)
        test_run = manager.create_run(
            test_id,
            dataset_row_id=request.dataset_row_id,
            custom_variables=request.custom_variables
        )

        background_tasks.add_task(execute_test_run_background, [test_run.id], request.use_real_llm)

        return CreateTestRunsResponse(
            success=True,
            test_runs=[serialize_test_run(test_run)],
            message=f"Test run {test_run.id} started"
        )

    except ValueError as e:
        status_code = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Test run failed: {str(e)}")


@router.post("/api/tests/{test_id}/datasets/{dataset_id}/runs", response_model=CreateTestRunsResponse)
def create_dataset_test_runs(
    test_id: int,
    dataset_id: int,
    background_tasks: BackgroundTasks,
    request: CreateDatasetRunsRequest = None,
    db: Session = Depends(get_db)
):
    """Run a test against every row of a dataset."""
    use_real_llm = request.use_real_llm if request else False
    try:
        manager = TestRunManager(db)
        test_runs = manager.create_dataset_runs(test_id, dataset_id)

        if test_runs:
            background_tasks.add_task(
                execute_test_run_background, [run.id for run in test_runs], use_real_llm
            )

        return CreateTestRunsResponse(
            success=True,
            test_runs=[serialize_test_run(run) for run in test_runs],
            message=f"Started {len(test_runs)} test run(s)"
        )

    except ValueError as e:
        status_code = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=status_code, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Test run failed: {str(e)}")


@router.get("/api/test-runs/{run_id}", response_model=TestRunResponse)
def get_test_run(run_id: int, db: Session = Depends(get_db)):
    """Get a test run with its evaluations."""
    test_run = db.query(TestRun).filter(TestRun.id == run_id).first()
    if not test_run:
        raise HTTPException(status_code=404, detail=f"TestRun {run_id} not found")
    return serialize_test_run(test_run)
