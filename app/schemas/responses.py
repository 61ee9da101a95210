"""Response schemas for API endpoints."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class EvaluationResponse(BaseModel):
    """Evaluation stored for a test run."""
    id: int
    evaluator_config_id: Optional[int]
    evaluator_type: str
    score: float
    passed: bool
    feedback: Optional[str]
    evaluation_context: str
    metadata: Dict[str, Any] = {}
    created_at: str


class TestRunResponse(BaseModel):
    """TestRun response data."""
    id: int
    test_id: int
    dataset_id: Optional[int]
    dataset_row_id: Optional[int]
    status: str  # pending/running/passed/failed/error/skipped
    passed: Optional[bool]
    error_message: Optional[str]
    passed_evaluators: int
    failed_evaluators: int
    total_evaluators: int
    execution_time_ms: Optional[int]
    cost_usd: Optional[float]
    metadata: Dict[str, Any] = {}
    output_data: Dict[str, Any] = {}
    created_at: str
    started_at: Optional[str]
    finished_at: Optional[str]
    evaluations: List[EvaluationResponse] = []


class CreateTestRunsResponse(BaseModel):
    """Response for test run creation endpoints."""
    success: bool
    test_runs: List[TestRunResponse]
    message: str


class EvaluatorResponse(BaseModel):
    """Registered evaluator metadata."""
    key: str
    name: str
    description: str
    icon: str
    category: str
    default_config: Dict[str, Any] = {}
    param_schema: Dict[str, Any] = {}
    compatible_apis: List[str] = []


class PreviewResponse(BaseModel):
    """Response for prompt preview.

    success=False carries the validation errors instead of rendered prompts.
    """
    success: bool
    rendered_user_prompt: Optional[str] = None
    rendered_system_prompt: Optional[str] = None
    errors: List[str] = Field(default_factory=list)
