"""Request schemas for API endpoints."""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class CreateTestRunRequest(BaseModel):
    """Request body for POST /api/tests/{test_id}/runs.

    Exactly one of dataset_row_id or custom_variables is expected.
    """
    dataset_row_id: Optional[int] = Field(
        default=None,
        description="Dataset row providing the variables"
    )
    custom_variables: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Variables to use instead of a dataset row"
    )
    use_real_llm: bool = Field(
        default=False,
        description="Call vendor APIs instead of mock responses"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "custom_variables": {
                    "customer_name": "Alice",
                    "issue": "Cannot reset password"
                },
                "use_real_llm": False
            }
        }


class CreateDatasetRunsRequest(BaseModel):
    """Request body for POST /api/tests/{test_id}/datasets/{dataset_id}/runs."""
    use_real_llm: bool = Field(
        default=False,
        description="Call vendor APIs instead of mock responses"
    )


class PreviewRequest(BaseModel):
    """Request body for POST /api/prompt-versions/{version_id}/preview."""
    variables: Dict[str, Any] = Field(
        default_factory=dict,
        description="Dictionary of variable name to value"
    )
