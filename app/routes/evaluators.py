"""Evaluator discovery endpoints."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException

from prompt_tracker.api_types import ApiType, is_valid
from prompt_tracker.evaluators import EvaluatorRegistry
from app.schemas.responses import EvaluatorResponse

router = APIRouter()


@router.get("/api/evaluators", response_model=List[EvaluatorResponse])
def list_evaluators(api_type: Optional[str] = None):
    """List registered evaluators, optionally only those compatible with api_type."""
    if api_type is not None:
        if not is_valid(api_type):
            raise HTTPException(
                status_code=400,
                detail=f"Unsupported API: {api_type}. Supported APIs: {', '.join(t.value for t in ApiType)}"
            )
        evaluators = EvaluatorRegistry.for_api(api_type)
    else:
        evaluators = EvaluatorRegistry.all()

    return [
        EvaluatorResponse(
            **EvaluatorRegistry.serialize(meta),
            param_schema=meta["evaluator_class"].PARAM_SCHEMA,
            compatible_apis=meta["evaluator_class"].compatible_apis(),
        )
        for meta in evaluators.values()
    ]
