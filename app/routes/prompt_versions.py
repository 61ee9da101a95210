"""Prompt version endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from prompt_tracker.database import get_db, PromptVersion
from app.schemas.requests import PreviewRequest
from app.schemas.responses import PreviewResponse

router = APIRouter()


@router.post("/api/prompt-versions/{version_id}/preview", response_model=PreviewResponse)
def preview_prompt_version(version_id: int, request: PreviewRequest, db: Session = Depends(get_db)):
    """Render a prompt version's user and system prompts with the given variables.

    Missing required variables are reported as errors, not as an HTTP failure.
    """
    version = db.query(PromptVersion).filter(PromptVersion.id == version_id).first()
    if not version:
        raise HTTPException(status_code=404, detail=f"Prompt version {version_id} not found")

    try:
        rendered_user_prompt = version.render(request.variables)
    except ValueError as e:
        return PreviewResponse(success=False, errors=[str(e)])

    return PreviewResponse(
        success=True,
        rendered_user_prompt=rendered_user_prompt,
        rendered_system_prompt=version.render_system(request.variables)
    )
