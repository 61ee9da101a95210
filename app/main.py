"""FastAPI application main module."""

import logging
import sys
from pathlib import Path

# Add project root to Python path for module imports
# when running with uvicorn directly: uvicorn app.main:app
project_root = Path(__file__).parent.parent.absolute()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from fastapi import FastAPI

from prompt_tracker.utils import get_app_name
from app.routes import test_runs, evaluators, prompt_versions

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=get_app_name(),
    description="LLM prompt test-run execution and evaluation",
    version="0.1.0"
)

# Include routers
app.include_router(test_runs.router, tags=["test-runs"])
app.include_router(evaluators.router, tags=["evaluators"])
app.include_router(prompt_versions.router, tags=["prompt-versions"])


@app.on_event("startup")
def startup_event():
    """Initialize database on startup."""
    from prompt_tracker.database import init_db
    init_db()
    logger.info("Application started")
