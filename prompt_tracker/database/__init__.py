"""Database module for PromptTracker."""

from .models import (
    Base, Prompt, PromptVersion, Assistant, Dataset, DatasetRow,
    Test, EvaluatorConfig, TestRun, Evaluation, CONVERSATIONAL_FIELDS
)
from .database import engine, SessionLocal, get_db, init_db

__all__ = [
    "Base",
    "Prompt",
    "PromptVersion",
    "Assistant",
    "Dataset",
    "DatasetRow",
    "Test",
    "EvaluatorConfig",
    "TestRun",
    "Evaluation",
    "CONVERSATIONAL_FIELDS",
    # Database utilities
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
]
