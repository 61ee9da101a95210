"""Runtime configuration for PromptTracker.

All settings come from environment variables (optionally loaded from a .env
file). Values are read lazily through the helper functions so tests can
patch ``os.environ`` without reloading the module.

Environment variables:
    OPENAI_API_KEY                     - OpenAI provider key
    ANTHROPIC_API_KEY                  - Anthropic provider key
    PROMPT_TRACKER_USE_REAL_LLM        - "true" to call real vendors from judges
    PROMPT_TRACKER_DEFAULT_MODEL       - Default assistant model (gpt-4o)
    PROMPT_TRACKER_INTERLOCUTOR_MODEL  - Model simulating the user (gpt-4o-mini)
    PROMPT_TRACKER_JUDGE_MODEL         - Default judge model (gpt-4o)
    DATABASE_PATH                      - SQLite file path
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_MODEL = "gpt-4o"
DEFAULT_INTERLOCUTOR_MODEL = "gpt-4o-mini"
DEFAULT_JUDGE_MODEL = "gpt-4o"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TURNS = 5
DEFAULT_DATABASE_PATH = "database/prompt_tracker.db"

# USD per one million tokens: (input, output)
MODEL_PRICING = {
    "gpt-4o": (2.50, 10.00),
    "gpt-4o-mini": (0.15, 0.60),
    "gpt-4.1": (2.00, 8.00),
    "gpt-4.1-mini": (0.40, 1.60),
    "gpt-4.1-nano": (0.10, 0.40),
    "claude-sonnet-4-20250514": (3.00, 15.00),
    "claude-3-5-haiku-20241022": (0.80, 4.00),
}


def use_real_llm() -> bool:
    """Return True when PROMPT_TRACKER_USE_REAL_LLM is set to "true"."""
    return os.getenv("PROMPT_TRACKER_USE_REAL_LLM", "false").lower() == "true"


def default_model() -> str:
    return os.getenv("PROMPT_TRACKER_DEFAULT_MODEL", DEFAULT_MODEL)


def interlocutor_model() -> str:
    return os.getenv("PROMPT_TRACKER_INTERLOCUTOR_MODEL", DEFAULT_INTERLOCUTOR_MODEL)


def judge_model() -> str:
    return os.getenv("PROMPT_TRACKER_JUDGE_MODEL", DEFAULT_JUDGE_MODEL)


def database_path() -> str:
    return os.getenv("DATABASE_PATH", DEFAULT_DATABASE_PATH)


def calculate_cost(model: str, usage: Optional[dict]) -> Optional[float]:
    """Calculate the USD cost of a run from its token usage.

    Args:
        model: Vendor model identifier
        usage: Dict with prompt_tokens and completion_tokens

    Returns:
        Cost in USD rounded to 6 decimals, or None if the model is not priced
        or no usage is available
    """
    if not usage or model not in MODEL_PRICING:
        return None

    input_price, output_price = MODEL_PRICING[model]
    prompt_tokens = usage.get("prompt_tokens") or 0
    completion_tokens = usage.get("completion_tokens") or 0

    cost = (prompt_tokens * input_price + completion_tokens * output_price) / 1_000_000
    return round(cost, 6)
