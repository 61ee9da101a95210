"""PromptTracker: LLM prompt test-run execution and evaluation."""

__version__ = "0.1.0"
