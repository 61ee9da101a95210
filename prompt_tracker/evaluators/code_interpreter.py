"""Code interpreter evaluator.

Config:
    require_code_execution: False scores 100 whether or not code ran
    expected_language: language at least one execution should use
    require_successful_execution: every execution must complete without error
    output_patterns: regexes matched case-insensitively against the outputs
    require_all_patterns: True scores the percentage of patterns matched,
        False scores 100 when any of them matched
    expect_files_created: some execution should create a file
    min_code_lines: minimum total lines of executed code
    threshold_score: passing score (80)

Score is 30 for running code plus 20 for success, 15 for language, up to
20 for output patterns, 10 for files and 5 for code lines.
"""

import logging
import re
from typing import List

from .normalized import BaseNormalizedEvaluator

logger = logging.getLogger(__name__)


class CodeInterpreterEvaluator(BaseNormalizedEvaluator):
    """Checks if the model executed code with the expected results."""

    key = "code_interpreter"
    name = "Code Interpreter"
    description = "Checks if the model ran code that succeeded and produced the expected output"
    icon = "code"
    category = "tool_use"

    DEFAULT_CONFIG = {
        "require_code_execution": True,
        "expected_language": None,
        "require_successful_execution": True,
        "output_patterns": [],
        "require_all_patterns": False,
        "expect_files_created": False,
        "min_code_lines": 0,
        "threshold_score": 80,
    }
    PARAM_SCHEMA = {
        "require_code_execution": {"type": "boolean"},
        "expected_language": {"type": "string"},
        "require_successful_execution": {"type": "boolean"},
        "output_patterns": {"type": "array"},
        "require_all_patterns": {"type": "boolean"},
        "expect_files_created": {"type": "boolean"},
        "min_code_lines": {"type": "integer"},
        "threshold_score": {"type": "integer"},
    }

    def __init__(self, data, config: dict = None):
        super().__init__(data, config)
        self._matched_patterns = None

    @property
    def output_patterns(self) -> List[str]:
        patterns = self.config.get("output_patterns") or []
        if not isinstance(patterns, list):
            patterns = [patterns]
        return [str(p).strip() for p in patterns if str(p).strip()]

    @property
    def expected_language(self):
        return self.config.get("expected_language") or None

    @property
    def min_code_lines(self) -> int:
        return int(self.config.get("min_code_lines") or 0)

    # ---- scoring ----

    def evaluate_score(self) -> float:
        if not self.config.get("require_code_execution"):
            return 100
        if not self.code_interpreter_results:
            return 0

        score = 30
        if self.config.get("require_successful_execution"):
            score += 20 if self.all_successful() else 0
        else:
            score += 20

        score += 15 if self.language_matches() else 0

        if self.output_patterns:
            matched = self.matched_patterns()
            if self.config.get("require_all_patterns"):
                pattern_score = len(matched) / len(self.output_patterns) * 100
            else:
                pattern_score = 100 if matched else 0
            score += pattern_score * 0.2
        else:
            score += 20

        if self.config.get("expect_files_created"):
            score += 10 if self.files_created() else 0
        else:
            score += 10

        score += 5 if self.total_code_lines() >= self.min_code_lines else 0

        return round(score, 2)

    def generate_feedback(self) -> str:
        results = self.code_interpreter_results
        if not results:
            if self.config.get("require_code_execution"):
                return "✗ Code interpreter was not used."
            return "Code interpreter was not used (not required)."

        languages = self.languages()
        lines = [
            "Code Interpreter Evaluation Results:",
            f"Executions: {len(results)}",
            f"Languages: {', '.join(languages) if languages else 'Unknown'}",
            f"Total code lines: {self.total_code_lines()}",
            f"Successful: {len(self.successful_executions())}/{len(results)}",
        ]

        if self.expected_language:
            status = "matched" if self.language_matches() else "not matched"
            lines.append(f"Expected language: {self.expected_language} ({status})")
        if self.output_patterns:
            lines.append(f"Output patterns matched: {len(self.matched_patterns())}/{len(self.output_patterns)}")
        if self.config.get("expect_files_created"):
            lines.append(f"Files created: {len(self.files_created())}")

        lines.append("✓ Code interpreter requirements met." if self.is_passed() else "✗ Some requirements not met.")
        return "\n".join(lines)

    def get_metadata(self) -> dict:
        metadata = super().get_metadata()
        metadata.update({
            "execution_count": len(self.code_interpreter_results),
            "successful_count": len(self.successful_executions()),
            "languages": self.languages(),
            "total_code_lines": self.total_code_lines(),
            "files_created": self.files_created(),
            "matched_patterns": self.matched_patterns(),
            "expected_language": self.expected_language,
            "output_patterns": self.output_patterns,
        })
        return metadata

    # ---- execution details ----

    def languages(self) -> List[str]:
        languages = []
        for result in self.code_interpreter_results:
            language = result.get("language")
            if language and language not in languages:
                languages.append(language)
        return languages

    def successful_executions(self) -> List[dict]:
        return [
            r for r in self.code_interpreter_results
            if r.get("status") in ("completed", None) and r.get("error") is None
        ]

    def all_successful(self) -> bool:
        return len(self.successful_executions()) == len(self.code_interpreter_results)

    def language_matches(self) -> bool:
        if not self.expected_language:
            return True
        expected = str(self.expected_language).lower()
        return any(language.lower() == expected for language in self.languages())

    def files_created(self) -> list:
        return [f for r in self.code_interpreter_results for f in r.get("files_created") or []]

    def total_code_lines(self) -> int:
        return sum(len(str(r.get("code") or "").splitlines()) for r in self.code_interpreter_results)

    def all_outputs(self) -> str:
        return "\n".join(r["output"] for r in self.code_interpreter_results if r.get("output"))

    def matched_patterns(self) -> List[str]:
        if self._matched_patterns is None:
            output = self.all_outputs()
            matched = []
            for pattern in self.output_patterns:
                try:
                    found = re.search(pattern, output, re.IGNORECASE) is not None
                except re.error as e:
                    logger.warning(f"[EVALUATOR] Invalid output pattern {pattern!r}, using substring match: {e}")
                    found = pattern.lower() in output.lower()
                if found:
                    matched.append(pattern)
            self._matched_patterns = matched
        return self._matched_patterns
