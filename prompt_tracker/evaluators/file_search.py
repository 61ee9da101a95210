"""File search evaluator for OpenAI Assistants.

Checks that the assistant searched the expected files. Expected names
match a searched file exactly, case-insensitively, as a substring or as a
`*` glob.

Config:
    expected_files: file names or glob patterns
    require_all: pass only when every expected file was searched
    threshold_score: kept for the form; passing follows require_all
"""

import re
from typing import List

from .normalized import BaseNormalizedEvaluator


class FileSearchEvaluator(BaseNormalizedEvaluator):
    """Checks if the assistant searched within the expected files."""

    key = "file_search"
    name = "File Search"
    description = "Verifies that the assistant searched within expected files"
    icon = "file-search"
    category = "assistant"

    COMPATIBLE_APIS = ["openai_assistants"]
    DEFAULT_THRESHOLD = 100
    DEFAULT_CONFIG = {
        "expected_files": [],
        "require_all": True,
        "threshold_score": 100,
    }
    PARAM_SCHEMA = {
        "expected_files": {"type": "array"},
        "require_all": {"type": "boolean"},
        "threshold_score": {"type": "integer"},
    }

    @property
    def expected_files(self) -> List[str]:
        files = self.config.get("expected_files") or []
        if not isinstance(files, list):
            files = [files]
        return [str(f).strip() for f in files if str(f).strip()]

    def evaluate_score(self) -> float:
        expected = self.expected_files
        if not expected or not self.file_search_results:
            return 0
        return round(len(self.matched_files()) / len(expected) * 100, 2)

    def is_passed(self) -> bool:
        expected = self.expected_files
        if not expected:
            return True
        matched = self.matched_files()
        if self.config.get("require_all"):
            return len(matched) == len(expected)
        return bool(matched)

    def generate_feedback(self) -> str:
        expected = self.expected_files
        if not expected:
            return "No expected files configured for evaluation."

        matched = self.matched_files()
        searched = self.searched_files()
        missing = [f for f in expected if f not in matched]

        lines = [
            "File Search Evaluation Results:",
            f"Expected files: {', '.join(expected)}",
            f"Files searched: {', '.join(searched) if searched else 'None'}",
            f"Matched files: {', '.join(matched) if matched else 'None'}",
        ]
        if missing:
            lines.append(f"Missing files: {', '.join(missing)}")
        if self.is_passed():
            lines.append("✓ All required files were searched.")
        else:
            lines.append("✗ Some expected files were not searched.")
        return "\n".join(lines)

    def get_metadata(self) -> dict:
        metadata = super().get_metadata()
        metadata.update({
            "expected_files": self.expected_files,
            "matched_files": self.matched_files(),
            "searched_files": self.searched_files(),
            "file_search_calls": len(self.file_search_results),
            "require_all": self.config.get("require_all"),
        })
        return metadata

    def searched_files(self) -> List[str]:
        """Unique file names across Assistants hits and Responses file_search calls."""
        names = []
        for result in self.file_search_results:
            if "file_name" in result:
                candidates = [result.get("file_name")]
            elif "results" in result:
                candidates = [hit.get("file_name") for hit in result.get("results") or []]
            else:
                candidates = result.get("files") or []
            for name in candidates:
                if name and name not in names:
                    names.append(name)
        return names

    def matched_files(self) -> List[str]:
        searched = self.searched_files()
        return [e for e in self.expected_files if any(self.file_matches(s, e) for s in searched)]

    @staticmethod
    def file_matches(searched: str, expected: str) -> bool:
        if searched == expected:
            return True
        if expected.lower() in searched.lower():
            return True
        if "*" in expected:
            pattern = ".*".join(re.escape(part) for part in expected.split("*"))
            return re.search(pattern, searched, re.IGNORECASE) is not None
        return False
