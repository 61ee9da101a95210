"""Prompt template parser with {{}} syntax support.

Syntax:
    {{name}}      - Variable placeholder
    {{ name }}    - Same placeholder, whitespace inside the braces is ignored

Rules:
- Duplicate variable names use the same value across all occurrences
- Placeholders without a matching variable are left untouched
- Values are converted with str() before substitution
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class VariableDefinition:
    """Definition of a single variable extracted from a template."""
    name: str
    type: str = "string"
    required: bool = True
    default: Optional[str] = None

    def to_dict(self) -> dict:
        result = {"name": self.name, "type": self.type, "required": self.required}
        if self.default is not None:
            result["default"] = self.default
        return result


class PromptTemplateParser:
    """Parser and renderer for prompt templates with {{}} syntax."""

    # Pattern to match {{name}} or {{ name }}
    # Groups: (1)name
    VARIABLE_PATTERN = re.compile(r'\{\{\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*\}\}')

    def extract_variable_names(self, template: str) -> List[str]:
        """Extract unique variable names from template, in order of appearance.

        Args:
            template: Prompt template string with {{}} syntax

        Returns:
            List of variable names (deduplicated)
        """
        if not template:
            return []

        seen = set()
        names = []
        for name in self.VARIABLE_PATTERN.findall(template):
            if name in seen:
                continue
            seen.add(name)
            names.append(name)
        return names

    def render(self, template: str, variables: Dict[str, object]) -> str:
        """Substitute variables into template.

        Args:
            template: Prompt template string
            variables: Variable values keyed by name

        Returns:
            Rendered string
        """
        if not template:
            return template or ""

        variables = variables or {}

        def replace(match):
            name = match.group(1)
            if name not in variables:
                return match.group(0)
            value = variables[name]
            return "" if value is None else str(value)

        return self.VARIABLE_PATTERN.sub(replace, template)

    def build_variables_schema(self, user_prompt: str, system_prompt: str = None) -> List[dict]:
        """Build the default variables schema for a prompt version.

        Variables from the system prompt come first, then the user prompt.
        """
        names = self.extract_variable_names(system_prompt or "")
        for name in self.extract_variable_names(user_prompt or ""):
            if name not in names:
                names.append(name)
        return [VariableDefinition(name=name).to_dict() for name in names]
