"""Field mapping between PromptVersion records and OpenAI Assistant payloads.

PromptVersion stores an assistant as:
    system_prompt            <-> instructions
    notes                    <-> description
    model_config.tools       <-> tools ([{"type": ...}])
    model_config.tool_config <-> tool_resources
"""

from typing import Optional

from .utils import utc_now_iso


class FieldNormalizer:
    """Converts assistant fields in both directions."""

    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_TOP_P = 1.0

    @classmethod
    def to_openai(cls, prompt_version, synced_at: str = None) -> dict:
        """Build the assistants.create / assistants.update payload.

        Args:
            prompt_version: PromptVersion whose model_config describes the assistant
            synced_at: Timestamp written to metadata (now when None)

        Returns:
            Payload dict with None values dropped
        """
        model_config = prompt_version.model_config or {}
        prompt = prompt_version.prompt

        payload = {
            "model": model_config.get("model"),
            "name": prompt.name if prompt else None,
            "instructions": prompt_version.system_prompt,
            "description": prompt_version.notes,
            "tools": cls.format_tools_for_openai(model_config.get("tools")),
            "tool_resources": cls.format_tool_resources_for_openai(model_config.get("tool_config")),
            "temperature": cls._or_default(model_config.get("temperature"), cls.DEFAULT_TEMPERATURE),
            "top_p": cls._or_default(model_config.get("top_p"), cls.DEFAULT_TOP_P),
            # OpenAI metadata values must be strings
            "metadata": {
                "prompt_id": str(prompt_version.prompt_id),
                "prompt_slug": prompt.slug if prompt else "",
                "version_id": str(prompt_version.id),
                "version_number": str(prompt_version.version_number),
                "managed_by": "prompt_tracker",
                "last_synced_at": synced_at or utc_now_iso(),
            },
        }
        return {key: value for key, value in payload.items() if value is not None}

    @classmethod
    def from_openai(cls, assistant_data: dict, vector_store_names: dict = None, synced_at: str = None) -> dict:
        """Map an assistant payload to PromptVersion attributes.

        Args:
            assistant_data: Assistant as returned by the API (dict)
            vector_store_names: Optional id -> display name map
            synced_at: Timestamp written to metadata (now when None)

        Returns:
            Dict with system_prompt, notes and model_config
        """
        return {
            "system_prompt": assistant_data.get("instructions") or "",
            "notes": assistant_data.get("description"),
            "model_config": {
                "provider": "openai",
                "api": "assistants",
                "assistant_id": assistant_data.get("id"),
                "model": assistant_data.get("model"),
                "temperature": cls._or_default(assistant_data.get("temperature"), cls.DEFAULT_TEMPERATURE),
                "top_p": cls._or_default(assistant_data.get("top_p"), cls.DEFAULT_TOP_P),
                "tools": cls.format_tools_from_openai(assistant_data.get("tools")),
                "tool_config": cls.format_tool_config_from_openai(
                    assistant_data.get("tool_resources"), vector_store_names or {}
                ),
                "metadata": {
                    "name": assistant_data.get("name"),
                    "description": assistant_data.get("description"),
                    "synced_at": synced_at or utc_now_iso(),
                    "synced_from": "openai",
                },
            },
        }

    @staticmethod
    def _or_default(value, default):
        # 0 is a valid sampling value
        return default if value is None else value

    @staticmethod
    def format_tools_for_openai(tools) -> list:
        if not tools:
            return []
        return [tool if isinstance(tool, dict) else {"type": str(tool)} for tool in tools]

    @staticmethod
    def format_tools_from_openai(tools) -> list:
        if not tools:
            return []
        return [tool["type"] for tool in tools if isinstance(tool, dict) and tool.get("type")]

    @staticmethod
    def format_tool_config_from_openai(tool_resources: Optional[dict], vector_store_names: dict) -> dict:
        if not tool_resources:
            return {}

        tool_config = {}
        file_search = tool_resources.get("file_search")
        if file_search:
            vector_store_ids = file_search.get("vector_store_ids") or []
            tool_config["file_search"] = {
                "vector_store_ids": vector_store_ids,
                "vector_stores": [
                    {"id": store_id, "name": vector_store_names.get(store_id, store_id)}
                    for store_id in vector_store_ids
                ],
            }
        if tool_resources.get("code_interpreter"):
            tool_config["code_interpreter"] = tool_resources["code_interpreter"]
        return tool_config

    @staticmethod
    def format_tool_resources_for_openai(tool_config: Optional[dict]) -> Optional[dict]:
        if not tool_config:
            return None

        tool_resources = {}
        vector_store_ids = (tool_config.get("file_search") or {}).get("vector_store_ids") or []
        if vector_store_ids:
            tool_resources["file_search"] = {"vector_store_ids": vector_store_ids}
        if tool_config.get("code_interpreter"):
            tool_resources["code_interpreter"] = tool_config["code_interpreter"]
        return tool_resources or None
