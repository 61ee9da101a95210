"""Synchronize OpenAI Assistants into local Assistant records."""

import logging
import os
from typing import Optional
from openai import OpenAI
from sqlalchemy.orm import Session

from .database.models import Assistant
from .llm.normalizers import to_dict
from .utils import utc_now_iso

logger = logging.getLogger(__name__)


class AssistantSyncError(RuntimeError):
    """Raised when assistants cannot be fetched from OpenAI."""


class AssistantSyncService:
    """Pull assistants from OpenAI and upsert them by assistant_id."""

    def __init__(self, db: Session, client: OpenAI = None):
        self.db = db
        self.client = client or self._build_client()
        self.created_count = 0
        self.updated_count = 0

    @staticmethod
    def _build_client() -> OpenAI:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise AssistantSyncError("OPENAI_API_KEY environment variable not set")
        return OpenAI(api_key=api_key)

    def sync_all(self) -> dict:
        """Sync every assistant visible to the API key.

        Returns:
            Dict with created, updated and total counts and the assistants
        """
        try:
            assistants_data = [to_dict(a) for a in self.client.beta.assistants.list().data]
        except Exception as e:
            raise AssistantSyncError(f"Failed to fetch assistants from OpenAI: {e}") from e

        synced = [a for a in (self._upsert(data) for data in assistants_data) if a is not None]
        self.db.commit()

        logger.info(
            f"[ASSISTANT-SYNC] {len(synced)} assistants synced "
            f"({self.created_count} created, {self.updated_count} updated)"
        )
        return {
            "created": self.created_count,
            "updated": self.updated_count,
            "total": len(synced),
            "assistants": synced,
        }

    def pull(self, assistant_id: str) -> Assistant:
        """Fetch one assistant and upsert it."""
        try:
            data = to_dict(self.client.beta.assistants.retrieve(assistant_id))
        except Exception as e:
            raise AssistantSyncError(f"Failed to fetch assistant {assistant_id}: {e}") from e

        assistant = self._upsert(data)
        self.db.commit()
        return assistant

    def _upsert(self, data: dict) -> Optional[Assistant]:
        assistant_id = data.get("id")
        if not assistant_id:
            return None

        assistant = self.db.query(Assistant).filter(Assistant.assistant_id == assistant_id).first()
        if assistant is None:
            assistant = Assistant(assistant_id=assistant_id)
            self.db.add(assistant)
            self.created_count += 1
        else:
            self.updated_count += 1

        now = utc_now_iso()
        assistant.name = data.get("name") or assistant_id
        assistant.description = data.get("description")
        assistant.assistant_metadata = {
            "instructions": data.get("instructions"),
            "model": data.get("model"),
            "tools": data.get("tools") or [],
            "temperature": data.get("temperature"),
            "top_p": data.get("top_p"),
            "response_format": data.get("response_format"),
            "tool_resources": data.get("tool_resources") or {},
            "last_synced_at": now,
        }
        assistant.last_synced_at = now
        return assistant
