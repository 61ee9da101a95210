"""Tests for AssistantSyncService."""

import os
import sys
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from prompt_tracker.assistant_sync import AssistantSyncService, AssistantSyncError
from prompt_tracker.database.models import Base, Assistant


@pytest.fixture
def test_db():
    """Create a test database with in-memory SQLite."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()

    yield session

    session.close()


def remote_assistant(assistant_id, name="Helpdesk", instructions="Be brief."):
    return {
        "id": assistant_id,
        "name": name,
        "description": None,
        "instructions": instructions,
        "model": "gpt-4o",
        "tools": [{"type": "file_search"}],
        "temperature": 1.0,
        "top_p": 1.0,
        "response_format": "auto",
        "tool_resources": {"file_search": {"vector_store_ids": ["vs_1"]}},
    }


def openai_client(assistants):
    client = MagicMock()
    client.beta.assistants.list.return_value.data = assistants
    return client


class TestSyncAll:
    def test_creates_assistants(self, test_db):
        client = openai_client([remote_assistant("asst_1"), remote_assistant("asst_2", name="Sales")])

        result = AssistantSyncService(test_db, client=client).sync_all()

        assert result["created"] == 2
        assert result["updated"] == 0
        assert result["total"] == 2
        assistant = test_db.query(Assistant).filter(Assistant.assistant_id == "asst_2").one()
        assert assistant.name == "Sales"
        assert assistant.assistant_metadata["instructions"] == "Be brief."
        assert assistant.assistant_metadata["tool_resources"]["file_search"]["vector_store_ids"] == ["vs_1"]
        assert assistant.last_synced_at is not None

    def test_updates_existing(self, test_db):
        test_db.add(Assistant(assistant_id="asst_1", name="Old name"))
        test_db.commit()
        client = openai_client([remote_assistant("asst_1", instructions="New instructions")])

        result = AssistantSyncService(test_db, client=client).sync_all()

        assert result["created"] == 0
        assert result["updated"] == 1
        assistant = test_db.query(Assistant).one()
        assert assistant.name == "Helpdesk"
        assert assistant.assistant_metadata["instructions"] == "New instructions"

    def test_skips_entries_without_id(self, test_db):
        client = openai_client([{"name": "broken"}, remote_assistant("asst_1")])

        result = AssistantSyncService(test_db, client=client).sync_all()

        assert result["total"] == 1
        assert test_db.query(Assistant).count() == 1

    def test_name_defaults_to_id(self, test_db):
        client = openai_client([remote_assistant("asst_1", name=None)])

        AssistantSyncService(test_db, client=client).sync_all()

        assert test_db.query(Assistant).one().name == "asst_1"

    def test_fetch_failure(self, test_db):
        client = MagicMock()
        client.beta.assistants.list.side_effect = RuntimeError("connection refused")

        with pytest.raises(AssistantSyncError, match="connection refused"):
            AssistantSyncService(test_db, client=client).sync_all()


class TestPull:
    def test_pull_one(self, test_db):
        client = MagicMock()
        client.beta.assistants.retrieve.return_value = remote_assistant("asst_9")

        assistant = AssistantSyncService(test_db, client=client).pull("asst_9")

        client.beta.assistants.retrieve.assert_called_once_with("asst_9")
        assert assistant.id is not None
        assert assistant.assistant_metadata["model"] == "gpt-4o"

    def test_pull_failure(self, test_db):
        client = MagicMock()
        client.beta.assistants.retrieve.side_effect = RuntimeError("No assistant found")

        with pytest.raises(AssistantSyncError, match="asst_missing"):
            AssistantSyncService(test_db, client=client).pull("asst_missing")


def test_missing_api_key(test_db, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(AssistantSyncError, match="OPENAI_API_KEY"):
        AssistantSyncService(test_db)
