"""
Shared fixtures: in-memory store, fake telephony providers and a wired test app.
"""
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from callflow.config import Settings
from callflow.db import InMemoryDB
from callflow.main import create_app
from callflow.services.telephony import ImportedAgent, ProviderName, StartCallResult, TelephonyProvider


class FakeProvider(TelephonyProvider):
    """Records every call instead of talking to a vendor."""

    def __init__(self, name: ProviderName, error: Optional[Exception] = None) -> None:
        self.name = name
        self.error = error
        self.started: List[Dict[str, Any]] = []
        self.stopped: List[str] = []

    async def start_call(self, agent_external_id, to_phone_e164, metadata=None):
        if self.error:
            raise self.error
        self.started.append({"agent": agent_external_id, "to": to_phone_e164, "metadata": metadata})
        return StartCallResult(external_call_id=f"{self.name.value}-call-{len(self.started)}")

    async def stop_call(self, external_call_id):
        self.stopped.append(external_call_id)

    async def get_agent_prompt(self, external_agent_id):
        return f"prompt for {external_agent_id}"

    async def import_agent(self, external_agent_id):
        return ImportedAgent(name=f"Agent {external_agent_id}", prompt="Be helpful.", config={"id": external_agent_id})


@pytest.fixture
def settings() -> Settings:
    return Settings(
        retell_api_key="test-retell-key",
        retell_phone_number="+447700138833",
        vapi_api_key="test-vapi-key",
        provider_read_attempts=2,
    )


@pytest.fixture
def db() -> InMemoryDB:
    return InMemoryDB()


@pytest.fixture
def providers() -> Dict[ProviderName, FakeProvider]:
    return {
        ProviderName.RETELL: FakeProvider(ProviderName.RETELL),
        ProviderName.VAPI: FakeProvider(ProviderName.VAPI),
    }


@pytest.fixture
def make_agent(db):
    def _make(**overrides) -> Dict[str, Any]:
        row = {
            "name": "Outbound agent",
            "provider": "retell",
            "external_agent_id": "agent_ext_1",
            "mode": "outbound",
            "is_active": True,
        }
        row.update(overrides)
        return db.create_agent(row)
    return _make


@pytest.fixture
def make_contact(db):
    def _make(phone_e164: str, tags: Optional[List[str]] = None, source: Optional[str] = None, **extra) -> Dict[str, Any]:
        row = {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "phone_e164": phone_e164,
            "tags": tags or [],
            "source": source,
        }
        row.update(extra)
        return db.create_contact(row)
    return _make


@pytest.fixture
def client(settings, db, providers):
    app = create_app(settings=settings, db=db, providers=providers)
    with TestClient(app) as test_client:
        yield test_client
