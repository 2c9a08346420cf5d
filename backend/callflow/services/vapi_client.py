from typing import Dict, Optional
import logging

from .telephony import HttpTelephonyProvider, ImportedAgent, ProviderName, StartCallResult

logger = logging.getLogger(__name__)


class VapiClient(HttpTelephonyProvider):
    name = ProviderName.VAPI
    base_url = "https://api.vapi.ai/v1"

    async def start_call(self, agent_external_id: str, to_phone_e164: str, metadata: Optional[Dict[str, str]] = None) -> StartCallResult:
        logger.info(f"Starting VAPI call to {to_phone_e164} with agent {agent_external_id}")
        data = await self._request("POST", "/calls", json={
            "agent_id": agent_external_id,
            "to": to_phone_e164,
            "metadata": metadata or {},
        })
        return StartCallResult(external_call_id=self._call_id(data, "id", "/calls"))

    async def stop_call(self, external_call_id: str) -> None:
        await self._request("POST", f"/calls/{external_call_id}/stop")

    async def get_agent_prompt(self, external_agent_id: str) -> str:
        data = await self._request("GET", f"/agents/{external_agent_id}", retry_reads=True)
        return data.get("prompt") or ""

    async def import_agent(self, external_agent_id: str) -> ImportedAgent:
        data = await self._request("GET", f"/agents/{external_agent_id}", retry_reads=True)
        return ImportedAgent(
            name=data.get("name") or external_agent_id,
            prompt=data.get("prompt") or "",
            config=data,
        )
