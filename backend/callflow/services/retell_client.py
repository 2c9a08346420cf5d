from typing import Any, Dict, Optional
import logging

import httpx

from .telephony import HttpTelephonyProvider, ImportedAgent, ProviderName, StartCallResult
from ..errors import ConfigurationError

# Set up logger
logger = logging.getLogger(__name__)


class RetellClient(HttpTelephonyProvider):
    name = ProviderName.RETELL
    base_url = "https://api.retellai.com"

    def __init__(self, api_key: str, from_number: str, http_client: httpx.AsyncClient, timeout: float = 30.0, read_attempts: int = 3) -> None:
        super().__init__(api_key, http_client, timeout=timeout, read_attempts=read_attempts)
        self.from_number = (from_number or "").strip()

    def _require_from_number(self) -> str:
        # Validate early to avoid opaque Retell 400s
        if not self.from_number:
            logger.error("RETELL_PHONE_NUMBER is missing. Set it to your Retell-assigned E.164 number (e.g., +447700138833)")
            raise ConfigurationError("RETELL_PHONE_NUMBER missing. Set it to your Retell phone number (E.164)")
        return self.from_number

    async def start_call(self, agent_external_id: str, to_phone_e164: str, metadata: Optional[Dict[str, str]] = None) -> StartCallResult:
        logger.info(f"Starting Retell call to {to_phone_e164} with agent {agent_external_id}")
        data = await self._request("POST", "/create-phone-call", json={
            "agent_id": agent_external_id,
            "from_number": self._require_from_number(),
            "to_number": to_phone_e164,
            "metadata": metadata or {},
        })
        return StartCallResult(external_call_id=self._call_id(data, "call_id", "/create-phone-call"))

    async def stop_call(self, external_call_id: str) -> None:
        logger.info(f"Ending Retell call: {external_call_id}")
        await self._request("DELETE", f"/delete-call/{external_call_id}")

    async def _get_agent(self, external_agent_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/get-agent/{external_agent_id}", retry_reads=True)

    async def _get_llm_prompt(self, llm_id: str) -> str:
        data = await self._request("GET", f"/get-retell-llm/{llm_id}", retry_reads=True)
        llm = data.get("llm") or {}
        return (
            data.get("prompt")
            or data.get("general_prompt")
            or data.get("system_prompt")
            or llm.get("prompt")
            or llm.get("general_prompt")
            or ""
        )

    async def get_agent_prompt(self, external_agent_id: str) -> str:
        """Agent first, then the prompt of the LLM it is linked to."""
        agent = await self._get_agent(external_agent_id)
        llm_id = (agent.get("response_engine") or {}).get("llm_id")
        if not llm_id:
            logger.warning(f"No LLM linked with Retell agent {external_agent_id}")
            return ""
        prompt = await self._get_llm_prompt(llm_id)
        if not prompt:
            logger.warning(f"Prompt empty for LLM {llm_id} (agent {external_agent_id})")
        return prompt

    async def import_agent(self, external_agent_id: str) -> ImportedAgent:
        agent = await self._get_agent(external_agent_id)
        llm_id = (agent.get("response_engine") or {}).get("llm_id")
        prompt = await self._get_llm_prompt(llm_id) if llm_id else ""
        return ImportedAgent(
            name=agent.get("agent_name") or agent.get("name") or external_agent_id,
            prompt=prompt,
            config=agent,
        )

    # Dashboard passthroughs on the v2 API

    async def create_web_call(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/v2/create-web-call", json=payload)

    async def create_phone_call(self, to_number: str, agent_id: str, dynamic_variables: Dict[str, Any], metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "from_number": self._require_from_number(),
            "to_number": to_number,
            "agent_id": agent_id,
            "retell_llm_dynamic_variables": dynamic_variables,
            "opt_out_sensitive_data_storage": False,
            "opt_in_signed_url": True,
        }
        if metadata:
            payload["metadata"] = metadata
        logger.info(f"Creating call with Retell AI: to={to_number} agent={agent_id} from={payload['from_number']}")
        return await self._request("POST", "/v2/create-phone-call", json=payload)

    async def list_calls(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("GET", "/v2/list-calls", params=params, retry_reads=True)
