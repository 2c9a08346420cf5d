"""
Telephony provider interface.

Each voice-AI vendor is one `TelephonyProvider` subclass translating the
uniform start/stop/prompt/import contract into its own REST calls.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
import logging

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import ConfigurationError, UpstreamFailure

logger = logging.getLogger(__name__)


class ProviderName(str, Enum):
    RETELL = "retell"
    VAPI = "vapi"


@dataclass(frozen=True)
class StartCallResult:
    external_call_id: str


@dataclass(frozen=True)
class ImportedAgent:
    name: str
    prompt: str
    config: Dict[str, Any] = field(default_factory=dict)


class TelephonyProvider(ABC):
    name: ProviderName

    @abstractmethod
    async def start_call(self, agent_external_id: str, to_phone_e164: str, metadata: Optional[Dict[str, str]] = None) -> StartCallResult:
        """Place an outbound call and return the vendor's call id."""

    @abstractmethod
    async def stop_call(self, external_call_id: str) -> None:
        """Hang up / cancel a call the vendor knows about."""

    @abstractmethod
    async def get_agent_prompt(self, external_agent_id: str) -> str:
        """Return the prompt text configured on the vendor agent ("" if none)."""

    @abstractmethod
    async def import_agent(self, external_agent_id: str) -> ImportedAgent:
        """Fetch name, prompt and raw config of a vendor agent."""


class HttpTelephonyProvider(TelephonyProvider):
    """Shared request plumbing: bearer auth, timeout, error translation.

    Writes go out exactly once. Reads (`retry_reads=True`) are retried on
    transport errors up to `read_attempts` times.
    """

    base_url: str = ""

    def __init__(self, api_key: str, http_client: httpx.AsyncClient, timeout: float = 30.0, read_attempts: int = 3) -> None:
        self.api_key = (api_key or "").strip()
        self.http = http_client
        self.timeout = timeout
        self.read_attempts = max(1, read_attempts)

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ConfigurationError(f"{self.name.value} API key is not configured")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _send(self, method: str, url: str, json: Any = None, params: Any = None) -> httpx.Response:
        return await self.http.request(method, url, headers=self._headers(), json=json, params=params, timeout=self.timeout)

    async def _request(self, method: str, path: str, json: Any = None, params: Any = None, retry_reads: bool = False) -> Any:
        url = f"{self.base_url}{path}"
        attempts = self.read_attempts if retry_reads else 1
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(attempts),
                wait=wait_exponential(multiplier=0.5, max=5),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await self._send(method, url, json=json, params=params)
        except httpx.TransportError as e:
            logger.error(f"{self.name.value} request error on {method} {url}: {e}")
            raise UpstreamFailure(f"{self.name.value} request to {path} failed: {e}") from e

        logger.info(f"{self.name.value} {method} {path} -> {response.status_code}")
        if response.status_code < 200 or response.status_code >= 300:
            body = _safe_json(response)
            logger.error(f"{self.name.value} HTTP error: {response.status_code} - {response.text}")
            raise UpstreamFailure(
                f"{self.name.value} {path} failed: {response.status_code} {response.text}",
                upstream_status=response.status_code,
                body=body,
            )
        return _safe_json(response)

    def _call_id(self, data: Any, key: str, path: str) -> str:
        call_id = data.get(key) if isinstance(data, dict) else None
        if not call_id:
            logger.error(f"{self.name.value} {path} returned no {key}: {data}")
            raise UpstreamFailure(f"{self.name.value} {path} response missing call id", body=data)
        return str(call_id)


def _safe_json(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}
