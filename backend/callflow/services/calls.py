from typing import Any, Dict, Mapping
from datetime import datetime, timezone
import logging

from ..errors import InvalidState, NotFound
from .provider_registry import get_provider
from .telephony import ProviderName, TelephonyProvider

logger = logging.getLogger(__name__)


async def start_call(db, providers: Mapping[ProviderName, TelephonyProvider], agent_id: str, contact_id: str) -> Dict[str, Any]:
    """Dial one contact with one agent and record the call run.

    Nothing is written when the provider refuses the call.
    """
    agent = db.get_agent(agent_id)
    if not agent or not agent.get("is_active"):
        raise NotFound("Agent not found or inactive")

    contact = db.get_contact(contact_id)
    if not contact:
        raise NotFound("Contact not found")

    if db.is_dnc(contact["phone_e164"]):
        logger.warning(f"Refusing to call contact {contact_id}: number is on DNC list")
        raise InvalidState("Contact is on DNC list")

    provider = get_provider(providers, agent.get("provider"))
    result = await provider.start_call(
        agent["external_agent_id"],
        contact["phone_e164"],
        {
            "contact_id": str(contact_id),
            "first_name": contact.get("first_name") or "",
            "last_name": contact.get("last_name") or "",
        },
    )

    call_run = db.create_call_run({
        "external_call_id": result.external_call_id,
        "agent_id": agent_id,
        "contact_id": contact_id,
        "provider": agent.get("provider"),
        "direction": "outbound",
        "status": "initiated",
        "started_at": datetime.now(timezone.utc).isoformat(),
    })
    logger.info(f"Call run {call_run['id']} initiated ({agent.get('provider')} call {result.external_call_id})")

    return {
        "callRunId": call_run["id"],
        "externalCallId": result.external_call_id,
        "status": "initiated",
    }


async def stop_call(db, providers: Mapping[ProviderName, TelephonyProvider], call_run_id: str) -> Dict[str, Any]:
    call_run = db.get_call_run(call_run_id)
    if not call_run:
        raise NotFound("Call run not found")
    provider = get_provider(providers, call_run.get("provider"))
    await provider.stop_call(call_run["external_call_id"])
    logger.info(f"Stopped call run {call_run_id}")
    return {"callRunId": call_run_id, "status": "stopped"}
