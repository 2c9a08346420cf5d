from fastapi import APIRouter, Depends
import logging

from ..errors import NotFound
from ..schemas.pydantic_schemas import AgentImportRequest
from ..services.provider_registry import get_provider
from .deps import get_db, get_providers

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_agents(db=Depends(get_db)):
    return db.list_agents()


@router.post("/import")
async def import_agent(body: AgentImportRequest, db=Depends(get_db), providers=Depends(get_providers)):
    provider = get_provider(providers, body.provider)
    imported = await provider.import_agent(body.external_agent_id)
    created = db.create_agent({
        "name": imported.name,
        "provider": provider.name.value,
        "external_agent_id": body.external_agent_id,
        "mode": body.mode,
        "is_active": True,
        "prompt": imported.prompt,
        "config_json": imported.config,
    })
    logger.info(f"Imported {provider.name.value} agent {body.external_agent_id} as {created.get('id')}")
    return created


@router.get("/{agent_id}/prompt")
async def get_agent_prompt(agent_id: str, db=Depends(get_db), providers=Depends(get_providers)):
    agent = db.get_agent(agent_id)
    if not agent:
        raise NotFound("Agent not found")
    provider = get_provider(providers, agent.get("provider"))
    prompt = await provider.get_agent_prompt(agent["external_agent_id"])
    return {"agentId": agent_id, "prompt": prompt}
