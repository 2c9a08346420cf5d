from fastapi import APIRouter, Depends
import logging

from ..schemas.pydantic_schemas import CallStartRequest
from ..services import calls as call_service
from .deps import get_db, get_providers

# Set up logger
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/start")
async def start_call(payload: CallStartRequest, db=Depends(get_db), providers=Depends(get_providers)):
    logger.info(f"Starting call for contact {payload.contact_id} with agent {payload.agent_id}")
    return await call_service.start_call(db, providers, payload.agent_id, payload.contact_id)


@router.post("/{call_run_id}/stop")
async def stop_call(call_run_id: str, db=Depends(get_db), providers=Depends(get_providers)):
    return await call_service.stop_call(db, providers, call_run_id)
