from fastapi import APIRouter, Depends
import logging

from ..errors import NotFound
from ..schemas.pydantic_schemas import CallJobControlRequest, CallJobCreateRequest
from ..services.call_jobs import control_call_job, create_call_job
from .deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create")
async def create_job(body: CallJobCreateRequest, db=Depends(get_db)):
    filters = body.contact_filters
    return create_call_job(
        db,
        agent_id=body.agent_id,
        name=body.name,
        contact_ids=filters.contact_ids if filters else None,
        tags=filters.tags if filters else None,
        source=filters.source if filters else None,
        rate_limit=body.rate_limit,
    )


@router.post("/control")
async def control_job(body: CallJobControlRequest, db=Depends(get_db)):
    return control_call_job(db, body.job_id, body.action)


@router.get("/{job_id}")
async def get_job(job_id: str, db=Depends(get_db)):
    job = db.get_call_job(job_id)
    if not job:
        raise NotFound("Job not found")
    return job
