from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from ..errors import InvalidState, UpstreamFailure
from ..schemas.pydantic_schemas import PhoneCallRequest, WebCallRequest
from ..services.call_history import calculate_analytics, transform_call
from ..services.phone import uk_local_to_e164
from ..services.retell_client import RetellClient
from .deps import get_retell

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-web-call")
async def create_web_call(body: WebCallRequest, retell: RetellClient = Depends(get_retell)):
    payload = {
        "agent_id": body.agent_id,
        "agent_version": body.agent_version or 1,
        "metadata": body.metadata or {},
        "retell_llm_dynamic_variables": body.retell_llm_dynamic_variables or {},
    }
    try:
        return await retell.create_web_call(payload)
    except UpstreamFailure as e:
        # Mirror the vendor's status so the browser SDK sees the real failure
        data = e.body if isinstance(e.body, dict) else {}
        return JSONResponse(
            status_code=e.upstream_status or 502,
            content={**data, "message": data.get("message") or "Retell API error"},
        )


@router.post("/create-call")
async def create_call(body: PhoneCallRequest, retell: RetellClient = Depends(get_retell)):
    if not body.phone_number or not body.agent_id:
        raise InvalidState("Missing required fields: phoneNumber and agentId")

    metadata: Dict[str, Any] = body.metadata or {}
    to_number = uk_local_to_e164(body.phone_number)
    dynamic_variables = {
        "pronunciation": metadata.get("pronunciation") or "",
        "first_name": metadata.get("firstName") or metadata.get("customerName") or "Customer",
        "email": metadata.get("email") or "",
        "phone_number": metadata.get("phoneNumber") or body.phone_number,
    }
    result = await retell.create_phone_call(to_number, body.agent_id, dynamic_variables, metadata=body.metadata)
    logger.info(f"Retell AI response: {result}")

    return {
        "success": True,
        "callId": result.get("call_id"),
        "status": result.get("call_status"),
        "message": "Call initiated successfully",
        "callData": {
            "toNumber": to_number,
            "agentId": body.agent_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


@router.get("/calls")
async def get_calls(
    limit: int = 50,
    offset: int = 0,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    agent_id: Optional[str] = None,
    call_status: Optional[str] = None,
    retell: RetellClient = Depends(get_retell),
):
    params: Dict[str, Any] = {"limit": limit, "offset": offset}
    for key, value in (
        ("start_date", start_date),
        ("end_date", end_date),
        ("agent_id", agent_id),
        ("call_status", call_status),
    ):
        if value:
            params[key] = value

    response = await retell.list_calls(params)
    raw_calls = response.get("calls") or []
    calls = [transform_call(c) for c in raw_calls]
    total = response.get("total_count") or 0

    return {
        "success": True,
        "calls": calls,
        "analytics": calculate_analytics(raw_calls),
        "totalCount": total,
        "pagination": {
            "limit": limit,
            "offset": offset,
            "hasMore": (offset + len(calls)) < total,
        },
    }
