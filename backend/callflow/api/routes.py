from fastapi import APIRouter
from .agents import router as agents_router
from .call_jobs import router as call_jobs_router
from .calls import router as calls_router
from .contacts import router as contacts_router
from .retell import router as retell_router, create_web_call
from .webhook import router as webhook_router

api_router = APIRouter()
api_router.include_router(call_jobs_router, prefix="/call-jobs", tags=["call-jobs"])
api_router.include_router(calls_router, prefix="/calls", tags=["calls"])
api_router.include_router(contacts_router, prefix="/contacts", tags=["contacts"])
api_router.include_router(agents_router, prefix="/agents", tags=["agents"])
api_router.include_router(retell_router, prefix="/retell", tags=["retell"])
api_router.include_router(webhook_router, prefix="/retell", tags=["retell"])
# Legacy path used by the web-call widget
api_router.add_api_route("/retell-create-web-call", create_web_call, methods=["POST"], tags=["retell"])
