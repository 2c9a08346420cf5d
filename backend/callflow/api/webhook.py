from fastapi import APIRouter, Depends, Request, HTTPException
import hmac, hashlib, json
import logging

from ..config import Settings
from ..errors import ConfigurationError
from .deps import get_settings

# Set up logger
logger = logging.getLogger(__name__)

router = APIRouter()


def sign_body(request_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), request_body, hashlib.sha256).hexdigest()


def verify_signature(request_body: bytes, signature: str, secret: str) -> bool:
    return hmac.compare_digest(sign_body(request_body, secret), signature or "")


@router.post("/webhook")
async def retell_webhook(request: Request, settings: Settings = Depends(get_settings)):
    logger.info("Received webhook request from Retell AI")
    if not settings.retell_api_key:
        raise ConfigurationError("RETELL_API_KEY not configured")

    body = await request.body()
    sig = request.headers.get("x-retell-signature", "")
    if not verify_signature(body, sig, settings.retell_api_key):
        logger.warning("Webhook signature verification failed")
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        content = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Failed to parse webhook JSON: {str(e)}")
        raise HTTPException(status_code=400, detail="Malformed JSON")

    event = content.get("event") if isinstance(content, dict) else None
    call_id = ((content.get("data") or {}) if isinstance(content, dict) else {}).get("call_id")
    if event == "call_started":
        logger.info(f"Call started event received {call_id}")
    elif event == "call_ended":
        logger.info(f"Call ended event received {call_id}")
    elif event == "call_analyzed":
        logger.info(f"Call analyzed event received {call_id}")
    else:
        logger.info(f"Received an unknown event: {event}")

    return {"received": True}
