from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timezone
import logging

from ..errors import InvalidState, NotFound

logger = logging.getLogger(__name__)

JOB_STATUSES = ("draft", "queued", "running", "paused", "failed")

# action -> (allowed current statuses or None for any, new status, rejection message)
TRANSITIONS: Dict[str, Tuple[Optional[Tuple[str, ...]], str, str]] = {
    "start": (("draft",), "queued", "Job already started"),
    "pause": (("running", "queued"), "paused", "Job not running"),
    "resume": (("paused",), "queued", "Job not paused"),
    "cancel": (None, "failed", ""),
}


def next_status(action: str, current: str) -> str:
    """Status a job moves to when `action` is applied in `current`; raises InvalidState otherwise."""
    if action not in TRANSITIONS:
        raise InvalidState("Invalid action")
    allowed, new_status, rejection = TRANSITIONS[action]
    if allowed is not None and current not in allowed:
        raise InvalidState(rejection)
    return new_status


def select_contacts(db, contact_ids: Optional[List[str]] = None, tags: Optional[List[str]] = None, source: Optional[str] = None) -> List[Dict[str, Any]]:
    """Contacts matching every provided filter, minus do-not-call numbers."""
    candidates = db.find_contacts(contact_ids=contact_ids or None, tags=tags or None, source=source or None)
    dnc_phones = db.list_dnc_phones()
    return [c for c in candidates if c.get("phone_e164") not in dnc_phones]


def create_call_job(
    db,
    agent_id: str,
    name: Optional[str] = None,
    contact_ids: Optional[List[str]] = None,
    tags: Optional[List[str]] = None,
    source: Optional[str] = None,
    rate_limit: int = 10,
) -> Dict[str, Any]:
    agent = db.get_agent(agent_id)
    if not agent:
        raise NotFound("Agent not found")
    if agent.get("mode") != "outbound":
        raise InvalidState("Agent must be outbound mode")
    if not agent.get("is_active"):
        raise InvalidState("Agent is not active")

    valid_contacts = select_contacts(db, contact_ids=contact_ids, tags=tags, source=source)
    if not valid_contacts:
        raise InvalidState("No valid contacts found")

    job = db.create_call_job({
        "agent_id": agent_id,
        "name": name or f"Job {datetime.now(timezone.utc).isoformat()}",
        "status": "draft",
        "total_contacts": len(valid_contacts),
        "config_json": {"rate_limit": rate_limit},
    })

    job_contacts = [
        {"call_job_id": job["id"], "contact_id": c["id"], "status": "queued", "attempts": 0}
        for c in valid_contacts
    ]
    try:
        db.insert_call_job_contacts(job_contacts)
    except Exception:
        logger.error(f"Enqueueing contacts for job {job['id']} failed; rolling back job")
        db.delete_call_job(job["id"])
        raise

    logger.info(f"Created call job {job['id']} for agent {agent_id} with {len(valid_contacts)} contacts")
    return {"jobId": job["id"], "totalContacts": len(valid_contacts), "status": "draft"}


def control_call_job(db, job_id: str, action: str) -> Dict[str, Any]:
    job = db.get_call_job(job_id)
    if not job:
        raise NotFound("Job not found")

    try:
        new_status = next_status(action, job.get("status"))
    except InvalidState as e:
        logger.warning(f"Rejected {action} on job {job_id} in status {job.get('status')}: {e.message}")
        raise

    updated = db.update_call_job_status(job_id, job.get("version", 0), new_status)
    if not updated:
        raise InvalidState("Job was modified concurrently")

    logger.info(f"Job {job_id}: {job.get('status')} -> {new_status} ({action})")
    return {"jobId": job_id, "status": new_status}
