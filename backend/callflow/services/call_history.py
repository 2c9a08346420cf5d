from typing import Any, Dict, List, Optional
import math


STATUS_OUTCOMES = {
    "failed": "Failed to connect",
    "busy": "No answer",
    "no_answer": "No answer",
    "voicemail": "Voicemail",
    "in_progress": "In progress",
    "queued": "Queued",
}


def _percent(part: int, whole: int) -> int:
    # half-up, matching the dashboard's rounding
    return int(math.floor(part * 100 / whole + 0.5))


def map_retell_status(status: Optional[str], end_reason: Optional[str] = None) -> str:
    if status == "completed":
        return "Meeting booked" if end_reason == "agent_hangup" else "Customer ended call"
    return STATUS_OUTCOMES.get(status or "", "Unknown")


def format_duration(seconds: Optional[int]) -> str:
    if not seconds:
        return "0:00"
    seconds = int(seconds)
    return f"{seconds // 60}:{seconds % 60:02d}"


def transform_call(call: Dict[str, Any]) -> Dict[str, Any]:
    metadata = call.get("metadata") or {}
    return {
        "id": call.get("call_id"),
        "phoneNumber": call.get("to_number"),
        "customer": metadata.get("customer_name") or "Customer",
        "agent": call.get("agent_id") or "Unknown Agent",
        "outcome": map_retell_status(call.get("call_status"), call.get("end_reason")),
        "duration": format_duration(call.get("call_length_seconds")),
        "date": call.get("start_timestamp"),
        "transcript": call.get("transcript") or "Transcript not available",
        "recording": call.get("recording_url"),
        "metadata": metadata,
    }


def calculate_analytics(calls: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not calls:
        return {
            "totalCalls": 0,
            "pickupRate": 0,
            "connectionRate": 0,
            "successRate": 0,
            "averageDuration": 0,
            "callOutcomes": [],
        }

    total = len(calls)
    connected = sum(1 for c in calls if c.get("call_status") in ("completed", "voicemail"))
    successful = sum(1 for c in calls if c.get("call_status") == "completed" and c.get("end_reason") == "agent_hangup")
    durations = [c.get("call_length_seconds") or 0 for c in calls if c.get("call_status") == "completed"]
    average = int(math.floor(sum(durations) / len(durations) + 0.5)) if durations else 0

    counts: Dict[str, int] = {}
    for c in calls:
        outcome = map_retell_status(c.get("call_status"), c.get("end_reason"))
        counts[outcome] = counts.get(outcome, 0) + 1
    outcomes = [
        {"name": name, "count": count, "percentage": _percent(count, total)}
        for name, count in counts.items()
    ]
    outcomes.sort(key=lambda o: o["percentage"], reverse=True)

    return {
        "totalCalls": total,
        "pickupRate": _percent(connected, total),
        "connectionRate": _percent(connected, total),
        "successRate": _percent(successful, total),
        "averageDuration": average,
        "callOutcomes": outcomes,
    }
