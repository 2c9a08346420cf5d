"""
CSV contact import.

Accepted columns (case-insensitive): first_name/firstname, last_name/lastname,
name, email, phone/phone_number/mobile/phone_e164, tags (comma separated),
source. Rows whose E.164 phone already exists, in the store or earlier in the
same file, are skipped rather than failed.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import csv
import io
import logging

from ..errors import InvalidState, StoreFailure
from .phone import dedupe_hash, format_for_display, to_e164

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
MAX_ERRORS_REPORTED = 100
MAX_SKIPPED_REPORTED = 50
PHONE_COLUMNS = ("phone", "phone_number", "mobile", "phone_e164")


def parse_csv(content: bytes) -> List[Dict[str, str]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise InvalidState("File must be UTF-8 encoded CSV")
    reader = csv.DictReader(io.StringIO(text))
    rows = []
    for raw in reader:
        row = {
            (k or "").strip().lower(): (v or "").strip()
            for k, v in raw.items()
            if k is not None and not isinstance(v, list)
        }
        if not any(row.values()):
            continue
        rows.append(row)
    return rows


def _split_name(name: str):
    parts = name.split(" ")
    return parts[0] or None, " ".join(parts[1:]) or None


def build_contact(row: Dict[str, str], phone_e164: str) -> Dict[str, Any]:
    first_from_name, last_from_name = _split_name(row.get("name", ""))
    now = datetime.now(timezone.utc).isoformat()
    return {
        "first_name": row.get("first_name") or row.get("firstname") or first_from_name,
        "last_name": row.get("last_name") or row.get("lastname") or last_from_name,
        "email": row.get("email") or None,
        "phone": format_for_display(phone_e164),
        "phone_e164": phone_e164,
        "tags": [t.strip() for t in row["tags"].split(",") if t.strip()] if row.get("tags") else [],
        "source": row.get("source") or "import",
        "dedupe_hash": dedupe_hash(phone_e164),
        "created_at": now,
        "updated_at": now,
    }


def import_contacts(db, filename: Optional[str], content: bytes) -> Dict[str, Any]:
    records = parse_csv(content)

    job_id = None
    try:
        job = db.create_import_job({
            "filename": filename or "contacts.csv",
            "status": "validating",
            "total_rows": len(records),
        })
        job_id = job.get("id")
    except StoreFailure:
        logger.info("Import jobs table not available, skipping job creation")

    existing_phones = db.list_contact_phones()

    valid_rows: List[Dict[str, Any]] = []
    errors: List[str] = []
    skipped: List[str] = []

    for index, row in enumerate(records, start=1):
        raw_phone = next((row[c] for c in PHONE_COLUMNS if row.get(c)), "")
        if not raw_phone:
            errors.append(f"Row {index}: Missing phone number")
            continue

        phone_e164 = to_e164(raw_phone)
        if not phone_e164 or len(phone_e164) < 10:
            errors.append(f"Row {index}: Invalid phone format - {raw_phone}")
            continue

        if phone_e164 in existing_phones:
            skipped.append(f"Row {index}: Duplicate phone skipped - {phone_e164}")
            continue

        existing_phones.add(phone_e164)
        valid_rows.append(build_contact(row, phone_e164))

    imported = 0
    for i in range(0, len(valid_rows), BATCH_SIZE):
        batch = valid_rows[i:i + BATCH_SIZE]
        try:
            db.insert_contacts(batch)
            imported += len(batch)
        except StoreFailure as e:
            logger.error(f"Batch insert error: {e.message}")
            errors.append(f"Failed to insert batch {i // BATCH_SIZE + 1}: {e.message}")

    if job_id:
        db.update_import_job(job_id, {
            "status": "completed",
            "valid_rows": imported,
            "error_rows": len(errors),
        })

    logger.info(f"Imported {imported} of {len(records)} contacts ({len(skipped)} skipped, {len(errors)} failed)")
    return {
        "success": True,
        "job_id": job_id,
        "total": len(records),
        "imported": imported,
        "skipped": len(skipped),
        "failed": len(errors),
        "errors": errors[:MAX_ERRORS_REPORTED],
        "skipped_details": skipped[:MAX_SKIPPED_REPORTED],
    }
