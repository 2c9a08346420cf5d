from fastapi import APIRouter, Depends, File, UploadFile
from typing import Optional
import logging

from ..errors import InvalidState
from ..schemas.pydantic_schemas import ContactCreate
from ..services.contact_import import import_contacts
from ..services.phone import dedupe_hash, is_e164
from .deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_contacts(
    page: int = 1,
    per_page: int = 20,
    q: Optional[str] = None,
    tags: Optional[str] = None,
    source: Optional[str] = None,
    phone: Optional[str] = None,
    db=Depends(get_db),
):
    page = max(1, page)
    per_page = min(100, max(1, per_page))
    tag_list = [t.strip() for t in (tags or "").split(",") if t.strip()]
    items, total = db.list_contacts(page, per_page, q=q, tags=tag_list or None, source=source, phone=phone)
    return {"data": items, "meta": {"page": page, "per_page": per_page, "total": total}}


@router.post("", status_code=201)
async def create_contact(body: ContactCreate, db=Depends(get_db)):
    if not is_e164(body.phone_e164):
        raise InvalidState("phone_e164 must be E.164 format")
    phone_e164 = "+" + body.phone_e164.strip().lstrip("+")
    created = db.create_contact({
        "first_name": body.first_name,
        "last_name": body.last_name,
        "phone_e164": phone_e164,
        "email": body.email,
        "tags": body.tags,
        "source": body.source,
        "dedupe_hash": dedupe_hash(phone_e164),
    })
    logger.info(f"Created contact {created.get('id')}")
    return {"data": created}


@router.post("/import")
async def import_contacts_csv(file: Optional[UploadFile] = File(default=None), db=Depends(get_db)):
    if file is None:
        raise InvalidState("No file uploaded")
    content = await file.read()
    return import_contacts(db, file.filename, content)
