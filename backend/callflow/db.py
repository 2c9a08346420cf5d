from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from uuid import uuid4
from datetime import datetime, timezone
import logging

# Lightweight adapter over Supabase client. Keep an in-memory store when SUPABASE_URL is missing.
from supabase import create_client, Client

from .config import Settings
from .errors import ConflictError, StoreFailure

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryDB:
    def __init__(self) -> None:
        self.agents: Dict[str, Dict[str, Any]] = {}
        self.contacts: Dict[str, Dict[str, Any]] = {}
        self.do_not_call: Set[str] = set()
        self.call_jobs: Dict[str, Dict[str, Any]] = {}
        self.call_job_contacts: List[Dict[str, Any]] = []
        self.call_runs: Dict[str, Dict[str, Any]] = {}
        self.import_jobs: Dict[str, Dict[str, Any]] = {}

    # Agents
    def get_agent(self, agent_id: str) -> Optional[Dict[str, Any]]:
        return self.agents.get(str(agent_id))

    def list_agents(self) -> List[Dict[str, Any]]:
        return list(self.agents.values())

    def create_agent(self, row: Dict[str, Any]) -> Dict[str, Any]:
        obj = dict(row)
        obj.setdefault("id", str(uuid4()))
        obj.setdefault("is_active", True)
        obj.setdefault("created_at", _now())
        self.agents[obj["id"]] = obj
        return obj

    # Contacts
    def get_contact(self, contact_id: str) -> Optional[Dict[str, Any]]:
        return self.contacts.get(str(contact_id))

    def find_contacts(
        self,
        contact_ids: Optional[List[str]] = None,
        tags: Optional[List[str]] = None,
        source: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        items = list(self.contacts.values())
        if contact_ids:
            wanted = {str(c) for c in contact_ids}
            items = [c for c in items if c["id"] in wanted]
        if tags:
            items = [c for c in items if set(tags) <= set(c.get("tags") or [])]
        if source:
            items = [c for c in items if c.get("source") == source]
        return [{"id": c["id"], "phone_e164": c.get("phone_e164")} for c in items]

    def list_contacts(
        self,
        page: int,
        per_page: int,
        q: Optional[str] = None,
        tags: Optional[List[str]] = None,
        source: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        # newest first
        items = list(reversed(list(self.contacts.values())))
        if q:
            needle = q.lower()
            items = [
                c for c in items
                if any(needle in (c.get(k) or "").lower() for k in ("first_name", "last_name", "email"))
            ]
        if tags:
            items = [c for c in items if set(tags) <= set(c.get("tags") or [])]
        if source:
            items = [c for c in items if c.get("source") == source]
        if phone:
            items = [c for c in items if c.get("phone_e164") == phone]
        total = len(items)
        start = (page - 1) * per_page
        return items[start:start + per_page], total

    def list_contact_phones(self) -> Set[str]:
        return {c["phone_e164"] for c in self.contacts.values() if c.get("phone_e164")}

    def create_contact(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if row.get("phone_e164") in self.list_contact_phones():
            raise ConflictError("Contact with this phone already exists")
        obj = dict(row)
        obj.setdefault("id", str(uuid4()))
        obj.setdefault("created_at", _now())
        self.contacts[obj["id"]] = obj
        return obj

    def insert_contacts(self, rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows = list(rows)
        phones = self.list_contact_phones()
        for row in rows:
            if row.get("phone_e164") in phones:
                raise StoreFailure(f'duplicate key value violates unique constraint on phone_e164 ({row.get("phone_e164")})')
            phones.add(row.get("phone_e164"))
        return [self.create_contact(row) for row in rows]

    # Do-not-call
    def list_dnc_phones(self) -> Set[str]:
        return set(self.do_not_call)

    def is_dnc(self, phone_e164: str) -> bool:
        return phone_e164 in self.do_not_call

    def add_dnc(self, phone_e164: str) -> None:
        self.do_not_call.add(phone_e164)

    # Call jobs
    def create_call_job(self, row: Dict[str, Any]) -> Dict[str, Any]:
        obj = dict(row)
        obj["id"] = str(uuid4())
        obj.setdefault("version", 0)
        obj["created_at"] = _now()
        self.call_jobs[obj["id"]] = obj
        return obj

    def get_call_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        return self.call_jobs.get(str(job_id))

    def delete_call_job(self, job_id: str) -> None:
        self.call_jobs.pop(str(job_id), None)
        self.call_job_contacts = [r for r in self.call_job_contacts if r["call_job_id"] != str(job_id)]

    def insert_call_job_contacts(self, rows: Iterable[Dict[str, Any]]) -> None:
        self.call_job_contacts.extend(dict(r) for r in rows)

    def list_call_job_contacts(self, job_id: str) -> List[Dict[str, Any]]:
        return [r for r in self.call_job_contacts if r["call_job_id"] == str(job_id)]

    def update_call_job_status(self, job_id: str, expected_version: int, status: str) -> Optional[Dict[str, Any]]:
        job = self.call_jobs.get(str(job_id))
        if not job or job.get("version", 0) != expected_version:
            return None
        job["status"] = status
        job["version"] = expected_version + 1
        return job

    # Call runs
    def create_call_run(self, row: Dict[str, Any]) -> Dict[str, Any]:
        obj = dict(row)
        obj["id"] = str(uuid4())
        self.call_runs[obj["id"]] = obj
        return obj

    def get_call_run(self, call_run_id: str) -> Optional[Dict[str, Any]]:
        return self.call_runs.get(str(call_run_id))

    # Import jobs
    def create_import_job(self, row: Dict[str, Any]) -> Dict[str, Any]:
        obj = dict(row)
        obj["id"] = str(uuid4())
        obj["created_at"] = _now()
        self.import_jobs[obj["id"]] = obj
        return obj

    def update_import_job(self, import_job_id: str, updates: Dict[str, Any]) -> None:
        if import_job_id in self.import_jobs:
            self.import_jobs[import_job_id].update(updates)


class SupabaseDB:
    def __init__(self, client: Client) -> None:
        self.client = client

    def _execute(self, query, what: str):
        try:
            return query.execute()
        except Exception as e:
            logger.error(f"Supabase {what} failed: {e}")
            raise StoreFailure(f"Failed to {what}: {e}") from e

    def _first(self, table: str, column: str, value: Any, columns: str = "*") -> Optional[Dict[str, Any]]:
        res = self._execute(
            self.client.table(table).select(columns).eq(column, value).limit(1),
            f"fetch {table}",
        )
        return (res.data or [None])[0]

    # Agents
    def get_agent(self, agent_id: str) -> Optional[Dict[str, Any]]:
        return self._first("agents", "id", str(agent_id))

    def list_agents(self) -> List[Dict[str, Any]]:
        res = self._execute(self.client.table("agents").select("*").order("created_at", desc=False), "list agents")
        return res.data or []

    def create_agent(self, row: Dict[str, Any]) -> Dict[str, Any]:
        res = self._execute(self.client.table("agents").insert(row), "create agent")
        return (res.data or [])[0]

    # Contacts
    def get_contact(self, contact_id: str) -> Optional[Dict[str, Any]]:
        return self._first("contacts", "id", str(contact_id))

    def find_contacts(
        self,
        contact_ids: Optional[List[str]] = None,
        tags: Optional[List[str]] = None,
        source: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        query = self.client.table("contacts").select("id, phone_e164")
        if contact_ids:
            query = query.in_("id", [str(c) for c in contact_ids])
        if tags:
            query = query.contains("tags", tags)
        if source:
            query = query.eq("source", source)
        res = self._execute(query, "fetch contacts")
        return res.data or []

    def list_contacts(
        self,
        page: int,
        per_page: int,
        q: Optional[str] = None,
        tags: Optional[List[str]] = None,
        source: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        query = self.client.table("contacts").select("*", count="exact")
        if q:
            query = query.or_(f"first_name.ilike.%{q}%,last_name.ilike.%{q}%,email.ilike.%{q}%")
        if tags:
            query = query.contains("tags", tags)
        if source:
            query = query.eq("source", source)
        if phone:
            query = query.eq("phone_e164", phone)
        start = (page - 1) * per_page
        end = start + per_page - 1
        res = self._execute(query.order("created_at", desc=True).range(start, end), "fetch contacts")
        return res.data or [], res.count or 0

    def list_contact_phones(self) -> Set[str]:
        res = self._execute(self.client.table("contacts").select("phone_e164"), "fetch contacts")
        return {r["phone_e164"] for r in (res.data or []) if r.get("phone_e164")}

    def create_contact(self, row: Dict[str, Any]) -> Dict[str, Any]:
        try:
            res = self.client.table("contacts").insert([row]).execute()
        except Exception as e:
            # unique violation on phone_e164
            if "duplicate" in str(e).lower() or "unique" in str(e).lower():
                raise ConflictError("Contact with this phone already exists") from e
            logger.error(f"Contacts insert failed: {e}")
            raise StoreFailure("Failed to create contact") from e
        return (res.data or [])[0]

    def insert_contacts(self, rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        res = self._execute(self.client.table("contacts").insert(list(rows)), "insert contacts")
        return res.data or []

    # Do-not-call
    def list_dnc_phones(self) -> Set[str]:
        res = self._execute(self.client.table("do_not_call").select("phone_e164"), "fetch do-not-call list")
        return {r["phone_e164"] for r in (res.data or [])}

    def is_dnc(self, phone_e164: str) -> bool:
        return self._first("do_not_call", "phone_e164", phone_e164, columns="phone_e164") is not None

    def add_dnc(self, phone_e164: str) -> None:
        self._execute(self.client.table("do_not_call").upsert({"phone_e164": phone_e164}), "update do-not-call list")

    # Call jobs
    def create_call_job(self, row: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(row)
        payload.setdefault("version", 0)
        res = self._execute(self.client.table("call_jobs").insert(payload), "create call job")
        return (res.data or [])[0]

    def get_call_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        return self._first("call_jobs", "id", str(job_id))

    def delete_call_job(self, job_id: str) -> None:
        self._execute(self.client.table("call_jobs").delete().eq("id", str(job_id)), "delete call job")

    def insert_call_job_contacts(self, rows: Iterable[Dict[str, Any]]) -> None:
        self._execute(self.client.table("call_job_contacts").insert(list(rows)), "enqueue job contacts")

    def list_call_job_contacts(self, job_id: str) -> List[Dict[str, Any]]:
        res = self._execute(
            self.client.table("call_job_contacts").select("*").eq("call_job_id", str(job_id)),
            "fetch job contacts",
        )
        return res.data or []

    def update_call_job_status(self, job_id: str, expected_version: int, status: str) -> Optional[Dict[str, Any]]:
        # Compare-and-swap on version; no row back means someone else wrote first
        res = self._execute(
            self.client.table("call_jobs")
            .update({"status": status, "version": expected_version + 1})
            .eq("id", str(job_id))
            .eq("version", expected_version),
            "update call job",
        )
        return (res.data or [None])[0]

    # Call runs
    def create_call_run(self, row: Dict[str, Any]) -> Dict[str, Any]:
        res = self._execute(self.client.table("call_runs").insert(row), "record call run")
        return (res.data or [])[0]

    def get_call_run(self, call_run_id: str) -> Optional[Dict[str, Any]]:
        return self._first("call_runs", "id", str(call_run_id))

    # Import jobs
    def create_import_job(self, row: Dict[str, Any]) -> Dict[str, Any]:
        res = self._execute(self.client.table("import_jobs").insert(row), "create import job")
        return (res.data or [])[0]

    def update_import_job(self, import_job_id: str, updates: Dict[str, Any]) -> None:
        self._execute(self.client.table("import_jobs").update(updates).eq("id", import_job_id), "update import job")


def build_db(settings: Settings):
    if settings.uses_supabase:
        logger.info("Using Supabase store")
        return SupabaseDB(create_client(settings.supabase_url, settings.supabase_key))
    logger.info("SUPABASE_URL not set; using in-memory store")
    return InMemoryDB()
