import pytest

from callflow.errors import InvalidState, StoreFailure
from callflow.services.contact_import import BATCH_SIZE, import_contacts, parse_csv
from callflow.services.phone import dedupe_hash


def csv_bytes(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


def test_equivalent_phones_persist_once(db):
    content = csv_bytes(
        "first_name,last_name,phone",
        "Ada,Lovelace,07700 900123",
        "Ada,L,+44 7700 900123",
    )

    result = import_contacts(db, "contacts.csv", content)

    assert result["total"] == 2
    assert result["imported"] == 1
    assert result["skipped"] == 1
    assert result["failed"] == 0
    assert result["skipped_details"] == ["Row 2: Duplicate phone skipped - +447700900123"]
    assert list(db.list_contact_phones()) == ["+447700900123"]


def test_contact_fields(db):
    content = csv_bytes(
        "Name,Email,Mobile,Tags,Source",
        "Grace Brewster Hopper,grace@example.com,07700900555,\"hot, vip\",",
    )

    import_contacts(db, "leads.csv", content)

    contact = next(iter(db.contacts.values()))
    assert contact["first_name"] == "Grace"
    assert contact["last_name"] == "Brewster Hopper"
    assert contact["email"] == "grace@example.com"
    assert contact["phone_e164"] == "+447700900555"
    assert contact["phone"] == "07700 900555"
    assert contact["tags"] == ["hot", "vip"]
    assert contact["source"] == "import"
    assert contact["dedupe_hash"] == dedupe_hash("+447700900555")


def test_existing_contacts_are_skipped(db, make_contact):
    make_contact("+447700900123")
    result = import_contacts(db, None, csv_bytes("phone_number", "07700900123", "07700900124"))
    assert result["imported"] == 1
    assert result["skipped"] == 1


def test_row_errors(db):
    content = csv_bytes(
        "first_name,phone",
        "NoPhone,",
        "Short,12345",
        "Good,07700900999",
    )

    result = import_contacts(db, "contacts.csv", content)

    assert result["imported"] == 1
    assert result["failed"] == 2
    assert result["errors"] == [
        "Row 1: Missing phone number",
        "Row 2: Invalid phone format - 12345",
    ]


def test_import_job_bookkeeping(db):
    result = import_contacts(db, "contacts.csv", csv_bytes("phone", "07700900123", "bad"))

    job = db.import_jobs[result["job_id"]]
    assert job["filename"] == "contacts.csv"
    assert job["total_rows"] == 2
    assert job["status"] == "completed"
    assert job["valid_rows"] == 1
    assert job["error_rows"] == 1


def test_missing_import_jobs_table_is_tolerated(db, monkeypatch):
    def no_table(row):
        raise StoreFailure("relation import_jobs does not exist")

    monkeypatch.setattr(db, "create_import_job", no_table)
    result = import_contacts(db, "contacts.csv", csv_bytes("phone", "07700900123"))
    assert result["job_id"] is None
    assert result["imported"] == 1


def test_failed_batch_is_reported_not_raised(db, monkeypatch):
    def broken(rows):
        raise StoreFailure("Failed to insert contacts: timeout")

    monkeypatch.setattr(db, "insert_contacts", broken)
    result = import_contacts(db, "contacts.csv", csv_bytes("phone", "07700900123"))
    assert result["imported"] == 0
    assert result["errors"] == ["Failed to insert batch 1: Failed to insert contacts: timeout"]


def test_inserts_in_batches(db, monkeypatch):
    batches = []
    original = db.insert_contacts

    def spy(rows):
        batches.append(len(rows))
        return original(rows)

    monkeypatch.setattr(db, "insert_contacts", spy)
    lines = ["phone"] + [f"0770090{i:04d}" for i in range(BATCH_SIZE + 5)]
    result = import_contacts(db, "big.csv", csv_bytes(*lines))
    assert batches == [BATCH_SIZE, 5]
    assert result["imported"] == BATCH_SIZE + 5


@pytest.mark.parametrize("bom", [b"", b"\xef\xbb\xbf"])
def test_parse_csv_normalises_headers(bom):
    rows = parse_csv(bom + csv_bytes(" First_Name ,PHONE", " Ada , 0770 ", ",", ""))
    assert rows == [{"first_name": "Ada", "phone": "0770"}]


def test_non_utf8_upload_is_rejected(db):
    content = "first_name,phone\nJosé,07700900123\n".encode("latin-1")
    with pytest.raises(InvalidState, match="File must be UTF-8 encoded CSV"):
        import_contacts(db, "latin1.csv", content)
    assert db.contacts == {}
    assert db.import_jobs == {}
