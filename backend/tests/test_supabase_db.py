"""SupabaseDB against a mocked supabase client: query chains and error mapping."""
from unittest.mock import MagicMock, call

import pytest

from callflow.db import SupabaseDB
from callflow.errors import ConflictError, StoreFailure


@pytest.fixture
def mock_client():
    return MagicMock()


@pytest.fixture
def store(mock_client):
    return SupabaseDB(mock_client)


class TestFindContacts:
    def test_filters_intersect(self, store, mock_client):
        query = mock_client.table.return_value.select.return_value
        query.in_.return_value.contains.return_value.eq.return_value.execute.return_value.data = [
            {"id": "c1", "phone_e164": "+447700900001"},
        ]

        rows = store.find_contacts(contact_ids=["c1", "c2"], tags=["hot"], source="web")

        assert rows == [{"id": "c1", "phone_e164": "+447700900001"}]
        mock_client.table.assert_called_with("contacts")
        mock_client.table.return_value.select.assert_called_once_with("id, phone_e164")
        query.in_.assert_called_once_with("id", ["c1", "c2"])
        query.in_.return_value.contains.assert_called_once_with("tags", ["hot"])
        query.in_.return_value.contains.return_value.eq.assert_called_once_with("source", "web")

    def test_no_filters_selects_everything(self, store, mock_client):
        query = mock_client.table.return_value.select.return_value
        query.execute.return_value.data = []

        assert store.find_contacts() == []
        query.in_.assert_not_called()
        query.contains.assert_not_called()
        query.eq.assert_not_called()


class TestCallJobStatus:
    def test_compare_and_swap_on_version(self, store, mock_client):
        update = mock_client.table.return_value.update
        first_eq = update.return_value.eq
        first_eq.return_value.eq.return_value.execute.return_value.data = [
            {"id": "j1", "status": "paused", "version": 4},
        ]

        updated = store.update_call_job_status("j1", 3, "paused")

        assert updated == {"id": "j1", "status": "paused", "version": 4}
        mock_client.table.assert_called_with("call_jobs")
        update.assert_called_once_with({"status": "paused", "version": 4})
        first_eq.assert_called_once_with("id", "j1")
        first_eq.return_value.eq.assert_called_once_with("version", 3)

    def test_stale_version_updates_nothing(self, store, mock_client):
        chain = mock_client.table.return_value.update.return_value.eq.return_value.eq.return_value
        chain.execute.return_value.data = []

        assert store.update_call_job_status("j1", 3, "paused") is None

    def test_new_jobs_start_at_version_zero(self, store, mock_client):
        insert = mock_client.table.return_value.insert
        insert.return_value.execute.return_value.data = [{"id": "j1", "version": 0}]

        store.create_call_job({"agent_id": "a1", "name": "Job", "status": "draft"})

        assert insert.call_args.args[0]["version"] == 0

    def test_delete_job(self, store, mock_client):
        store.delete_call_job("j1")
        mock_client.table.assert_called_with("call_jobs")
        mock_client.table.return_value.delete.return_value.eq.assert_called_once_with("id", "j1")


class TestCreateContact:
    def test_insert(self, store, mock_client):
        insert = mock_client.table.return_value.insert
        insert.return_value.execute.return_value.data = [{"id": "c1", "phone_e164": "+447700900123"}]

        created = store.create_contact({"phone_e164": "+447700900123"})

        assert created["id"] == "c1"
        insert.assert_called_once_with([{"phone_e164": "+447700900123"}])

    def test_unique_violation_is_conflict(self, store, mock_client):
        mock_client.table.return_value.insert.return_value.execute.side_effect = Exception(
            'duplicate key value violates unique constraint "contacts_phone_e164_key"'
        )
        with pytest.raises(ConflictError, match="Contact with this phone already exists"):
            store.create_contact({"phone_e164": "+447700900123"})

    def test_other_failure_is_store_failure(self, store, mock_client):
        mock_client.table.return_value.insert.return_value.execute.side_effect = Exception("connection reset")
        with pytest.raises(StoreFailure):
            store.create_contact({"phone_e164": "+447700900123"})


def test_list_contacts_paginates_newest_first(store, mock_client):
    query = mock_client.table.return_value.select.return_value
    result = query.eq.return_value.order.return_value.range.return_value.execute.return_value
    result.data = [{"id": "c3"}]
    result.count = 41

    items, total = store.list_contacts(3, 20, source="import")

    assert (items, total) == ([{"id": "c3"}], 41)
    mock_client.table.return_value.select.assert_called_once_with("*", count="exact")
    query.eq.return_value.order.assert_called_once_with("created_at", desc=True)
    query.eq.return_value.order.return_value.range.assert_called_once_with(40, 59)


def test_missing_row_is_none(store, mock_client):
    chain = mock_client.table.return_value.select.return_value.eq.return_value.limit.return_value
    chain.execute.return_value.data = []

    assert store.get_agent("a1") is None
    mock_client.table.return_value.select.return_value.eq.assert_called_once_with("id", "a1")
    mock_client.table.return_value.select.return_value.eq.return_value.limit.assert_called_once_with(1)


def test_execute_errors_become_store_failure(store, mock_client):
    mock_client.table.return_value.insert.return_value.execute.side_effect = Exception("timeout")
    with pytest.raises(StoreFailure, match="Failed to insert contacts: timeout"):
        store.insert_contacts([{"phone_e164": "+447700900123"}])


def test_dnc_upsert(store, mock_client):
    store.add_dnc("+447700900123")
    assert mock_client.table.call_args_list == [call("do_not_call")]
    mock_client.table.return_value.upsert.assert_called_once_with({"phone_e164": "+447700900123"})
