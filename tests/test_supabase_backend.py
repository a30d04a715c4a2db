"""
Tests for SupabaseBackend against a mocked Supabase client.
"""

from unittest.mock import MagicMock

import pytest

from relboard.errors import DuplicateConnectionError, StaleReferenceError
from relboard.storage.protocol import StorageBackend
from relboard.storage.supabase_backend import SupabaseBackend

PERSON_ROW = {"id": "p1", "name": "Alice", "position_x": 10.0, "position_y": 20.0}
CONNECTION_ROW = {"id": "c1", "person_a_id": "p1", "person_b_id": "p2", "connection_type": "kissed"}


@pytest.fixture
def mock_client():
    return MagicMock()


@pytest.fixture
def supabase_backend(mock_client):
    return SupabaseBackend(client=mock_client)


def _table(mock_client):
    return mock_client.table.return_value


class TestSupabaseBackend:

    def test_requires_credentials(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)
        with pytest.raises(ValueError):
            SupabaseBackend()

    def test_conforms_to_protocol(self, supabase_backend):
        assert isinstance(supabase_backend, StorageBackend)
        assert supabase_backend.backend_type == "supabase"
        assert supabase_backend.supports_realtime

    def test_list_people(self, supabase_backend, mock_client):
        _table(mock_client).select.return_value.order.return_value.execute.return_value.data = [PERSON_ROW]
        people = supabase_backend.list_people()
        assert len(people) == 1
        assert people[0].id == "p1"
        assert people[0].position == (10.0, 20.0)
        mock_client.table.assert_called_with("people")

    def test_create_person(self, supabase_backend, mock_client):
        _table(mock_client).insert.return_value.execute.return_value.data = [{"id": "new-id"}]
        assert supabase_backend.create_person("Alice", 1, 2) == "new-id"
        _table(mock_client).insert.assert_called_once_with(
            {"name": "Alice", "position_x": 1.0, "position_y": 2.0}
        )

    def test_update_position(self, supabase_backend, mock_client):
        update = _table(mock_client).update
        update.return_value.eq.return_value.execute.return_value.data = [PERSON_ROW]
        supabase_backend.update_person_position("p1", 30, 40)
        update.assert_called_once_with({"position_x": 30.0, "position_y": 40.0})
        update.return_value.eq.assert_called_once_with("id", "p1")

    def test_update_missing_person_is_stale(self, supabase_backend, mock_client):
        _table(mock_client).update.return_value.eq.return_value.execute.return_value.data = []
        with pytest.raises(StaleReferenceError):
            supabase_backend.rename_person("ghost", "Nobody")

    def test_delete_person_removes_connections_first(self, supabase_backend, mock_client):
        supabase_backend.delete_person("p1")
        tables = [c.args[0] for c in mock_client.table.call_args_list]
        assert tables == ["connections", "people"]
        _table(mock_client).delete.return_value.or_.assert_called_once_with(
            "person_a_id.eq.p1,person_b_id.eq.p1"
        )

    def test_list_connections(self, supabase_backend, mock_client):
        _table(mock_client).select.return_value.execute.return_value.data = [CONNECTION_ROW]
        connections = supabase_backend.list_connections()
        assert connections[0].person_a_id == "p1"
        assert connections[0].connection_type == "kissed"

    def test_create_connection_returns_existing_pair(self, supabase_backend, mock_client):
        select = _table(mock_client).select.return_value
        select.eq.return_value.execute.return_value.data = [PERSON_ROW]
        select.or_.return_value.limit.return_value.execute.return_value.data = [CONNECTION_ROW]

        assert supabase_backend.create_connection("p2", "p1", "dated") == "c1"
        _table(mock_client).insert.assert_not_called()

    def test_create_connection_strict_duplicate_raises(self, supabase_backend, mock_client):
        select = _table(mock_client).select.return_value
        select.eq.return_value.execute.return_value.data = [PERSON_ROW]
        select.or_.return_value.limit.return_value.execute.return_value.data = [CONNECTION_ROW]

        with pytest.raises(DuplicateConnectionError):
            supabase_backend.create_connection("p1", "p2", "kissed", strict=True)

    def test_create_connection_inserts_new_pair(self, supabase_backend, mock_client):
        select = _table(mock_client).select.return_value
        select.eq.return_value.execute.return_value.data = [PERSON_ROW]
        select.or_.return_value.limit.return_value.execute.return_value.data = []
        _table(mock_client).insert.return_value.execute.return_value.data = [{"id": "c9"}]

        assert supabase_backend.create_connection("p1", "p2", "kissed") == "c9"
        _table(mock_client).insert.assert_called_once_with(
            {"person_a_id": "p1", "person_b_id": "p2", "connection_type": "kissed"}
        )

    def test_create_connection_missing_person_is_stale(self, supabase_backend, mock_client):
        _table(mock_client).select.return_value.eq.return_value.execute.return_value.data = []
        with pytest.raises(StaleReferenceError):
            supabase_backend.create_connection("p1", "ghost", "kissed")

    def test_update_connection_type_missing_is_stale(self, supabase_backend, mock_client):
        _table(mock_client).update.return_value.eq.return_value.execute.return_value.data = []
        with pytest.raises(StaleReferenceError):
            supabase_backend.update_connection_type("ghost", "talked")


class TestSupabaseSubscriptions:

    def test_subscribe_forwards_payloads(self, supabase_backend, mock_client):
        events = []
        supabase_backend.subscribe(on_person_change=lambda *event: events.append(event))

        mock_client.channel.assert_called_once_with("relboard:people")
        channel = mock_client.channel.return_value
        kwargs = channel.on_postgres_changes.call_args.kwargs
        assert kwargs["table"] == "people"

        kwargs["callback"]({"eventType": "UPDATE", "new": PERSON_ROW})
        kwargs["callback"]({"eventType": "DELETE", "new": {}, "old": {"id": "p1"}})
        assert events == [
            ("UPDATE", "p1", PERSON_ROW),
            ("DELETE", "p1", {"id": "p1"}),
        ]

    def test_unsubscribe_closes_channels(self, supabase_backend, mock_client):
        supabase_backend.subscribe(on_person_change=lambda *e: None, on_connection_change=lambda *e: None)
        supabase_backend.unsubscribe()
        assert mock_client.channel.return_value.unsubscribe.call_count == 2
