"""
Tests for the local JSON storage backend.
"""

import json

import pytest

from relboard.errors import DuplicateConnectionError, StaleReferenceError
from relboard.storage.local_backend import LocalBackend
from relboard.storage.protocol import StorageBackend


class TestLocalBackend:
    """CRUD, cascade and change events for LocalBackend."""

    def test_conforms_to_protocol(self, backend):
        assert isinstance(backend, StorageBackend)
        assert backend.backend_type == "local"
        assert backend.supports_realtime

    def test_create_and_list_people(self, backend):
        person_id = backend.create_person("Alice", 120, 340)
        people = backend.list_people()
        assert len(people) == 1
        assert people[0].id == person_id
        assert people[0].position == (120, 340)

    def test_document_layout(self, backend):
        person_id = backend.create_person("Alice", 1, 2)
        with open(backend.people_dir / f"{person_id}.json") as f:
            doc = json.load(f)
        created = doc.pop("createdAt")
        assert isinstance(created, float)
        assert doc == {"id": person_id, "name": "Alice", "positionX": 1.0, "positionY": 2.0}

    def test_people_listed_in_creation_order(self, backend):
        zed = backend.create_person("Zed", 0, 0)
        alice = backend.create_person("Alice", 0, 0)
        mia = backend.create_person("Mia", 0, 0)
        assert [p.id for p in backend.list_people()] == [zed, alice, mia]

        backend.rename_person(zed, "Aaron")
        backend.update_person_position(alice, 9, 9)
        assert [p.id for p in backend.list_people()] == [zed, alice, mia]

    def test_connections_listed_in_creation_order(self, backend, two_people):
        alice, bob = two_people
        carol = backend.create_person("Carol", 0, 0)
        first = backend.create_connection(bob, carol, "talked")
        second = backend.create_connection(alice, bob, "kissed")
        backend.update_connection_type(first, "dated")
        assert [c.id for c in backend.list_connections()] == [first, second]

    def test_documents_without_timestamp_come_first(self, backend):
        backend.create_person("Alice", 0, 0)
        legacy = {"id": "legacy", "name": "Old", "positionX": 0, "positionY": 0}
        (backend.people_dir / "legacy.json").write_text(json.dumps(legacy))
        assert [p.name for p in backend.list_people()] == ["Old", "Alice"]

    def test_update_position_and_rename(self, backend):
        person_id = backend.create_person("Alice", 0, 0)
        backend.update_person_position(person_id, 55.5, -10)
        backend.rename_person(person_id, "Alicia")
        person = backend.get_person(person_id)
        assert person.position == (55.5, -10)
        assert person.name == "Alicia"

    def test_update_missing_person_is_stale(self, backend):
        with pytest.raises(StaleReferenceError):
            backend.update_person_position("ghost", 1, 1)
        with pytest.raises(StaleReferenceError):
            backend.rename_person("ghost", "Nobody")

    def test_create_connection(self, backend, two_people):
        alice, bob = two_people
        connection_id = backend.create_connection(alice, bob, "kissed")
        connections = backend.list_connections()
        assert [c.id for c in connections] == [connection_id]
        assert connections[0].connection_type == "kissed"

    def test_duplicate_pair_returns_existing(self, backend, two_people):
        alice, bob = two_people
        first = backend.create_connection(alice, bob, "kissed")
        second = backend.create_connection(bob, alice, "dated")
        assert first == second
        assert len(backend.list_connections()) == 1

    def test_duplicate_pair_strict_raises(self, backend, two_people):
        alice, bob = two_people
        existing = backend.create_connection(alice, bob, "kissed")
        with pytest.raises(DuplicateConnectionError) as excinfo:
            backend.create_connection(bob, alice, "kissed", strict=True)
        assert excinfo.value.existing_id == existing

    def test_connection_to_missing_person_is_stale(self, backend, two_people):
        alice, _ = two_people
        with pytest.raises(StaleReferenceError):
            backend.create_connection(alice, "ghost", "kissed")

    def test_update_connection_type(self, backend, two_people):
        connection_id = backend.create_connection(*two_people, "kissed")
        backend.update_connection_type(connection_id, "talked")
        assert backend.list_connections()[0].connection_type == "talked"
        with pytest.raises(StaleReferenceError):
            backend.update_connection_type("ghost", "talked")

    def test_delete_person_cascades_only_their_connections(self, backend, two_people):
        alice, bob = two_people
        carol = backend.create_person("Carol", 0, 0)
        backend.create_connection(alice, bob, "kissed")
        backend.create_connection(carol, alice, "dated")
        keep = backend.create_connection(bob, carol, "talked")

        backend.delete_person(alice)

        assert {p.id for p in backend.list_people()} == {bob, carol}
        assert [c.id for c in backend.list_connections()] == [keep]

    def test_connections_for_person(self, backend, two_people):
        alice, bob = two_people
        carol = backend.create_person("Carol", 0, 0)
        ab = backend.create_connection(alice, bob, "kissed")
        ca = backend.create_connection(carol, alice, "dated")
        backend.create_connection(bob, carol, "talked")
        assert {c.id for c in backend.connections_for_person(alice)} == {ab, ca}

    def test_delete_connection(self, backend, two_people):
        connection_id = backend.create_connection(*two_people, "kissed")
        backend.delete_connection(connection_id)
        backend.delete_connection(connection_id)
        assert backend.list_connections() == []

    def test_corrupt_document_is_skipped(self, backend):
        backend.create_person("Alice", 0, 0)
        (backend.people_dir / "broken.json").write_text("{not json")
        assert [p.name for p in backend.list_people()] == ["Alice"]


class TestLocalSubscriptions:

    def test_events_reach_other_instances_of_same_directory(self, backend, tmp_path):
        other = LocalBackend(str(tmp_path / "board"))
        person_events = []
        connection_events = []
        other.subscribe(
            on_person_change=lambda *event: person_events.append(event),
            on_connection_change=lambda *event: connection_events.append(event),
        )
        try:
            alice = backend.create_person("Alice", 0, 0)
            bob = backend.create_person("Bob", 0, 0)
            connection_id = backend.create_connection(alice, bob, "kissed")
            backend.delete_person(alice)
        finally:
            other.unsubscribe()

        assert [e[0] for e in person_events] == ["INSERT", "INSERT", "DELETE"]
        assert [(e[0], e[1]) for e in connection_events] == [
            ("INSERT", connection_id),
            ("DELETE", connection_id),
        ]

    def test_unsubscribe_stops_events(self, backend):
        events = []
        backend.subscribe(on_person_change=lambda *event: events.append(event))
        backend.unsubscribe()
        backend.create_person("Alice", 0, 0)
        assert events == []

    def test_failing_callback_does_not_break_write(self, backend):
        def boom(*event):
            raise RuntimeError("listener bug")

        backend.subscribe(on_person_change=boom)
        person_id = backend.create_person("Alice", 0, 0)
        assert backend.get_person(person_id) is not None
