"""
Local JSON-file Storage Backend for RelBoard.

Implements the StorageBackend protocol with one JSON document per entity.
Writes are atomic file replaces guarded by a lock, and every write is pushed
to in-process subscribers of the same data directory, so several browser
tabs served by one process see each other's changes live.

Structure:
- {data_dir}/people/{uuid}.json
- {data_dir}/connections/{uuid}.json
"""

import json
import logging
import os
import tempfile
import threading
import time
import uuid
from pathlib import Path
from typing import Dict, Any, List, Optional, Callable, Tuple

from relboard.errors import DuplicateConnectionError, StaleReferenceError
from relboard.models import Connection, Person
from relboard.storage.protocol import ChangeCallback

logger = logging.getLogger(__name__)

# Subscribers per resolved data directory: {dir: [(owner_id, kind, callback)]}
_listeners: Dict[str, List[Tuple[int, str, ChangeCallback]]] = {}
_listeners_lock = threading.Lock()


class LocalBackend:
    """
    Local file-based storage backend.

    Entities are stored one per file so a write never rewrites unrelated
    documents. A single re-entrant lock per data directory serialises writes.
    """

    _dir_locks: Dict[str, threading.RLock] = {}
    _last_created: Dict[str, float] = {}

    def __init__(self, data_dir: str):
        """
        Initialize LocalBackend.

        Args:
            data_dir: Directory that holds people/ and connections/
        """
        self.data_dir = Path(data_dir)
        self.people_dir = self.data_dir / "people"
        self.connections_dir = self.data_dir / "connections"

        self.people_dir.mkdir(parents=True, exist_ok=True)
        self.connections_dir.mkdir(parents=True, exist_ok=True)

        self._key = str(self.data_dir.resolve())
        with _listeners_lock:
            self._lock = LocalBackend._dir_locks.setdefault(self._key, threading.RLock())

    # --- Backend Information ---

    @property
    def backend_type(self) -> str:
        return "local"

    @property
    def supports_realtime(self) -> bool:
        """Changes are pushed to subscribers in this process."""
        return True

    # --- File helpers ---

    def _write_json(self, path: Path, data: Dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except Exception:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _read_dir(self, directory: Path) -> List[Dict[str, Any]]:
        rows = []
        for doc_file in directory.glob("*.json"):
            try:
                with open(doc_file, "r", encoding="utf-8") as f:
                    row = json.load(f)
                row.setdefault("id", doc_file.stem)
                rows.append(row)
            except Exception as e:
                logger.warning(f"Failed to load document {doc_file}: {e}")
        return rows

    def _read_one(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                row = json.load(f)
            row.setdefault("id", path.stem)
            return row
        except Exception as e:
            logger.warning(f"Failed to load document {path}: {e}")
            return None

    def _created_at(self) -> float:
        """Creation timestamp, strictly increasing within a data directory. Call under the lock."""
        now = max(time.time(), LocalBackend._last_created.get(self._key, 0.0) + 1e-6)
        LocalBackend._last_created[self._key] = now
        return now

    def _read_sorted(self, directory: Path) -> List[Dict[str, Any]]:
        """Documents in creation order; legacy documents without createdAt come first."""
        return sorted(self._read_dir(directory), key=lambda row: (row.get("createdAt", 0.0), row["id"]))

    def _person_path(self, person_id: str) -> Path:
        return self.people_dir / f"{person_id}.json"

    def _connection_path(self, connection_id: str) -> Path:
        return self.connections_dir / f"{connection_id}.json"

    # --- People ---

    def list_people(self) -> List[Person]:
        return [Person.from_row(row) for row in self._read_sorted(self.people_dir)]

    def get_person(self, person_id: str) -> Optional[Person]:
        row = self._read_one(self._person_path(person_id))
        return Person.from_row(row) if row else None

    def create_person(self, name: str, x: float, y: float) -> str:
        person = Person(id=str(uuid.uuid4()), name=name, x=float(x), y=float(y))
        with self._lock:
            row = dict(person.to_row(), createdAt=self._created_at())
            self._write_json(self._person_path(person.id), row)
        logger.info(f"Created person {person.id} ({name})")
        self._notify("person", "INSERT", person.id, row)
        return person.id

    def _update_person(self, person_id: str, **changes) -> Dict[str, Any]:
        with self._lock:
            row = self._read_one(self._person_path(person_id))
            if row is None:
                raise StaleReferenceError("person", person_id)
            row.update(changes)
            self._write_json(self._person_path(person_id), row)
        return row

    def update_person_position(self, person_id: str, x: float, y: float) -> None:
        row = self._update_person(person_id, positionX=float(x), positionY=float(y))
        self._notify("person", "UPDATE", person_id, row)

    def rename_person(self, person_id: str, name: str) -> None:
        row = self._update_person(person_id, name=name)
        self._notify("person", "UPDATE", person_id, row)

    def delete_person(self, person_id: str) -> None:
        """Delete the person's connections, then the person, under one lock."""
        with self._lock:
            removed = self.connections_for_person(person_id)
            for connection in removed:
                self._connection_path(connection.id).unlink(missing_ok=True)
            person_path = self._person_path(person_id)
            existed = person_path.exists()
            person_path.unlink(missing_ok=True)

        if removed:
            logger.info(f"Deleted {len(removed)} connections of person {person_id}")
        for connection in removed:
            self._notify("connection", "DELETE", connection.id, connection.to_row())
        if existed:
            logger.info(f"Deleted person {person_id}")
            self._notify("person", "DELETE", person_id, {"id": person_id})

    # --- Connections ---

    def list_connections(self) -> List[Connection]:
        return [Connection.from_row(row) for row in self._read_sorted(self.connections_dir)]

    def _find_pair(self, first_id: str, second_id: str) -> Optional[Connection]:
        for connection in self.list_connections():
            if connection.links(first_id, second_id):
                return connection
        return None

    def create_connection(self, person_a_id: str, person_b_id: str,
                          connection_type: str, strict: bool = False) -> str:
        with self._lock:
            for person_id in (person_a_id, person_b_id):
                if not self._person_path(person_id).exists():
                    raise StaleReferenceError("person", person_id)

            existing = self._find_pair(person_a_id, person_b_id)
            if existing:
                if strict:
                    raise DuplicateConnectionError(person_a_id, person_b_id, existing.id)
                logger.warning(
                    f"Connection between {person_a_id} and {person_b_id} already exists, "
                    f"returning {existing.id}"
                )
                return existing.id

            connection = Connection(
                id=str(uuid.uuid4()),
                person_a_id=person_a_id,
                person_b_id=person_b_id,
                connection_type=connection_type,
            )
            row = dict(connection.to_row(), createdAt=self._created_at())
            self._write_json(self._connection_path(connection.id), row)

        logger.info(f"Created connection {connection.id} ({connection_type})")
        self._notify("connection", "INSERT", connection.id, row)
        return connection.id

    def update_connection_type(self, connection_id: str, connection_type: str) -> None:
        with self._lock:
            row = self._read_one(self._connection_path(connection_id))
            if row is None:
                raise StaleReferenceError("connection", connection_id)
            row["connectionType"] = connection_type
            self._write_json(self._connection_path(connection_id), row)
        self._notify("connection", "UPDATE", connection_id, row)

    def delete_connection(self, connection_id: str) -> None:
        path = self._connection_path(connection_id)
        with self._lock:
            existed = path.exists()
            path.unlink(missing_ok=True)
        if existed:
            self._notify("connection", "DELETE", connection_id, {"id": connection_id})

    def connections_for_person(self, person_id: str) -> List[Connection]:
        return [c for c in self.list_connections() if c.involves(person_id)]

    # --- Real-time Subscriptions ---

    def subscribe(self,
                  on_person_change: Optional[ChangeCallback] = None,
                  on_connection_change: Optional[ChangeCallback] = None) -> None:
        with _listeners_lock:
            entries = _listeners.setdefault(self._key, [])
            if on_person_change:
                entries.append((id(self), "person", on_person_change))
            if on_connection_change:
                entries.append((id(self), "connection", on_connection_change))

    def unsubscribe(self) -> None:
        with _listeners_lock:
            entries = _listeners.get(self._key, [])
            _listeners[self._key] = [e for e in entries if e[0] != id(self)]

    def _notify(self, kind: str, event_type: str, entity_id: str, record: Dict[str, Any]) -> None:
        with _listeners_lock:
            callbacks = [cb for _, k, cb in _listeners.get(self._key, []) if k == kind]
        for callback in callbacks:
            try:
                callback(event_type, entity_id, dict(record))
            except Exception as e:
                logger.error(f"Error in {kind} change callback: {e}")
