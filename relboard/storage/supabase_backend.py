"""
Supabase Storage Backend for RelBoard.

Implements the StorageBackend protocol using Supabase PostgreSQL
for cloud storage with real-time synchronization.

Expected tables:
- people(id uuid pk default gen_random_uuid(), name text, position_x float8,
         position_y float8, created_at timestamptz default now())
- connections(id uuid pk default gen_random_uuid(),
              person_a_id uuid references people on delete cascade,
              person_b_id uuid references people on delete cascade,
              connection_type text)

A unique index on (least(person_a_id, person_b_id), greatest(person_a_id,
person_b_id)) makes the one-connection-per-pair rule hold even when two
clients race; without it the pre-insert check below still catches the
common case.
"""

import logging
import os
from typing import Dict, Any, List, Optional

from supabase import create_client, Client

from relboard.errors import DuplicateConnectionError, StaleReferenceError
from relboard.models import Connection, Person
from relboard.storage.protocol import ChangeCallback

logger = logging.getLogger(__name__)

PEOPLE_TABLE = "people"
CONNECTIONS_TABLE = "connections"


class SupabaseBackend:
    """
    Cloud-based storage backend using Supabase.

    Features:
    - PostgreSQL storage for people and connections
    - Real-time subscriptions for live updates
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
    ):
        """
        Initialize SupabaseBackend.

        Args:
            client: Optional pre-configured Supabase client
            supabase_url: Supabase project URL (or use SUPABASE_URL env)
            supabase_key: Supabase publishable key (or use SUPABASE_KEY env)
        """
        self._subscriptions = []

        if client:
            self._client = client
        else:
            url = supabase_url or os.environ.get("SUPABASE_URL")
            key = supabase_key or os.environ.get("SUPABASE_KEY")

            if not url or not key:
                raise ValueError(
                    "Supabase URL and key required. "
                    "Set SUPABASE_URL and SUPABASE_KEY environment variables."
                )

            self._client = create_client(url, key)

    # --- Backend Information ---

    @property
    def backend_type(self) -> str:
        return "supabase"

    @property
    def supports_realtime(self) -> bool:
        """Supabase supports real-time sync."""
        return True

    # --- People ---

    def list_people(self) -> List[Person]:
        try:
            response = self._client.table(PEOPLE_TABLE)\
                .select("id, name, position_x, position_y")\
                .order("created_at")\
                .execute()
            return [Person.from_row(row) for row in response.data]
        except Exception as e:
            logger.error(f"Failed to list people: {e}")
            raise

    def get_person(self, person_id: str) -> Optional[Person]:
        try:
            response = self._client.table(PEOPLE_TABLE)\
                .select("id, name, position_x, position_y")\
                .eq("id", person_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to load person {person_id}: {e}")
            raise
        if not response.data:
            return None
        return Person.from_row(response.data[0])

    def create_person(self, name: str, x: float, y: float) -> str:
        row = {"name": name, "position_x": float(x), "position_y": float(y)}
        try:
            response = self._client.table(PEOPLE_TABLE).insert(row).execute()
        except Exception as e:
            logger.error(f"Failed to create person {name}: {e}")
            raise
        person_id = response.data[0]["id"]
        logger.info(f"Created person {person_id} ({name})")
        return person_id

    def _update_person(self, person_id: str, changes: Dict[str, Any]) -> None:
        try:
            response = self._client.table(PEOPLE_TABLE)\
                .update(changes)\
                .eq("id", person_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to update person {person_id}: {e}")
            raise
        if not response.data:
            raise StaleReferenceError("person", person_id)

    def update_person_position(self, person_id: str, x: float, y: float) -> None:
        self._update_person(person_id, {"position_x": float(x), "position_y": float(y)})

    def rename_person(self, person_id: str, name: str) -> None:
        self._update_person(person_id, {"name": name})

    def delete_person(self, person_id: str) -> None:
        """Delete the person's connections first so no edge ever dangles."""
        try:
            self._client.table(CONNECTIONS_TABLE)\
                .delete()\
                .or_(f"person_a_id.eq.{person_id},person_b_id.eq.{person_id}")\
                .execute()
            self._client.table(PEOPLE_TABLE)\
                .delete()\
                .eq("id", person_id)\
                .execute()
            logger.info(f"Deleted person {person_id}")
        except Exception as e:
            logger.error(f"Failed to delete person {person_id}: {e}")
            raise

    # --- Connections ---

    def list_connections(self) -> List[Connection]:
        try:
            response = self._client.table(CONNECTIONS_TABLE)\
                .select("id, person_a_id, person_b_id, connection_type")\
                .execute()
            return [Connection.from_row(row) for row in response.data]
        except Exception as e:
            logger.error(f"Failed to list connections: {e}")
            raise

    def _find_pair(self, first_id: str, second_id: str) -> Optional[Connection]:
        response = self._client.table(CONNECTIONS_TABLE)\
            .select("id, person_a_id, person_b_id, connection_type")\
            .or_(
                f"and(person_a_id.eq.{first_id},person_b_id.eq.{second_id}),"
                f"and(person_a_id.eq.{second_id},person_b_id.eq.{first_id})"
            )\
            .limit(1)\
            .execute()
        if not response.data:
            return None
        return Connection.from_row(response.data[0])

    def create_connection(self, person_a_id: str, person_b_id: str,
                          connection_type: str, strict: bool = False) -> str:
        for person_id in (person_a_id, person_b_id):
            if self.get_person(person_id) is None:
                raise StaleReferenceError("person", person_id)

        existing = self._find_pair(person_a_id, person_b_id)
        if existing:
            if strict:
                raise DuplicateConnectionError(person_a_id, person_b_id, existing.id)
            logger.warning(f"Connection between {person_a_id} and {person_b_id} already exists")
            return existing.id

        row = {
            "person_a_id": person_a_id,
            "person_b_id": person_b_id,
            "connection_type": connection_type,
        }
        try:
            response = self._client.table(CONNECTIONS_TABLE).insert(row).execute()
        except Exception as e:
            # A unique-pair index rejects the losing side of a race
            existing = self._find_pair(person_a_id, person_b_id)
            if existing and not strict:
                logger.warning(f"Lost connection insert race, using {existing.id}")
                return existing.id
            logger.error(f"Failed to create connection: {e}")
            raise
        connection_id = response.data[0]["id"]
        logger.info(f"Created connection {connection_id} ({connection_type})")
        return connection_id

    def update_connection_type(self, connection_id: str, connection_type: str) -> None:
        try:
            response = self._client.table(CONNECTIONS_TABLE)\
                .update({"connection_type": connection_type})\
                .eq("id", connection_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to update connection {connection_id}: {e}")
            raise
        if not response.data:
            raise StaleReferenceError("connection", connection_id)

    def delete_connection(self, connection_id: str) -> None:
        try:
            self._client.table(CONNECTIONS_TABLE)\
                .delete()\
                .eq("id", connection_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to delete connection {connection_id}: {e}")
            raise

    def connections_for_person(self, person_id: str) -> List[Connection]:
        try:
            as_a = self._client.table(CONNECTIONS_TABLE)\
                .select("id, person_a_id, person_b_id, connection_type")\
                .eq("person_a_id", person_id)\
                .execute()
            as_b = self._client.table(CONNECTIONS_TABLE)\
                .select("id, person_a_id, person_b_id, connection_type")\
                .eq("person_b_id", person_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to load connections for {person_id}: {e}")
            raise
        return [Connection.from_row(row) for row in as_a.data + as_b.data]

    # --- Real-time Subscriptions ---

    def subscribe(
        self,
        on_person_change: Optional[ChangeCallback] = None,
        on_connection_change: Optional[ChangeCallback] = None
    ) -> None:
        """Subscribe to real-time updates on both tables."""

        def make_handler(callback: ChangeCallback):
            def handle_change(payload):
                event_type = payload.get("eventType", "UPDATE")
                record = payload.get("new") or payload.get("old", {})
                callback(event_type, record.get("id", ""), record)
            return handle_change

        try:
            if on_person_change:
                channel = self._client.channel("relboard:people")
                channel.on_postgres_changes(
                    event="*",
                    schema="public",
                    table=PEOPLE_TABLE,
                    callback=make_handler(on_person_change)
                ).subscribe()
                self._subscriptions.append(channel)

            if on_connection_change:
                channel = self._client.channel("relboard:connections")
                channel.on_postgres_changes(
                    event="*",
                    schema="public",
                    table=CONNECTIONS_TABLE,
                    callback=make_handler(on_connection_change)
                ).subscribe()
                self._subscriptions.append(channel)

        except Exception as e:
            logger.error(f"Failed to subscribe to real-time updates: {e}")
            raise

    def unsubscribe(self) -> None:
        """Unsubscribe from all real-time updates."""
        for channel in self._subscriptions:
            try:
                channel.unsubscribe()
            except Exception as e:
                logger.warning(f"Failed to unsubscribe channel: {e}")
        self._subscriptions.clear()
