"""
StorageBackend Protocol Definition.

This module defines the interface the board needs from its persistence layer.
Both LocalBackend (JSON files) and SupabaseBackend (cloud) conform to it.
"""

from typing import Protocol, Dict, Any, List, Optional, Callable, runtime_checkable

from relboard.models import Connection, Person

ChangeCallback = Callable[[str, str, Dict[str, Any]], None]


@runtime_checkable
class StorageBackend(Protocol):
    """
    Abstract protocol for storage backends.

    Writes are single atomic document operations. `delete_person` removes the
    person and every connection that references it as one logical operation.
    """

    # --- Backend Information ---

    @property
    def backend_type(self) -> str:
        """Return the backend type identifier ('local' or 'supabase')."""
        ...

    @property
    def supports_realtime(self) -> bool:
        """Return True if the backend pushes change events to subscribers."""
        ...

    # --- People ---

    def list_people(self) -> List[Person]:
        """Return every person on the board."""
        ...

    def get_person(self, person_id: str) -> Optional[Person]:
        """Return one person, or None if it does not exist."""
        ...

    def create_person(self, name: str, x: float, y: float) -> str:
        """
        Insert a person.

        Returns:
            The new person's id
        """
        ...

    def update_person_position(self, person_id: str, x: float, y: float) -> None:
        """
        Set a person's absolute world position.

        Raises:
            StaleReferenceError: if the person does not exist
        """
        ...

    def rename_person(self, person_id: str, name: str) -> None:
        """
        Rename a person.

        Raises:
            StaleReferenceError: if the person does not exist
        """
        ...

    def delete_person(self, person_id: str) -> None:
        """Delete a person and every connection where it is either endpoint."""
        ...

    # --- Connections ---

    def list_connections(self) -> List[Connection]:
        """Return every connection on the board."""
        ...

    def create_connection(self, person_a_id: str, person_b_id: str,
                          connection_type: str, strict: bool = False) -> str:
        """
        Insert a connection between two people.

        At most one connection exists per unordered pair: if the pair is
        already connected, the existing id is returned (or, with strict=True,
        DuplicateConnectionError is raised).

        Raises:
            StaleReferenceError: if either person does not exist
        """
        ...

    def update_connection_type(self, connection_id: str, connection_type: str) -> None:
        """
        Change a connection's type.

        Raises:
            StaleReferenceError: if the connection does not exist
        """
        ...

    def delete_connection(self, connection_id: str) -> None:
        """Delete one connection."""
        ...

    def connections_for_person(self, person_id: str) -> List[Connection]:
        """Connections where the person is A or B."""
        ...

    # --- Real-time Subscriptions ---

    def subscribe(self,
                  on_person_change: Optional[ChangeCallback] = None,
                  on_connection_change: Optional[ChangeCallback] = None) -> None:
        """
        Subscribe to change events.

        Args:
            on_person_change: Callback(event_type, person_id, record)
                              event_type: 'INSERT', 'UPDATE', 'DELETE'
            on_connection_change: Callback(event_type, connection_id, record)
        """
        ...

    def unsubscribe(self) -> None:
        """Unsubscribe from change events."""
        ...
