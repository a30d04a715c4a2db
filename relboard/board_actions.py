"""
Board Actions - validated write operations on the relationship board.

Translates UI intents (add, rename, delete, connect, cycle type, commit a
drag) into StorageBackend calls. Empty names are skipped silently, and writes
that target people or connections deleted elsewhere become logged no-ops.
"""

import logging
import random
from typing import Iterable, Optional, Tuple

from relboard.canvas.connection_types import advance, DEFAULT_CONNECTION_TYPE
from relboard.canvas.constants import SPAWN_MIN_X, SPAWN_WIDTH, SPAWN_MIN_Y, SPAWN_HEIGHT
from relboard.errors import StaleReferenceError
from relboard.graph_index import GraphIndex
from relboard.models import Connection, normalize_name

logger = logging.getLogger(__name__)


def random_spawn_position(rng: Optional[random.Random] = None) -> Tuple[float, float]:
    """Uniform random position inside the spawn region."""
    rng = rng or random
    return (
        rng.random() * SPAWN_WIDTH + SPAWN_MIN_X,
        rng.random() * SPAWN_HEIGHT + SPAWN_MIN_Y,
    )


class BoardActions:
    """
    Executes board mutations against a storage backend.

    Each method is a single write (delete_person cascades inside the backend).
    """

    def __init__(self, backend, rng: Optional[random.Random] = None):
        self.backend = backend
        self._rng = rng

    # --- People ---

    def add_person(self, name: str) -> Optional[str]:
        """
        Create a person at a random spawn position.

        Returns:
            The new id, or None if the name was blank
        """
        formatted = normalize_name(name)
        if not formatted:
            logger.debug("Skipping add_person with blank name")
            return None
        x, y = random_spawn_position(self._rng)
        return self.backend.create_person(formatted, x, y)

    def rename_person(self, person_id: str, name: str) -> bool:
        """Rename a person. Returns False if skipped (blank name or stale id)."""
        formatted = normalize_name(name)
        if not formatted:
            logger.debug(f"Skipping rename of {person_id} to blank name")
            return False
        try:
            self.backend.rename_person(person_id, formatted)
        except StaleReferenceError as e:
            logger.warning(f"Rename skipped: {e}")
            return False
        return True

    def delete_person(self, person_id: str) -> None:
        """Delete a person and all of their connections."""
        self.backend.delete_person(person_id)

    def commit_position(self, person_id: str, x: float, y: float) -> bool:
        """Write a dragged person's final absolute position."""
        try:
            self.backend.update_person_position(person_id, x, y)
        except StaleReferenceError as e:
            logger.warning(f"Position commit skipped: {e}")
            return False
        return True

    # --- Connections ---

    def connect(self, person_a_id: str, person_b_id: str,
                connection_type: str = DEFAULT_CONNECTION_TYPE,
                connections: Optional[Iterable[Connection]] = None) -> Optional[str]:
        """
        Connect two distinct people unless they are already connected.

        Args:
            connections: Known connections for the client-side duplicate
                check; fetched from the backend when omitted

        Returns:
            The new connection id, or None if nothing was created
        """
        if person_a_id == person_b_id:
            return None
        if connections is None:
            connections = self.backend.connections_for_person(person_a_id)
        existing = GraphIndex(connections=connections).find_connection(person_a_id, person_b_id)
        if existing is not None:
            logger.debug(f"{person_a_id} and {person_b_id} already connected by {existing.id}")
            return None
        try:
            return self.backend.create_connection(person_a_id, person_b_id, connection_type)
        except StaleReferenceError as e:
            logger.warning(f"Connect skipped: {e}")
            return None

    def advance_connection_type(self, connection: Connection) -> Optional[str]:
        """Write the next type in the ring. Returns it, or None if the connection is gone."""
        new_type = advance(connection.connection_type)
        try:
            self.backend.update_connection_type(connection.id, new_type)
        except StaleReferenceError as e:
            logger.warning(f"Type change skipped: {e}")
            return None
        return new_type

    def delete_connection(self, connection_id: str) -> None:
        self.backend.delete_connection(connection_id)

    def report_duplicate_pairs(self, connections: Optional[Iterable[Connection]] = None) -> int:
        """
        Log a warning for every pair joined by more than one connection
        (left behind when two clients connected the same pair at once).

        Returns:
            Number of duplicated pairs
        """
        if connections is None:
            connections = self.backend.list_connections()
        duplicates = GraphIndex(connections=connections).duplicate_pairs()
        for first_id, second_id, connection_ids in duplicates:
            logger.warning(
                f"{first_id} and {second_id} are joined by {len(connection_ids)} connections: "
                f"{', '.join(connection_ids)}"
            )
        return len(duplicates)
