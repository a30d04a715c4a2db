"""
Selection / connection state machine.

States: Idle (nothing selected) and OneSelected(person_id).

    Idle            --click(p)-->       OneSelected(p)
    OneSelected(p)  --click(p)-->       Idle
    OneSelected(a)  --click(b != a)-->  Idle  (+ connect a-b unless already connected)
    any             --background-->     Idle
    OneSelected(p)  --p removed-->      Idle
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from relboard.canvas.connection_types import DEFAULT_CONNECTION_TYPE
from relboard.models import Connection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectRequest:
    """Side effect of completing a selection: create this connection."""
    person_a_id: str
    person_b_id: str
    connection_type: str = DEFAULT_CONNECTION_TYPE


def find_connection(connections: Iterable[Connection], first_id: str, second_id: str) -> Optional[Connection]:
    """Find the connection joining two people, regardless of A/B order."""
    for connection in connections:
        if connection.links(first_id, second_id):
            return connection
    return None


class SelectionMachine:
    """Tracks at most one selected person and emits connect requests."""

    def __init__(self):
        self._selected: Optional[str] = None

    @property
    def selected(self) -> Optional[str]:
        return self._selected

    @property
    def is_idle(self) -> bool:
        return self._selected is None

    def is_selected(self, person_id: str) -> bool:
        return self._selected is not None and self._selected == person_id

    def click_person(self, person_id: str, connections: Iterable[Connection] = (),
                     people_ids: Optional[Iterable[str]] = None) -> Optional[ConnectRequest]:
        """
        Apply a click on a person card. Returns a ConnectRequest when a new
        connection should be created, otherwise None.

        If `people_ids` is given, clicks on (or selections of) people missing
        from it are treated as stale and reset the machine to Idle.
        """
        if people_ids is not None:
            known = set(people_ids)
            if person_id not in known:
                logger.warning(f"Ignoring click on missing person {person_id}")
                self._selected = None
                return None
            if self._selected is not None and self._selected not in known:
                self._selected = None

        if self._selected is None:
            self._selected = person_id
            return None

        if self._selected == person_id:
            self._selected = None
            return None

        first = self._selected
        self._selected = None
        if find_connection(connections, first, person_id):
            return None
        return ConnectRequest(person_a_id=first, person_b_id=person_id)

    def click_background(self) -> None:
        self._selected = None

    def clear(self) -> None:
        self._selected = None

    def observe_people(self, people_ids: Iterable[str]) -> bool:
        """
        Reconcile against the latest remote person list. Returns True if the
        selection was cleared because the person no longer exists.
        """
        if self._selected is None:
            return False
        if self._selected in set(people_ids):
            return False
        logger.info(f"Selected person {self._selected} disappeared, clearing selection")
        self._selected = None
        return True
