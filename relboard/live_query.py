"""
Live query for RelBoard.

Keeps the latest people/connections snapshots for one client and refreshes
them whenever the backend pushes a change. Bursts of change events are
debounced into a single re-read. Listeners receive the new snapshots and
must treat them as read-only.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from relboard.models import Connection, Person

logger = logging.getLogger(__name__)


@dataclass
class SyncState:
    """Tracks the subscription state of a live query."""
    is_connected: bool = False
    loaded: bool = False
    last_event_time: Optional[float] = None
    error_count: int = 0


class LiveQuery:
    """
    Push-based subscription to the board's people and connections.

    Events:
    - 'snapshot': (people, connections) after any change
    - 'error': {'message': str}
    """

    def __init__(self, backend, debounce_ms: int = 100):
        self._backend = backend
        self._debounce_ms = debounce_ms
        self._state = SyncState()
        self._people: Tuple[Person, ...] = ()
        self._connections: Tuple[Connection, ...] = ()
        self._callbacks: Dict[str, List[Callable]] = {
            'snapshot': [],
            'error': [],
        }
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._debounce_task: Optional[asyncio.Task] = None

    @property
    def people(self) -> Tuple[Person, ...]:
        return self._people

    @property
    def connections(self) -> Tuple[Connection, ...]:
        return self._connections

    @property
    def loaded(self) -> bool:
        return self._state.loaded

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    def person(self, person_id: str) -> Optional[Person]:
        for person in self._people:
            if person.id == person_id:
                return person
        return None

    def connection(self, connection_id: str) -> Optional[Connection]:
        for connection in self._connections:
            if connection.id == connection_id:
                return connection
        return None

    def on(self, event: str, callback: Callable) -> None:
        if event in self._callbacks:
            self._callbacks[event].append(callback)

    def _emit(self, event: str, data: Any = None) -> None:
        for callback in list(self._callbacks.get(event, [])):
            try:
                result = callback(data)
                if asyncio.iscoroutine(result):
                    asyncio.ensure_future(result)
            except Exception as e:
                logger.error(f"Error in callback for {event}: {e}")

    # --- Lifecycle ---

    def start(self) -> None:
        """Subscribe to backend changes and load the first snapshot."""
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

        if self._backend.supports_realtime:
            try:
                self._backend.subscribe(
                    on_person_change=self._handle_change,
                    on_connection_change=self._handle_change,
                )
                self._state.is_connected = True
                logger.info("Live query subscribed")
            except Exception as e:
                logger.error(f"Failed to subscribe to changes: {e}")
                self._state.error_count += 1
                self._emit('error', {'message': str(e)})
        else:
            logger.info("Backend does not push changes, snapshots refresh on demand only")

        self.refresh()

    def stop(self) -> None:
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._backend.unsubscribe()
        self._state.is_connected = False
        self._callbacks = {key: [] for key in self._callbacks}
        logger.info("Live query stopped")

    # --- Snapshot loading ---

    def _load(self) -> Tuple[Tuple[Person, ...], Tuple[Connection, ...]]:
        return tuple(self._backend.list_people()), tuple(self._backend.list_connections())

    def apply_snapshot(self, people, connections) -> bool:
        """Install a freshly read snapshot. Returns True if anything changed."""
        people = tuple(people)
        connections = tuple(connections)
        changed = (
            people != self._people
            or connections != self._connections
            or not self._state.loaded
        )
        self._people = people
        self._connections = connections
        self._state.loaded = True

        if changed:
            self._emit('snapshot', (people, connections))
        return changed

    def refresh(self) -> bool:
        """Synchronously re-read both collections."""
        try:
            people, connections = self._load()
        except Exception as e:
            logger.error(f"Failed to refresh live query: {e}")
            self._state.error_count += 1
            self._emit('error', {'message': str(e)})
            return False
        return self.apply_snapshot(people, connections)

    async def refresh_async(self) -> bool:
        """Re-read both collections in a worker thread."""
        loop = asyncio.get_running_loop()
        try:
            people, connections = await loop.run_in_executor(None, self._load)
        except Exception as e:
            logger.error(f"Failed to refresh live query: {e}")
            self._state.error_count += 1
            self._emit('error', {'message': str(e)})
            return False
        return self.apply_snapshot(people, connections)

    # --- Change events ---

    def _handle_change(self, event_type: str, entity_id: str, record: Dict[str, Any]) -> None:
        """Called by the backend, possibly from a worker or realtime thread."""
        self._state.last_event_time = time.time()
        logger.debug(f"Change event {event_type} for {entity_id}")

        if self._loop is None or self._loop.is_closed():
            self.refresh()
            return
        self._loop.call_soon_threadsafe(self._schedule_flush)

    def _schedule_flush(self) -> None:
        """Schedule a single re-read after the debounce period."""
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()

        async def flush():
            await asyncio.sleep(self._debounce_ms / 1000)
            await self.refresh_async()

        self._debounce_task = asyncio.ensure_future(flush())
