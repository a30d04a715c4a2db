"""
Relationship graph index backed by NetworkX.

People are nodes and connections are edges of an undirected multigraph keyed
by connection id, so pair lookups are order-independent and duplicate pairs
(possible if two creates race) remain visible instead of being collapsed.
"""

from typing import Iterable, List, Optional, Tuple

import networkx as nx

from relboard.models import Connection, Person


class GraphIndex:
    """Undirected view of the board used for pair queries."""

    def __init__(self, people: Iterable[Person] = (), connections: Iterable[Connection] = ()):
        self.G = nx.MultiGraph()
        for person in people:
            self.G.add_node(person.id, name=person.name)
        for connection in connections:
            self.add_connection(connection)

    def add_connection(self, connection: Connection) -> None:
        self.G.add_edge(
            connection.person_a_id,
            connection.person_b_id,
            key=connection.id,
            connection=connection,
        )

    def find_connection(self, first_id: str, second_id: str) -> Optional[Connection]:
        """Oldest connection joining the pair, in either direction."""
        if not self.G.has_edge(first_id, second_id):
            return None
        edges = self.G.get_edge_data(first_id, second_id)
        return next(iter(edges.values()))["connection"]

    def duplicate_pairs(self) -> List[Tuple[str, str, List[str]]]:
        """Pairs joined by more than one connection, with their connection ids."""
        seen = set()
        duplicates = []
        for u, v in self.G.edges():
            pair = frozenset((u, v))
            if pair in seen:
                continue
            seen.add(pair)
            keys = list(self.G.get_edge_data(u, v).keys())
            if len(keys) > 1:
                duplicates.append((u, v, keys))
        return duplicates
