"""Exceptions raised by RelBoard storage and board operations."""


class BoardError(Exception):
    """Base class for board errors."""


class StaleReferenceError(BoardError):
    """A write referenced a person or connection that no longer exists."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id} does not exist")
        self.kind = kind
        self.entity_id = entity_id


class DuplicateConnectionError(BoardError):
    """A connection already exists between the two people."""

    def __init__(self, person_a_id: str, person_b_id: str, existing_id: str):
        super().__init__(
            f"Connection between {person_a_id} and {person_b_id} already exists ({existing_id})"
        )
        self.person_a_id = person_a_id
        self.person_b_id = person_b_id
        self.existing_id = existing_id
