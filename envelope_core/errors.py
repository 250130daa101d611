class EnvelopeError(Exception):
    """Base class for errors raised by the envelope engine."""


class InvalidArgument(EnvelopeError, ValueError):
    """Malformed interval, non-date input or bad navigation step."""


class EmptyCapacityList(EnvelopeError):
    """An edit would leave a node without any capacity."""

    def __init__(self, node_id: str):
        super().__init__(f"Node {node_id} must keep at least one capacity")
        self.node_id = node_id


class DuplicateActiveFrom(EnvelopeError):
    """Two capacities of one node share the same active_from."""

    def __init__(self, node_id: str, active_from):
        super().__init__(f"Node {node_id} already has a capacity active from {active_from}")
        self.node_id = node_id
        self.active_from = active_from


class DanglingReference(EnvelopeError):
    """A section or category points at a parent that does not exist."""

    def __init__(self, node_id: str, parent_id: str):
        super().__init__(f"Node {node_id} references missing parent {parent_id}")
        self.node_id = node_id
        self.parent_id = parent_id
