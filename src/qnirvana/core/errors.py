"""Exception types raised by the queue and routing core.

Unreachable routes are not errors; they are reported through
``PathResult.reachable``. Everything here is a caller contract violation.
"""


class QNirvanaError(Exception):
    """Base class for all errors raised by the core."""


class InvalidInputError(QNirvanaError, ValueError):
    """Input failed validation (missing attribute, wrong type, bad value)."""


class UnknownNodeError(InvalidInputError):
    """A node id is not part of the routing graph."""

    def __init__(self, node_id: str):
        super().__init__(f"Unknown node: {node_id!r}")
        self.node_id = node_id


class UnknownEdgeError(InvalidInputError):
    """No edge joins the two nodes; graph topology is fixed."""

    def __init__(self, u: str, v: str):
        super().__init__(f"No edge between {u!r} and {v!r}")
        self.u = u
        self.v = v


class UnknownEntryError(InvalidInputError):
    """A queue entry id is not present in the queue."""

    def __init__(self, entry_id: str):
        super().__init__(f"Unknown queue entry: {entry_id!r}")
        self.entry_id = entry_id
