"""Structural errors raised by graph mutations and traversals."""


class GraphError(Exception):
    """Base class for structural graph errors."""


class UnknownNodeError(GraphError, KeyError):
    """The referenced node does not exist."""

    def __init__(self, node: int) -> None:
        self.node = node
        super().__init__(f"Unknown node {node}")

    def __str__(self) -> str:
        return self.args[0]


class UnknownPinError(GraphError, KeyError):
    """The referenced pin does not exist."""

    def __init__(self, pin: int) -> None:
        self.pin = pin
        super().__init__(f"Unknown pin {pin}")

    def __str__(self) -> str:
        return self.args[0]


class TypeMismatchError(GraphError):
    """The two pins of a link carry different types."""


class WrongPinKindError(GraphError):
    """A link must go from an output pin to an input pin."""


class InputAlreadyConnectedError(GraphError):
    """The input pin already has an incoming link.

    Recoverable: disconnect the existing link first, or use
    ``Graph.connect(..., replace=True)``.
    """

    def __init__(self, pin: int, existing_link: int) -> None:
        self.pin = pin
        self.existing_link = existing_link
        super().__init__(f"Input pin {pin} is already connected by link {existing_link}")


class WouldCreateCycleError(GraphError):
    """Adding the link would close a cycle between nodes."""


class CycleDetectedError(GraphError):
    """A cycle was found while ordering nodes."""


class OutputNodeError(GraphError):
    """The graph does not have exactly one output node."""

    def __init__(self, count: int) -> None:
        self.count = count
        if count == 0:
            msg = "No Output node found; nothing to evaluate"
        else:
            msg = f"Multiple Output nodes found ({count}); only one is supported"
        super().__init__(msg)


class DuplicateIdError(GraphError):
    """Two records restored into one graph share an id."""
