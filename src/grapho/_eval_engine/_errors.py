"""Errors raised by node compute functions."""


class ComputeError(Exception):
    """A node's compute function failed for the inputs it was given.

    The message is shown to the user next to the failing node.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
