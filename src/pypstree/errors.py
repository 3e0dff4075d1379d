"""Exceptions raised by pypstree."""


class PstreeError(Exception):
    """Base class for errors that end the run."""

    exit_code = 1


class NoRootError(PstreeError):
    """No process qualifies as the root of the tree."""

    def __init__(self) -> None:
        super().__init__("No process found with PID == 1 || PPID == 0 || PPID == 1 || PID == PPID")


class InvalidGraphicsError(PstreeError):
    """The requested graphics variant does not exist."""

    def __init__(self, value: object) -> None:
        super().__init__(f"invalid graphics parameter: {value!r}")
        self.value = value


class UnknownOwnerError(PstreeError):
    """The requested owner is not a known account."""

    def __init__(self, owner: str) -> None:
        super().__init__(f"user '{owner}' does not exist")
        self.owner = owner
