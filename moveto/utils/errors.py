"""Exception types shared across the MoveTo stage and its collaborators."""


class MoveToError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(MoveToError):
    """A goal or frame setting cannot be interpreted for this invocation.

    Raised by the resolvers while a single compute() runs. The stage converts it
    into a failed solution; it never aborts the surrounding pipeline.
    """


class InitStageError(MoveToError):
    """Stage setup failed before any configuration was computed.

    Unlike ConfigurationError this propagates to the host, which is expected to
    abort pipeline construction.
    """

    def __init__(self, stage_name: str, message: str):
        super().__init__(f"{stage_name}: {message}")
        self.stage_name = stage_name
        self.message = message


class RobotModelError(MoveToError):
    """Inconsistent robot description (duplicate links, unknown parents, ...)."""
