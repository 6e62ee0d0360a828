"""Exception classes for the graph engine."""


class GraphEngineError(Exception):
    """Base graph engine exception."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidTransitionError(GraphEngineError):
    """Requested operation is not allowed in the current session state."""

    def __init__(self, message: str, current_state: str | None = None):
        self.current_state = current_state
        super().__init__(message)


class SessionNotStartedError(GraphEngineError):
    """Operation requires a master paper but no session has been started."""

    pass
