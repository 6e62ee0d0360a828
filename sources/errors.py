"""Exception classes for source adapters."""


class SourceError(Exception):
    """Base source adapter exception."""

    def __init__(self, message: str, provider: str | None = None):
        self.message = message
        self.provider = provider
        super().__init__(message)


class SourceParseError(SourceError):
    """Provider returned a payload that does not match the expected shape."""

    pass
