"""Custom exceptions for sitepush."""


class SitePushError(Exception):
    """Base exception for all sitepush errors."""

    pass


class SitePushConfigError(SitePushError):
    """Raised when the publishing configuration is missing or invalid."""

    pass


class SitePushTransportError(SitePushError):
    """Raised for transport misuse that cannot be expressed as a return value."""

    pass


class TransportNotConnectedError(SitePushTransportError):
    """Raised when a remote operation is issued before connect() succeeded."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot {operation}: transport is not connected")


class ManifestError(SitePushError):
    """Raised when a remote manifest cannot be parsed."""

    pass
