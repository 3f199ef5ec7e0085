"""
Exception types raised by the Slack Lambda receiver.
"""


class ReceiverError(Exception):
    """Base exception for receiver errors."""

    pass


class ReceiverMultipleAckError(ReceiverError):
    """Raised when a listener calls ack() more than once for the same event."""

    def __init__(self):
        self.message = "The receiver's `ack` function was called multiple times."
        super().__init__(self.message)


class BodyParseError(ReceiverError):
    """Raised when a request body cannot be decoded for its content type."""

    def __init__(self, content_type, reason: str):
        self.content_type = content_type
        self.reason = reason
        self.message = f"Failed to parse request body (content-type: {content_type}): {reason}"
        super().__init__(self.message)


class ConfigurationError(ReceiverError):
    """Raised when required configuration is missing or unreadable."""

    pass


class InstallationStoreError(ReceiverError):
    """Raised when an installation cannot be stored or fetched."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        self.message = f"Installation store error for {key}: {reason}"
        super().__init__(self.message)
