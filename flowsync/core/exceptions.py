"""
Core Exceptions

Custom exceptions for flowsync.
"""


class ConfigurationError(Exception):
    """
    Raised when required configuration is missing or invalid.

    Configuration errors are fatal: callers abort before mutating anything.
    Examples are a missing platform encryption key or incomplete database
    connection settings during bootstrap.
    """

    def __init__(self, message: str = "Invalid configuration"):
        self.message = message
        super().__init__(self.message)


class ManifestError(Exception):
    """Raised when the credential manifest cannot be parsed."""

    def __init__(self, message: str, path: str | None = None):
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class CipherError(Exception):
    """Raised when credential data cannot be encrypted or decrypted."""


class WebhookAuthError(Exception):
    """Raised when a webhook request does not carry the configured shared secret."""

    def __init__(self, message: str = "unauthorized"):
        self.message = message
        super().__init__(self.message)
