"""Domain-specific exceptions — framework-independent.

None of these are allowed to escape into the host application: the facade
and the delivery queue log them and degrade to "nothing happened".
"""


class Web3AnalyticsError(Exception):
    """Base class for every error raised inside the client."""


class ConfigurationError(Web3AnalyticsError):
    """Raised when a configured value is malformed (e.g. an app id that is not an address)."""

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Invalid configuration value for '{field}': {value!r}")


class AuthenticationError(Web3AnalyticsError):
    """Raised when the DID provider or resolver rejects the seed or the handshake fails."""


class RegistrationError(Web3AnalyticsError):
    """Raised when relayed user registration fails (relay init, signing, or revert)."""


class NormalizationError(Web3AnalyticsError):
    """Raised when a tracking payload cannot be flattened."""


class DeliveryError(Web3AnalyticsError):
    """Raised when a single event could not be written to the document store."""

    def __init__(self, message: str, document_id: str | None = None):
        self.document_id = document_id
        super().__init__(message)


class StorageError(Web3AnalyticsError):
    """Raised when the local key/value storage cannot be read or written."""


class DocumentStoreError(Web3AnalyticsError):
    """Raised when the document store returns an error."""

    def __init__(self, operation: str, status_code: int | None, message: str):
        self.operation = operation
        self.status_code = status_code
        self.message = message
        super().__init__(f"[document-store:{operation}] {status_code}: {message}")


class LedgerError(Web3AnalyticsError):
    """Raised when a read-only ledger call fails."""

    def __init__(self, method: str, message: str):
        self.method = method
        self.message = message
        super().__init__(f"[ledger:{method}] {message}")


class RelayError(Web3AnalyticsError):
    """Raised by the gas relay client (relay not ready, rejected request, reverted tx)."""
