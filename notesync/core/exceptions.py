"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.

Remote failures are classified so callers can pick a recovery:

    AuthenticationError  - no valid session, prompt sign-in, never retried
    TransientError       - timeout/connectivity/5xx, safe to re-issue
    ConflictError        - duplicate key on insert
    NotFoundError        - row absent
    AuthorizationError   - caller may not mutate the row, never retried
    RemoteStoreError     - any other remote failure

Local store failures raise DatabaseError and are always surfaced.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a resource cannot be found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_VALIDATION_ERROR")


class AuthenticationError(ApplicationError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class AuthorizationError(ApplicationError):
    """Raised when the caller may not mutate the target row."""

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message, code="AUTHZ_FORBIDDEN")


class ConflictError(ApplicationError):
    """Raised when there is a state conflict."""

    def __init__(self, message: str = "Resource conflict") -> None:
        super().__init__(message, code="RES_CONFLICT")


class TransientError(ApplicationError):
    """Raised when a remote call fails in a way that is safe to retry."""

    def __init__(self, message: str = "Remote store unavailable") -> None:
        super().__init__(message, code="SYS_TRANSIENT")


class RemoteStoreError(ApplicationError):
    """Raised when the remote store rejects a request for any other reason."""

    def __init__(self, message: str = "Remote store error", status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message, code="SYS_REMOTE_ERROR")


class DatabaseError(ApplicationError):
    """Raised when a local store operation fails."""

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, code="SYS_DATABASE_ERROR")


class DecodeError(ApplicationError):
    """Raised when document bytes cannot be decoded."""

    def __init__(self, message: str = "Malformed document data") -> None:
        super().__init__(message, code="DOC_DECODE_ERROR")


class EncodeError(ApplicationError):
    """Raised when a document cannot be encoded."""

    def __init__(self, message: str = "Document could not be encoded") -> None:
        super().__init__(message, code="DOC_ENCODE_ERROR")


class SyncAbortedError(ApplicationError):
    """Raised when a sync pass is abandoned because the session changed."""

    def __init__(self, message: str = "Sync aborted") -> None:
        super().__init__(message, code="SYNC_ABORTED")
