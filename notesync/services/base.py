"""
Base Service.

Services sit on top of the local store and the remote repositories and
own the reconciliation and social rules. They hold no database session
of their own; the repositories they are built with do.

Usage:
    class SocialService(BaseService):
        log_source = "social"

        def __init__(self, remote: RemoteStore, session: SessionProvider) -> None:
            super().__init__()
            self.remote = remote
"""

from typing import Any

from notesync.core.exceptions import ValidationError
from notesync.core.logging import get_logger, log_with_source


class BaseService:
    """
    Base class for all services.

    Every record a service logs carries its class name and its
    ``log_source``.
    """

    log_source = "internal"

    def __init__(self) -> None:
        self._logger = get_logger(self.__class__.__module__)

    def _validate_required(self, fields: dict[str, Any], field_names: list[str]) -> None:
        """
        Reject missing, None or blank-string values.

        Raises:
            ValidationError: Listing every offending field in
                ``details["missing_fields"]``
        """
        missing = [
            name
            for name in field_names
            if fields.get(name) is None
            or (isinstance(fields[name], str) and not fields[name].strip())
        ]
        if missing:
            raise ValidationError(
                "Required fields missing",
                details={"missing_fields": missing},
            )

    def _log(self, level: str, message: str, context: dict[str, Any]) -> None:
        log_with_source(
            self._logger,
            self.log_source,
            level,
            message,
            extra={"service": self.__class__.__name__, **context},
        )

    def _log_operation(self, operation: str, **context: Any) -> None:
        self._log("info", operation, context)

    def _log_debug(self, message: str, **context: Any) -> None:
        self._log("debug", message, context)

    def _log_warning(self, message: str, **context: Any) -> None:
        """Log a failure the service recovered from."""
        self._log("warning", message, context)
