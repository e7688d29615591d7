# =============================================================================
# AUGUR FORK RISK MONITOR - EXCEPTIONS
# =============================================================================
#
# EXCEPTION HIERARCHY:
#
# ForkRiskError (base)
# ├── ConnectivityError    - FATAL: every RPC candidate failed its probe
# ├── ConfigurationError   - FATAL: manifest or config missing/malformed
# ├── EventSchemaError     - PER-RECORD: log does not match the event schema
# └── CalculationError     - FATAL: unexpected failure after connecting
#
# Fatal errors propagate to the single top-level handler in risk/__main__.py,
# which still writes an "unknown" artifact before exiting non-zero.
# The connection metadata travels on the exception so the error artifact can
# report which endpoint was used and how many fallbacks were attempted.
#
# =============================================================================


class ForkRiskError(Exception):
    """
    Base class for all fork risk calculation errors.

    Carries the RPC connection (if one was established) and the number of
    endpoints that failed before the error, for the error artifact.
    """

    def __init__(self, message: str, connection=None, fallbacks_attempted: int = 0):
        """
        Initialize fork risk error.

        Args:
            message: Error description
            connection: RpcConnection in use when the error happened, if any
            fallbacks_attempted: Number of RPC endpoints that failed
        """
        self.message = message
        self.connection = connection
        self.fallbacks_attempted = fallbacks_attempted
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ConnectivityError(ForkRiskError):
    """
    Every RPC candidate failed its liveness probe.

    The run never substitutes fabricated chain data for a real connection.
    """

    def __init__(self, fallbacks_attempted: int, last_error: str = None):
        """
        Args:
            fallbacks_attempted: Number of endpoints tried (all failed)
            last_error: Message of the last probe failure
        """
        message = f"All RPC endpoints failed (attempted {fallbacks_attempted})"
        if last_error:
            message += f": {last_error}"
        super().__init__(message, fallbacks_attempted=fallbacks_attempted)
        self.last_error = last_error


class ConfigurationError(ForkRiskError):
    """Contract manifest or run configuration is missing or malformed."""

    def __init__(self, message: str, source: str = None):
        """
        Args:
            message: Error description
            source: File or key the error refers to
        """
        super().__init__(message)
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"{self.message} ({self.source})"
        return self.message


class EventSchemaError(ForkRiskError):
    """A raw log entry does not carry the named fields of the event schema."""

    def __init__(self, event_name: str, missing_fields: list, log_ref: str = None):
        """
        Args:
            event_name: Name of the expected event
            missing_fields: Field names absent from the decoded arguments
            log_ref: Transaction hash / log index for context
        """
        message = f"{event_name} log is missing fields: {', '.join(missing_fields)}"
        if log_ref:
            message += f" [{log_ref}]"
        super().__init__(message)
        self.event_name = event_name
        self.missing_fields = list(missing_fields)


class CalculationError(ForkRiskError):
    """Unexpected failure while reading chain state or scoring."""
