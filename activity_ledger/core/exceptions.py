class LedgerError(Exception):
    """Base class for activity ledger errors."""


class ConfigurationError(LedgerError):
    """Required configuration is missing or invalid."""


class MalformedEvent(LedgerError):
    """A single platform event could not be normalized."""

    def __init__(self, kind: str, reason: str, event_id: str | None = None) -> None:
        self.kind = kind
        self.reason = reason
        self.event_id = event_id
        label = f"{kind} {event_id}" if event_id else kind
        super().__init__(f"Malformed {label}: {reason}")


class UnknownActivityDefinition(MalformedEvent):
    """An activity references a definition slug missing from the catalog."""

    def __init__(self, definition: str, activity_slug: str) -> None:
        self.definition = definition
        super().__init__(
            "activity",
            f"unknown activity definition '{definition}'",
            event_id=activity_slug,
        )


class IdentityResolutionMiss(LedgerError):
    """A chat alias does not map to any known contributor."""

    def __init__(self, alias: str, message_count: int = 0) -> None:
        self.alias = alias
        self.message_count = message_count
        super().__init__(
            f"No contributor found for alias {alias} ({message_count} messages left staged)"
        )


class StorageFailure(LedgerError):
    """A batch write failed; earlier batches remain committed."""

    def __init__(
        self,
        operation: str,
        committed: int,
        batches_committed: int,
        cause: Exception | None = None,
    ) -> None:
        self.operation = operation
        self.committed = committed
        self.batches_committed = batches_committed
        self.cause = cause
        super().__init__(
            f"{operation} failed after {batches_committed} committed batches "
            f"({committed} rows committed): {cause}"
        )
