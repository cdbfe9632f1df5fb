"""Exception hierarchy for tli."""


class TliError(Exception):
    """Base class for all tli errors."""


class CaptureCanceled(TliError):
    """The user aborted note capture (Ctrl+C, Ctrl+D or closed input).

    Not a failure for exit-status purposes.
    """

    def __init__(self, message: str = "action canceled"):
        super().__init__(message)


class PersistenceError(TliError):
    """A history record could not be durably written."""


class CorruptHistoryError(TliError):
    """The history file holds an undecodable document before its tail."""

    def __init__(self, path, document: int, reason: str):
        self.path = path
        self.document = document
        self.reason = reason
        super().__init__(f"corrupted history file {path} (document {document}): {reason}")


class DeliveryError(TliError):
    """A single delivery attempt failed."""

    def __init__(self, title: str, cause: Exception):
        self.title = title
        self.cause = cause
        super().__init__(f"failed to send '{title}': {cause}")


class ConfigError(TliError):
    """Base class for configuration problems."""


class ConfigMissingError(ConfigError):
    """No configuration file could be found."""


class ConfigInvalidError(ConfigError):
    """The configuration file exists but cannot be parsed or validated."""
