"""Exception hierarchy for the trainer engine."""


class BlackjackError(Exception):
    """Base class for all engine errors."""


class InvalidOperation(BlackjackError):
    """An action was requested in a state that does not allow it."""


class StrategyError(BlackjackError):
    """A strategy source could not be turned into a usable table."""


class FormatError(StrategyError, ValueError):
    """Malformed strategy source (bad bounds, unknown action, bad layout)."""


class ConflictError(StrategyError):
    """A rule group touched a cell that was already (or not yet) defined."""


class IncompleteTableError(StrategyError):
    """The loaded table leaves supported cells undefined."""


class StrategyLookupError(StrategyError, LookupError):
    """A decision was requested for an unset or out-of-range cell."""


class PersistenceError(BlackjackError):
    """A saved blob could not be restored."""
