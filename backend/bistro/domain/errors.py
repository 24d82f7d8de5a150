class BistroError(Exception):
    """Base class for domain errors."""


class BookingValidationError(BistroError):
    """Request rejected before any table matching happens."""


class ClosedError(BookingValidationError):
    pass


class BookingTooSoonError(BookingValidationError):
    pass


class BookingTooFarError(BookingValidationError):
    pass


class NoTablesConfiguredError(BistroError):
    """The table catalog is empty. Not the same thing as a full restaurant."""


class RepositoryError(BistroError):
    """A storage call failed. Propagated as-is, never retried."""
