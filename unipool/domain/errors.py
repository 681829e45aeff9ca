"""Error taxonomy shared by the store, the engines and the API layer."""


class CarpoolError(Exception):
    """Base class for every domain error."""


class NotFound(CarpoolError):
    """A ride or user id did not resolve."""


class NoSeatsAvailable(CarpoolError):
    """The ride has no open seat left."""


class AlreadyBooked(CarpoolError):
    """The rider already holds a confirmed booking on this ride."""


class ValidationError(CarpoolError):
    """Malformed ride, rating or registration input."""


class PersistenceError(CarpoolError):
    """The backing store rejected a read or a write."""


class InvalidStateTransition(CarpoolError):
    """Raised when a booking status change violates the state machine."""
