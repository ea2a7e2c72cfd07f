"""
Domain error taxonomy.

Validation of user input is NOT an exception (see ValidationResult); these are
raised for caller contract violations, lifecycle violations and broken
invariants.
"""


class DisciplineError(Exception):
    """Base class for every domain error."""


class InvariantViolation(DisciplineError):
    """A design rule was broken. Programming error, never recoverable."""


class PreconditionFailed(DisciplineError):
    """The caller invoked an operation on state that does not allow it."""


class OutOfOrderDayEnd(PreconditionFailed):
    """A day older than the last processed one was fed to the streak fold."""


class NotFound(PreconditionFailed):
    """Referenced user, record, penalty, reward or circle does not exist."""


class InvalidTransition(DisciplineError):
    """Penalty or reward lifecycle transition that is not permitted."""


class PenaltyEditRejected(DisciplineError):
    pass


class RecordLocked(DisciplineError):
    """Task completions cannot change once the day has been finalized."""


# ──── Couples circle ──────────────────────────────────────────────────────────
class CircleError(DisciplineError):
    pass


class InvalidInviteCode(CircleError):
    def __init__(self, message: str = "Invalid invite code"):
        super().__init__(message)


class CircleFull(CircleError):
    def __init__(self, message: str = "Circle is already full"):
        super().__init__(message)


class AlreadyInCircle(CircleError):
    def __init__(self, message: str = "You are already in a circle"):
        super().__init__(message)


class NotInCircle(CircleError):
    def __init__(self, message: str = "You are not in a circle"):
        super().__init__(message)
