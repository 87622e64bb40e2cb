class GuardError(Exception):
    """Base class for errors raised by the guard engine."""


class GuardValidationError(GuardError):
    """Malformed user identifier or outcome; raised before storage is touched."""


class UnknownUserError(GuardError):
    def __init__(self, user_id: str):
        super().__init__(f"Unknown user {user_id}")
        self.user_id = user_id


class TradingOffError(GuardError):
    """A recording attempt while the user's trading is suspended.

    Expected and recoverable: carries the state at the time of rejection so
    callers can show the reason and the expiry.
    """

    def __init__(self, state):
        super().__init__(f"Trading off: {state.off_reason}")
        self.state = state


class PersistenceError(GuardError):
    """Storage failed; the surrounding transaction was rolled back."""
