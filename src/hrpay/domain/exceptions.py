class HRPayError(Exception):
    code = "ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(HRPayError):
    """Requested resource does not exist."""

    code = "NOT_FOUND"


class ConflictError(HRPayError):
    """Operation conflicts with existing state (e.g. a second payrun for a month)."""

    code = "CONFLICT"


class InvalidTransitionError(HRPayError):
    """The payrun's current status does not allow the requested operation.

    Always a caller bug (stale client state); never retried by the engine.
    """

    code = "INVALID_TRANSITION"

    def __init__(self, current: str, action: str, requested: str | None = None) -> None:
        self.current = current
        self.action = action
        self.requested = requested
        target = f" (-> {requested})" if requested else ""
        super().__init__(f"Cannot {action} a payrun in status '{current}'{target}")


class PersistenceError(HRPayError):
    """The store failed mid-operation; the transaction was rolled back."""

    code = "PERSISTENCE_FAILURE"
