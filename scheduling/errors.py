class SchedulingError(Exception):
    """Base for every error the booking engine hands back to its caller."""

    status_code = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        out = {"error": self.message}
        if self.details:
            out["details"] = self.details
        return out


class ValidationError(SchedulingError):
    # missing field, unknown session type, no covering package
    status_code = 400


class QuotaExceededError(ValidationError):
    pass


class NotFoundError(SchedulingError):
    status_code = 404


class StateError(SchedulingError):
    # illegal status transition
    status_code = 409


class SlotConflictError(StateError):
    pass


class StoreError(SchedulingError):
    # persistence failure; never retried inside the engine
    status_code = 503
