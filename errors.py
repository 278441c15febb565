class ValidationError(ValueError):
    """Payload rejected before anything was written."""


class NotFoundError(ValueError):
    pass


class PersistenceError(RuntimeError):
    """The store failed while writing a group of rows; the group was rolled back."""
