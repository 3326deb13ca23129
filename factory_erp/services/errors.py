# ==============================================================================
# SERVICE ERRORS
# ==============================================================================
# User-facing validation failures are returned as {'ok': False, 'error': ...}
# result dicts. These exceptions are for lookups and permission checks the
# routes map to HTTP responses, plus ValidationError for checks that must
# run against the stored state while the storage lock is held.
# ==============================================================================


class ERPError(Exception):
    """Base class of the application's exceptions."""
    pass


class NotFoundError(ERPError):
    """An entity addressed by id does not exist."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class AccessDeniedError(ERPError):
    """The current role may not open a view or perform an action."""
    pass


class ValidationError(ERPError):
    """
    Raised inside a locked read-modify-write to abort it without saving.
    Services turn it back into an {'ok': False, 'error': ...} result.
    """
    pass
