"""Domain errors raised by the service layer and translated to HTTP by the routes."""


class NotFoundError(ValueError):
    """The referenced post or user does not exist (or is not visible)."""


class InteractionConflictError(Exception):
    """The ledger's uniqueness constraint rejected a concurrent duplicate insert."""
