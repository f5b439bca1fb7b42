# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.


class EdgeBindError(Exception):
    """Base class for all edgebind exceptions."""
    pass


class InvalidArgumentError(EdgeBindError, ValueError):
    """Raised when a query builder call receives malformed input."""
    pass


class EntityExtractionError(EdgeBindError):
    """Raised when a domain object cannot be resolved to a (type, id) pair."""
    pass


class MetadataValidationError(EdgeBindError, ValueError):
    """Raised when binding metadata fails validation."""
    pass


class BindingNotFoundError(EdgeBindError, LookupError):
    """Raised when an operation targets a binding id that is not stored."""

    def __init__(self, binding_id: str):
        super().__init__(f"binding not found: {binding_id}")
        self.binding_id = binding_id


class PersistenceError(EdgeBindError):
    """Raised for storage backend failures."""
    pass


class ProtocolError(PersistenceError):
    """Raised for protocol-level problems (invalid server response, etc.)."""
    pass


class AuthError(PersistenceError):
    """Raised when authentication fails (401/403)."""
    pass
