# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
from .adapters import AdapterRegistry, InMemoryAdapter, PersistenceAdapter, RemoteAdapter
from .binder import EdgeBinder
from .binding import Binding
from .config import Settings, create_binder, load_settings
from .criteria import Criteria, OrderClause, OrGroup, WhereClause
from .entity import EntityRef
from .errors import (
    AuthError,
    BindingNotFoundError,
    EdgeBindError,
    EntityExtractionError,
    InvalidArgumentError,
    MetadataValidationError,
    PersistenceError,
    ProtocolError,
)
from .query import BindingQueryBuilder

__all__ = [
    "AdapterRegistry", "InMemoryAdapter", "PersistenceAdapter", "RemoteAdapter",
    "EdgeBinder", "Binding", "Settings", "create_binder", "load_settings",
    "Criteria", "OrderClause", "OrGroup", "WhereClause", "EntityRef",
    "AuthError", "BindingNotFoundError", "EdgeBindError", "EntityExtractionError",
    "InvalidArgumentError", "MetadataValidationError", "PersistenceError", "ProtocolError",
    "BindingQueryBuilder",
]
