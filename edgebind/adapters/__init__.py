# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
from .base import PersistenceAdapter
from .memory import InMemoryAdapter
from .remote import RemoteAdapter
from .registry import AdapterRegistry

__all__ = [
    "PersistenceAdapter",
    "InMemoryAdapter",
    "RemoteAdapter",
    "AdapterRegistry",
]
