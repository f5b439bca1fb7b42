# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
from typing import Any, Callable, Dict, Iterator, Mapping, Optional

from ..errors import InvalidArgumentError
from .base import PersistenceAdapter
from .memory import InMemoryAdapter
from .remote import RemoteAdapter

AdapterFactory = Callable[..., PersistenceAdapter]


class AdapterRegistry:
    """
    Explicit mapping from adapter name to factory.

    Build one at startup and pass it where adapters are created; there is no
    module-level registry.
    """

    def __init__(self, factories: Optional[Mapping[str, AdapterFactory]] = None):
        self._factories: Dict[str, AdapterFactory] = dict(factories or {})

    @classmethod
    def default(cls) -> "AdapterRegistry":
        return cls({"memory": InMemoryAdapter, "remote": RemoteAdapter})

    def register(self, name: str, factory: AdapterFactory) -> None:
        if name in self._factories:
            raise InvalidArgumentError(f"adapter '{name}' is already registered")
        self._factories[name] = factory

    def create(self, name: str, **options: Any) -> PersistenceAdapter:
        try:
            factory = self._factories[name]
        except KeyError:
            raise InvalidArgumentError(
                f"unknown adapter '{name}', registered: {sorted(self._factories)}"
            ) from None
        return factory(**options)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._factories))
