# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .adapters.registry import AdapterRegistry
from .binder import EdgeBinder
from .errors import InvalidArgumentError
from .metadata import DEFAULT_MAX_DEPTH


@dataclass(frozen=True)
class Settings:
    adapter: str = "memory"
    url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 10
    max_metadata_depth: int = DEFAULT_MAX_DEPTH

    def adapter_options(self) -> Dict[str, Any]:
        if self.adapter == "remote":
            if not self.url:
                raise InvalidArgumentError("EDGEBIND_URL is required for the remote adapter")
            return {"base_url": self.url, "api_key": self.api_key, "timeout": self.timeout}
        if self.adapter == "memory":
            return {"max_metadata_depth": self.max_metadata_depth}
        return {}


def load_settings(dotenv: bool = True) -> Settings:
    """
    Read settings from the environment (and a ``.env`` file when ``dotenv``):

        EDGEBIND_ADAPTER             memory | remote (default memory)
        EDGEBIND_URL                 base URL for the remote adapter
        EDGEBIND_API_KEY             bearer token for the remote adapter
        EDGEBIND_TIMEOUT             request timeout in seconds (default 10)
        EDGEBIND_MAX_METADATA_DEPTH  metadata nesting limit (default 10)
    """
    if dotenv:
        load_dotenv()
    return Settings(
        adapter=os.getenv("EDGEBIND_ADAPTER", "memory").strip().lower(),
        url=os.getenv("EDGEBIND_URL") or None,
        api_key=os.getenv("EDGEBIND_API_KEY") or None,
        timeout=_number("EDGEBIND_TIMEOUT", 10, float),
        max_metadata_depth=_number("EDGEBIND_MAX_METADATA_DEPTH", DEFAULT_MAX_DEPTH, int),
    )


def _number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise InvalidArgumentError(f"{name} must be a number, got: {raw!r}") from None


def create_binder(settings: Optional[Settings] = None, registry: Optional[AdapterRegistry] = None) -> EdgeBinder:
    settings = settings or load_settings()
    registry = registry or AdapterRegistry.default()
    return EdgeBinder(registry.create(settings.adapter, **settings.adapter_options()))
