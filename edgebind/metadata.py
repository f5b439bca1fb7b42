# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
import math
from datetime import date, datetime
from typing import Any, Dict, Mapping

import numpy as np

from .errors import MetadataValidationError

DEFAULT_MAX_DEPTH = 10

_SCALARS = (str, bool, int)


def validate_and_normalize_metadata(metadata: Mapping[str, Any], max_depth: int = DEFAULT_MAX_DEPTH) -> Dict[str, Any]:
    """
    Validate binding metadata and return a normalised plain-dict copy.

    - keys must be non-empty strings
    - tuples become lists, mappings become dicts
    - numpy scalars and arrays become native Python values
    - floats must be finite
    - nesting deeper than ``max_depth`` is rejected
    """
    if metadata is None:
        return {}
    if not isinstance(metadata, Mapping):
        raise MetadataValidationError(f"metadata must be a mapping, got {type(metadata).__name__}")
    return _normalize_mapping(metadata, depth=1, max_depth=max_depth, path="")


def _normalize_mapping(value: Mapping, depth: int, max_depth: int, path: str) -> Dict[str, Any]:
    if depth > max_depth:
        raise MetadataValidationError(f"metadata nested deeper than {max_depth} levels at '{path}'")
    out = {}
    for key, item in value.items():
        if not isinstance(key, str) or not key:
            raise MetadataValidationError(f"metadata keys must be non-empty strings, got {key!r}")
        child = f"{path}.{key}" if path else key
        out[key] = _normalize_value(item, depth, max_depth, child)
    return out


def _normalize_value(value: Any, depth: int, max_depth: int, path: str) -> Any:
    if isinstance(value, np.ndarray):
        value = value.tolist()
    elif isinstance(value, np.generic):
        value = value.item()

    if value is None or isinstance(value, _SCALARS):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise MetadataValidationError(f"metadata value at '{path}' is not finite")
        return value
    if isinstance(value, (datetime, date)):
        return value
    if isinstance(value, Mapping):
        return _normalize_mapping(value, depth + 1, max_depth, path)
    if isinstance(value, (list, tuple)):
        if depth + 1 > max_depth:
            raise MetadataValidationError(f"metadata nested deeper than {max_depth} levels at '{path}'")
        return [_normalize_value(v, depth + 1, max_depth, f"{path}[{i}]") for i, v in enumerate(value)]
    raise MetadataValidationError(f"unsupported metadata value at '{path}': {type(value).__name__}")
