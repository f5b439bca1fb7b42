# Copyright (c) 2025 Varshith Gudur. Licensed under AGPLv3.
import json
import logging
from typing import Any, Dict, List, Optional

import requests

from ..binding import Binding
from ..criteria import Criteria
from ..errors import AuthError, ProtocolError
from .base import PersistenceAdapter

logger = logging.getLogger(__name__)


def _ensure_keys(d: Dict[str, Any], keys) -> None:
    missing = [k for k in keys if k not in d]
    if missing:
        raise ProtocolError(f"missing keys in server response: {missing}")


class RemoteAdapter(PersistenceAdapter):
    """
    HTTP backend speaking JSON.

    Bindings travel as ``Binding.to_dict()`` and queries as
    ``Criteria.to_dict()``; the server evaluates them natively.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10,
        dev_mode: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        if api_key:
            self.session.headers.update({"Authorization": f"Bearer {api_key}"})
        elif not dev_mode:
            logger.warning("RemoteAdapter initialized without API Key in production mode (dev_mode=False). Requests may fail.")

    def _request(self, method: str, path: str, json_data: Optional[Dict[str, Any]] = None, allow_404: bool = False):
        url = f"{self.base_url}/{path.lstrip('/')}"
        resp = self.session.request(method, url, json=json_data, timeout=self.timeout)

        if allow_404 and resp.status_code == 404:
            return None
        if not resp.ok:
            if resp.status_code in (401, 403):
                raise AuthError(f"Authentication failed ({resp.status_code}): {resp.reason}")
            try:
                err = resp.json()
                msg = err.get("message") or err.get("error") or err
            except (ValueError, json.JSONDecodeError):
                msg = resp.text
            raise ProtocolError(f"{resp.status_code} Server Error: {msg}")

        try:
            return resp.json()
        except (ValueError, json.JSONDecodeError):
            raise ProtocolError("Server returned non-JSON response")

    def store(self, binding: Binding) -> None:
        self._request("POST", "/v1/bindings", binding.to_dict())

    def find(self, binding_id: str) -> Optional[Binding]:
        res = self._request("GET", f"/v1/bindings/{binding_id}", allow_404=True)
        if res is None:
            return None
        return self._decode(res)

    def delete(self, binding_id: str) -> bool:
        res = self._request("DELETE", f"/v1/bindings/{binding_id}", allow_404=True)
        if res is None:
            return False
        if not isinstance(res, dict):
            raise ProtocolError("invalid delete response shape")
        return bool(res.get("deleted", True))

    def execute_query(self, criteria: Criteria) -> List[Binding]:
        res = self._request("POST", "/v1/bindings/query", {"criteria": criteria.to_dict()})
        if not isinstance(res, dict) or not isinstance(res.get("results"), list):
            raise ProtocolError("invalid query response shape")
        return [self._decode(item) for item in res["results"]]

    def count(self, criteria: Criteria) -> int:
        res = self._request("POST", "/v1/bindings/count", {"criteria": criteria.without_pagination().to_dict()})
        _ensure_keys(res, ("count",))
        return int(res["count"])

    @staticmethod
    def _decode(data: Dict[str, Any]) -> Binding:
        try:
            return Binding.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ProtocolError(f"malformed binding in server response: {e}") from e
