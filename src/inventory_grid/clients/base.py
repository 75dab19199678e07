from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..http_client import HttpClient, JsonPayload


@dataclass
class BaseClient:
    http: HttpClient
    access_token: str | None = None
    store_id: str | None = None

    def _scoped(self, params: dict[str, Any], store_id: str | None = None) -> dict[str, Any]:
        """Attach ``storeId`` unless the caller already scoped the query."""
        scope = store_id or self.store_id
        if scope and not params.get("storeId"):
            params["storeId"] = scope
        return params

    def _request(self, method: str, path: str, **kwargs: Any) -> JsonPayload:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.access_token:
            headers.setdefault("Authorization", f"Bearer {self.access_token}")
        return self.http.request(method, path, headers=headers, **kwargs)
