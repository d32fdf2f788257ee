"""Subgraph client: lowest level, sends the GraphQL request only. Parsing lives in fetchers."""
from typing import Any

import httpx

from app.core.errors import IndexerError


class SubgraphClient:
    """Auctionhouse subgraph over GraphQL-on-HTTP. Raises IndexerError on any transport or GraphQL failure."""

    def __init__(
        self,
        url: str,
        *,
        api_key: str = "",
        timeout: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self._url)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def query(self, document: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST one query; return its `data` object."""
        if not self.is_configured():
            raise IndexerError("Subgraph endpoint not configured. Set SUBGRAPH_URL in .env.")
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as c:
                r = c.post(self._url, json={"query": document, "variables": variables}, headers=self._headers())
        except httpx.HTTPError as e:
            raise IndexerError(f"Subgraph request failed: {e}") from e
        if not r.is_success:
            raise IndexerError(f"Subgraph error: {r.status_code} {r.text[:500] if r.text else ''}")
        try:
            body = r.json()
        except ValueError as e:
            raise IndexerError("Subgraph returned a non-JSON body") from e
        if not isinstance(body, dict):
            raise IndexerError("Subgraph returned an unexpected body")
        if body.get("errors"):
            raise IndexerError(f"Subgraph GraphQL errors: {body['errors']}")
        data = body.get("data")
        if not isinstance(data, dict):
            raise IndexerError("Subgraph response has no data")
        return data
