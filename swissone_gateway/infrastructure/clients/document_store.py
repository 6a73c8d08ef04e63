"""Document store HTTP client for account, transaction and user documents"""

import httpx
from typing import Any, Dict, List, Optional
from swissone_gateway.domain.exceptions import ConcurrentUpdateError, PersistenceFailure
from swissone_gateway.config import settings
from swissone_gateway.infrastructure.observability.metrics import store_latency_histogram, store_failure_counter

Document = Dict[str, Any]


class DocumentStoreClient:
    """Client for the remote document store (CRUD, field queries, atomic commits)"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.document_store_base
        self.timeout = timeout or settings.http_timeout_seconds
        # Tests route requests to an in-process app through this
        self.transport = transport

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        allow_missing: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """
        Send one request and decode the JSON body.

        Raises:
            PersistenceFailure: On timeout, network errors, HTTP errors or invalid response
            ConcurrentUpdateError: When the store rejects a commit precondition (409)
        """
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            try:
                with store_latency_histogram.labels(operation=operation).time():
                    response = await client.request(method, path, json=payload)

                if allow_missing and response.status_code == 404:
                    return None
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                store_failure_counter.labels(operation=operation).inc()
                raise PersistenceFailure(f"Document store timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                store_failure_counter.labels(operation=operation).inc()
                if e.response.status_code == 409:
                    raise ConcurrentUpdateError(f"Document store rejected {operation}: precondition failed") from e
                raise PersistenceFailure(f"Document store error on {operation}: {e.response.status_code}") from e
            except httpx.RequestError as e:
                store_failure_counter.labels(operation=operation).inc()
                raise PersistenceFailure(f"Document store unreachable: {e}") from e
            except ValueError as e:
                store_failure_counter.labels(operation=operation).inc()
                raise PersistenceFailure(f"Invalid response from document store: {e}") from e

    async def get_document(self, collection: str, doc_id: str) -> Optional[Document]:
        """Fetch one document; None when it does not exist"""
        return await self._request("get", "GET", f"/v1/{collection}/{doc_id}", allow_missing=True)

    async def create_document(self, collection: str, fields: Dict[str, Any]) -> Document:
        """Create a document with a store-assigned id"""
        return await self._request("create", "POST", f"/v1/{collection}", {"fields": fields})

    async def put_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> Document:
        """Create or replace a document under a caller-chosen id"""
        return await self._request("put", "PUT", f"/v1/{collection}/{doc_id}", {"fields": fields})

    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> Document:
        """Merge fields into an existing document"""
        return await self._request("update", "PATCH", f"/v1/{collection}/{doc_id}", {"fields": fields})

    async def query(
        self,
        collection: str,
        where: Optional[List[Dict[str, Any]]] = None,
        order_by: Optional[Dict[str, str]] = None,
    ) -> List[Document]:
        """
        Query documents by field equality.

        Args:
            collection: Collection name
            where: [{"field": ..., "op": "==", "value": ...}], all must match
            order_by: {"field": ..., "direction": "asc" | "desc"}
        """
        body: Dict[str, Any] = {"where": where or []}
        if order_by:
            body["order_by"] = order_by
        data = await self._request("query", "POST", f"/v1/query/{collection}", body)
        try:
            return list(data["documents"])
        except (KeyError, TypeError) as e:
            raise PersistenceFailure(f"Invalid query response from document store: {e}") from e

    async def commit(self, writes: List[Dict[str, Any]]) -> List[Document]:
        """
        Apply a batch of writes atomically: all succeed or none do.

        Returns the resulting document of each write, in order.
        """
        data = await self._request("commit", "POST", "/v1/commit", {"writes": writes})
        try:
            return list(data["results"])
        except (KeyError, TypeError) as e:
            raise PersistenceFailure(f"Invalid commit response from document store: {e}") from e
