"""HTTP document store client — implements the DocumentStore interface.

Talks to a document-store gateway over REST using httpx. Documents are
created under a schema name and owned by the bound DID (the controller);
named records are per-controller singletons such as the events index.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from web3analytics.application.interfaces import DocumentStore
from web3analytics.domain.entities import Identity, StoredDocument
from web3analytics.domain.exceptions import DocumentStoreError

logger = logging.getLogger(__name__)


class HttpDocumentStore(DocumentStore):
    """Infrastructure adapter — document-store gateway over HTTP.

    Uses one pooled httpx.AsyncClient for the lifetime of the store.
    """

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=60.0)
        self._identity: Identity | None = None

    def bind_identity(self, identity: Identity) -> None:
        if self._identity is not None and self._identity.id != identity.id:
            logger.warning("Replacing bound DID %s with %s", self._identity.id, identity.id)
        self._identity = identity

    @property
    def identity(self) -> Identity | None:
        return self._identity

    def _controller(self, operation: str) -> str:
        if self._identity is None or not self._identity.authenticated:
            raise DocumentStoreError(operation, None, "No authenticated DID bound to the document store")
        return self._identity.id

    def _get_headers(self, controller: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-DID": controller,
        }

    def _record_url(self, controller: str, name: str) -> str:
        return f"{self._base_url}/api/v0/records/{quote(controller, safe='')}/{quote(name, safe='')}"

    async def _send(self, operation: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http_client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise DocumentStoreError(operation, None, str(exc)) from exc

    @staticmethod
    def _raise_store_error(operation: str, response: httpx.Response) -> None:
        """Parse the gateway error body and raise DocumentStoreError."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("error") or body.get("message") or response.text
        else:
            message = response.text
        raise DocumentStoreError(operation, response.status_code, str(message)[:300])

    async def create_document(self, schema: str, content: dict[str, Any]) -> StoredDocument:
        controller = self._controller("create")
        response = await self._send(
            "create",
            "POST",
            f"{self._base_url}/api/v0/documents",
            headers=self._get_headers(controller),
            json={"schema": schema, "controller": controller, "content": content},
        )
        if response.status_code not in (200, 201):
            self._raise_store_error("create", response)

        data = response.json()
        document = StoredDocument(
            id=data["id"],
            content=data.get("content", content),
            url=data.get("url"),
        )
        logger.debug("New document id: %s", document.id)
        return document

    async def update_document(self, document_id: str, content: dict[str, Any]) -> None:
        controller = self._controller("update")
        response = await self._send(
            "update",
            "PUT",
            f"{self._base_url}/api/v0/documents/{quote(document_id, safe='')}",
            headers=self._get_headers(controller),
            json={"controller": controller, "content": content},
        )
        if response.status_code not in (200, 204):
            self._raise_store_error("update", response)

    async def read_named_document(self, name: str) -> dict[str, Any] | None:
        controller = self._controller("read")
        response = await self._send(
            "read",
            "GET",
            self._record_url(controller, name),
            headers=self._get_headers(controller),
        )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            self._raise_store_error("read", response)
        return response.json().get("content")

    async def set_named_document(self, name: str, content: dict[str, Any]) -> None:
        controller = self._controller("set")
        response = await self._send(
            "set",
            "PUT",
            self._record_url(controller, name),
            headers=self._get_headers(controller),
            json={"content": content},
        )
        if response.status_code not in (200, 204):
            self._raise_store_error("set", response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()
