"""
HTTP Document Store
===================

DocumentStore implementation that talks to the document service.

HTTP has no push channel here, so remote changes are collected by
poll(), which the Sync Gateway calls from pump(). Callbacks therefore
run on the caller's thread, like every other editor callback.

TRANSPORTS:
===========
- httpx.Client       blocking calls (save, load, freeze, poll, flush)
- httpx.AsyncClient  save_async / poll_async, used by SyncGateway.run()
                     so the event loop is never blocked on the network
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import os

import httpx

from ..contracts.base import Error, ErrorCode, SaveResult
from ..sync.persistence import DocumentCallback, DocumentStore, ErrorCallback, Unsubscribe


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


@dataclass
class _Subscription:
    document_id: str
    revision: int
    callbacks: List[DocumentCallback] = field(default_factory=list)
    error_callbacks: List[ErrorCallback] = field(default_factory=list)


class HttpDocumentStore(DocumentStore):
    """
    Client for /api/v1/documents.

    Transport failures and unexpected response bodies are returned as
    failed SaveResults or reported through the subscriber's error
    callback. Nothing is retried.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
        async_client: Optional[httpx.AsyncClient] = None
    ):
        base_url = base_url or os.environ.get("MINDMAP_API_URL", DEFAULT_BASE_URL)
        self._owns_client = client is None
        if client is None:
            client = httpx.Client(base_url=base_url, timeout=timeout)
        self._client = client

        # An injected sync client (e.g. a test transport) without an async
        # partner keeps the async path on the blocking client
        self._owns_async_client = async_client is None and self._owns_client
        if self._owns_async_client:
            async_client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._async_client = async_client

        self._subscriptions: Dict[str, _Subscription] = {}

    @staticmethod
    def _path(document_id: str) -> str:
        return f"/api/v1/documents/{document_id}"

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def save(self, document_id: str, document: Dict[str, Any]) -> SaveResult:
        try:
            response = self._client.put(self._path(document_id), json=document)
        except httpx.HTTPError as e:
            return _transport_failure(document_id, e)
        return self._save_result(document_id, response)

    async def save_async(self, document_id: str, document: Dict[str, Any]) -> SaveResult:
        if self._async_client is None:
            return self.save(document_id, document)
        try:
            response = await self._async_client.put(self._path(document_id), json=document)
        except httpx.HTTPError as e:
            return _transport_failure(document_id, e)
        return self._save_result(document_id, response)

    def _save_result(self, document_id: str, response: httpx.Response) -> SaveResult:
        if response.status_code == 409:
            return SaveResult.failure(document_id, Error.create(
                ErrorCode.DOCUMENT_FROZEN, _detail(response), document_id=document_id
            ))
        if response.is_error:
            return _http_failure(document_id, response)

        revision = _revision(response)
        if revision is None:
            return _body_failure(document_id, response)

        subscription = self._subscriptions.get(document_id)
        if subscription is not None:
            # Our own write is not a remote change
            subscription.revision = max(subscription.revision, revision)
        return SaveResult.success(document_id, revision)

    def freeze(self, document_id: str) -> SaveResult:
        try:
            response = self._client.post(f"{self._path(document_id)}/freeze")
        except httpx.HTTPError as e:
            return _transport_failure(document_id, e)
        if response.status_code == 404:
            return SaveResult.failure(document_id, Error.create(
                ErrorCode.DOCUMENT_NOT_FOUND, _detail(response), document_id=document_id
            ))
        if response.is_error:
            return _http_failure(document_id, response)

        revision = _revision(response)
        if revision is None:
            return _body_failure(document_id, response)
        return SaveResult.success(document_id, revision)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _fetch(self, document_id: str) -> Optional[Dict[str, Any]]:
        """Raw GET body, None for 404. Raises httpx.HTTPError otherwise."""
        return _fetched_body(self._client.get(self._path(document_id)))

    async def _fetch_async(self, document_id: str) -> Optional[Dict[str, Any]]:
        return _fetched_body(await self._async_client.get(self._path(document_id)))

    def load(self, document_id: str) -> Optional[Dict[str, Any]]:
        try:
            body = self._fetch(document_id)
        except httpx.HTTPError as e:
            logger.warning("Load of %s failed: %s", document_id, e)
            return None
        return body["document"] if body else None

    def subscribe(
        self,
        document_id: str,
        on_document: DocumentCallback,
        on_error: Optional[ErrorCallback] = None
    ) -> Unsubscribe:
        subscription = self._subscriptions.get(document_id)
        if subscription is None:
            subscription = _Subscription(document_id=document_id, revision=self._current_revision(document_id))
            self._subscriptions[document_id] = subscription
        subscription.callbacks.append(on_document)
        if on_error is not None:
            subscription.error_callbacks.append(on_error)

        def unsubscribe() -> None:
            if on_document in subscription.callbacks:
                subscription.callbacks.remove(on_document)
            if on_error in subscription.error_callbacks:
                subscription.error_callbacks.remove(on_error)
            if not subscription.callbacks:
                self._subscriptions.pop(document_id, None)

        return unsubscribe

    def _current_revision(self, document_id: str) -> int:
        """Baseline so only changes AFTER subscribing are delivered."""
        try:
            body = self._fetch(document_id)
        except httpx.HTTPError as e:
            logger.warning("Could not read baseline revision of %s: %s", document_id, e)
            return 0
        return body["revision"] if body else 0

    def poll(self) -> int:
        delivered = 0
        for subscription in list(self._subscriptions.values()):
            try:
                body = self._fetch(subscription.document_id)
            except httpx.HTTPError as e:
                self._poll_failed(subscription, e)
                continue
            delivered += self._deliver(subscription, body)
        return delivered

    async def poll_async(self) -> int:
        if self._async_client is None:
            return self.poll()
        delivered = 0
        for subscription in list(self._subscriptions.values()):
            try:
                body = await self._fetch_async(subscription.document_id)
            except httpx.HTTPError as e:
                self._poll_failed(subscription, e)
                continue
            delivered += self._deliver(subscription, body)
        return delivered

    def _deliver(self, subscription: _Subscription, body: Optional[Dict[str, Any]]) -> int:
        if body is None or body["revision"] <= subscription.revision:
            return 0
        subscription.revision = body["revision"]
        for callback in list(subscription.callbacks):
            callback(body["document"], body["revision"])
        return 1

    def _poll_failed(self, subscription: _Subscription, e: httpx.HTTPError) -> None:
        logger.warning("Poll of %s failed: %s", subscription.document_id, e)
        error = Error.create(
            ErrorCode.SUBSCRIBE_FAILED, f"Poll failed: {e}",
            document_id=subscription.document_id,
        )
        for callback in list(subscription.error_callbacks):
            callback(error)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    async def aclose(self) -> None:
        if self._owns_async_client:
            await self._async_client.aclose()
        self.close()


# =============================================================================
# RESPONSE HELPERS
# =============================================================================

def _fetched_body(response: httpx.Response) -> Optional[Dict[str, Any]]:
    if response.status_code == 404:
        return None
    response.raise_for_status()
    body = _json(response)
    if not isinstance(body, dict) or "revision" not in body or "document" not in body:
        raise httpx.DecodingError(f"Unexpected document body: {response.text[:200]}")
    return body


def _json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _revision(response: httpx.Response) -> Optional[int]:
    body = _json(response)
    if isinstance(body, dict) and isinstance(body.get("revision"), int):
        return body["revision"]
    return None


def _detail(response: httpx.Response) -> str:
    body = _json(response)
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return response.text


def _transport_failure(document_id: str, e: httpx.HTTPError) -> SaveResult:
    return SaveResult.failure(document_id, Error.create(
        ErrorCode.PUSH_FAILED, f"Transport error: {e}", document_id=document_id
    ))


def _http_failure(document_id: str, response: httpx.Response) -> SaveResult:
    return SaveResult.failure(document_id, Error.create(
        ErrorCode.PUSH_FAILED,
        f"HTTP {response.status_code}: {_detail(response)}",
        document_id=document_id,
    ))


def _body_failure(document_id: str, response: httpx.Response) -> SaveResult:
    return SaveResult.failure(document_id, Error.create(
        ErrorCode.PUSH_FAILED,
        f"Unexpected response body: {response.text[:200]}",
        document_id=document_id,
    ))
