"""
Remote document store client.
Talks to a running shopdesk backend over HTTP and locates one on startup.
"""
from typing import Any, Optional

import httpx

from shopdesk.core.config import settings
from shopdesk.core.errors import PersistenceError
from shopdesk.core.logging import get_logger
from shopdesk.repositories.base import CollectionRepository, collection_key
from shopdesk.schemas.state import CollectionName
from shopdesk.schemas.user import Session

logger = get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Pull the server's own error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        text = response.text
        if text and len(text) < 500:
            return text
        return response.reason_phrase or f"Request failed with status {response.status_code}"

    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if message:
            return str(message)
    return response.reason_phrase or f"Request failed with status {response.status_code}"


async def find_active_backend(
    urls: Optional[list[str]] = None,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[str]:
    """
    Probe candidate backends and return the first that answers its health check.

    Each probe uses the short probe timeout; unreachable candidates are skipped.
    """
    candidates = urls if urls is not None else settings.backend_urls
    probe_timeout = timeout if timeout is not None else settings.probe_timeout_seconds

    async with httpx.AsyncClient(timeout=probe_timeout, transport=transport) as client:
        for base_url in candidates:
            try:
                response = await client.get(f"{base_url.rstrip('/')}/health")
            except httpx.RequestError as e:
                logger.debug("Backend probe failed", url=base_url, error=str(e))
                continue
            if response.status_code == 200:
                logger.info("Backend located", url=base_url)
                return base_url.rstrip("/")
            logger.debug("Backend probe rejected", url=base_url, status=response.status_code)

    logger.warning("No active backend found", candidates=len(candidates))
    return None


class RemoteCollectionRepository(CollectionRepository):
    """
    Repository over a remote backend's collection endpoints.

    Non-success responses are raised as ``PersistenceError`` carrying the
    server's message verbatim.
    """

    def __init__(
        self,
        base_url: str,
        auth: Optional[tuple[str, str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=f"{self.base_url}/api",
            auth=auth,
            timeout=timeout if timeout is not None else settings.request_timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "RemoteCollectionRepository":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
    ) -> Any:
        try:
            response = await self.client.request(method, path, json=json)
        except httpx.RequestError as e:
            logger.error("Backend unreachable", path=path, error=str(e))
            raise PersistenceError(f"NETWORK_ERROR: {e}") from e

        if response.status_code == 404 and method == "GET":
            return None
        if response.is_error:
            message = _error_message(response)
            logger.error(
                "Backend rejected request",
                method=method,
                path=path,
                status=response.status_code,
                message=message,
            )
            raise PersistenceError(message)
        if not response.content:
            return None
        return response.json()

    async def get_collection(self, name: CollectionName | str) -> list[dict[str, Any]]:
        return await self._request("GET", f"/collections/{collection_key(name)}") or []

    async def set_collection(
        self,
        name: CollectionName | str,
        records: list[dict[str, Any]],
    ) -> None:
        await self._request("PUT", f"/collections/{collection_key(name)}", json=records)

    async def get_document(self, name: str) -> Optional[dict[str, Any]]:
        return await self._request("GET", f"/documents/{name}")

    async def set_document(self, name: str, document: dict[str, Any]) -> None:
        await self._request("PUT", f"/documents/{name}", json=document)

    async def clear(self) -> None:
        await self._request("DELETE", "/collections")

    async def fetch_session(self) -> Session:
        """The session the configured credentials map to on the backend."""
        data = await self._request("GET", "/session")
        if data is None:
            raise PersistenceError("Backend did not return a session")
        return Session.model_validate(data)
