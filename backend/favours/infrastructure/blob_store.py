"""Blob Store Client — uploads evidence artifacts and resolves their download URLs.

Invariants:
    - put() either stores the full artifact or raises StorageFailureError
    - Object names are the BlobPath verbatim; URL-encoding happens only on the wire
    - resolve_download_url() on a missing object raises ResourceNotFoundError
    - Raw httpx exceptions never escape

Design Decisions:
    - Object-store REST layout: POST /b/{bucket}/o?name=... for uploads,
      GET /b/{bucket}/o/{name} for metadata, ?alt=media for downloads
    - Download token taken from object metadata when the store issues one,
      so resolved URLs are directly renderable
    - No retry on upload: the evidence workflow is retried by the user with a fresh path
"""

import logging
from urllib.parse import quote

import httpx

from favours.config import Settings
from favours.core.domain_types import BlobPath
from favours.core.errors import (
    ErrorContext,
    ResourceNotFoundError,
    StorageFailureError,
)
from favours.core.notifications import extract_first_error_message

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class HttpBlobStore:
    """Evidence storage over an object-store REST API."""

    def __init__(
        self,
        base_url: str,
        bucket: str,
        timeout_seconds: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None,
    ) -> "HttpBlobStore":
        return cls(
            settings.blob_store_base_url,
            settings.blob_store_bucket,
            timeout_seconds=settings.blob_store_timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "HttpBlobStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def put(
        self, path: BlobPath, content: bytes, content_type: str | None = None,
    ) -> None:
        """Upload bytes to path."""
        try:
            response = await self.client.post(
                f"/b/{self.bucket}/o",
                params={"uploadType": "media", "name": path},
                content=content,
                headers={"Content-Type": content_type or DEFAULT_CONTENT_TYPE},
            )
        except httpx.HTTPError as e:
            raise StorageFailureError(f"{type(e).__name__}: {e}", path)

        if not response.is_success:
            message = extract_first_error_message(_json_or_none(response))
            context = ErrorContext(
                status_code=response.status_code, user_message=message,
            )
            raise StorageFailureError(
                f"HTTP {response.status_code}: {message or response.reason_phrase}",
                path, context=context,
            )
        logger.info(
            f"Stored {len(content)} bytes",
            extra={"storage_path": path, "status_code": response.status_code},
        )

    async def resolve_download_url(self, path: BlobPath) -> str:
        """Renderable URL for a stored object."""
        if not path:
            raise ResourceNotFoundError("Blob", str(path))
        try:
            response = await self.client.get(self._object_url(path))
        except httpx.HTTPError as e:
            raise StorageFailureError(f"{type(e).__name__}: {e}", path)

        if response.status_code == 404:
            raise ResourceNotFoundError(
                "Blob", path, context=ErrorContext(storage_path=path, status_code=404),
            )
        if not response.is_success:
            raise StorageFailureError(
                f"metadata lookup returned HTTP {response.status_code}", path,
                context=ErrorContext(status_code=response.status_code),
            )

        url = f"{self.base_url}{self._object_url(path)}?alt=media"
        token = _download_token(_json_or_none(response))
        if token:
            url += f"&token={quote(token, safe='')}"
        return url

    def _object_url(self, path: BlobPath) -> str:
        return f"/b/{self.bucket}/o/{quote(path, safe='')}"


def _json_or_none(response: httpx.Response):
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _download_token(metadata) -> str | None:
    """First of the comma-separated downloadTokens, if the store issued any."""
    if not isinstance(metadata, dict):
        return None
    tokens = metadata.get("downloadTokens")
    if not isinstance(tokens, str) or not tokens.strip():
        return None
    return tokens.split(",")[0].strip()
