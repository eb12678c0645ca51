"""Resilient Favour API Client — wraps httpx.AsyncClient with retry, backoff, and error mapping.

Invariants:
    - Every call is authorized with the viewer credential as a Bearer token
    - Transient errors (connection, 429, 5xx): retried with exponential backoff,
      but only for idempotent calls (GET, DELETE)
    - Evidence registration (POST) is sent exactly once; the user retries the workflow
    - Timeouts: immediate TransportError, no retry
    - 401 → UnauthorizedError, 403 → ForbiddenError, 404 → ResourceNotFoundError,
      anything else → TransportError; raw httpx exceptions never escape
    - The remote's first structured error message is kept as context.user_message

Design Decisions:
    - Wrapper over raw client: isolates retry logic from the workflows (single responsibility)
    - ±25% jitter on backoff: prevents synchronized retries from many tabs
    - transport injectable: tests drive the client through httpx.MockTransport
"""

import asyncio
import random
import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from favours.config import Settings
from favours.core.domain_types import BlobPath, Credential, FavourId
from favours.core.errors import (
    ErrorContext,
    FavourError,
    ForbiddenError,
    InvalidFavourError,
    ResourceNotFoundError,
    TransportError,
    UnauthorizedError,
)
from favours.core.notifications import extract_first_error_message
from favours.schemas.favour import EvidenceRegistration, Favour

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class FavourApiClient:
    """Remote favour store client: GET/DELETE /favours/{id}, POST /favours/{id}/evidence."""

    def __init__(
        self,
        base_url: str,
        max_retries: int = 3,
        base_delay_ms: int = 250,
        max_delay_ms: int = 10_000,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None,
    ) -> "FavourApiClient":
        return cls(
            settings.favour_api_base_url,
            max_retries=settings.favour_api_max_retries,
            base_delay_ms=settings.favour_api_base_delay_ms,
            max_delay_ms=settings.favour_api_max_delay_ms,
            timeout_seconds=settings.favour_api_timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "FavourApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # --- Endpoints ------------------------------------------------------------

    async def get_favour(self, favour_id: FavourId, credential: Credential) -> Favour:
        """GET /favours/{id} → validated Favour."""
        response = await self._send(
            "GET", _favour_url(favour_id), credential,
            operation="fetch", favour_id=favour_id,
        )
        try:
            return Favour.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise InvalidFavourError(
                str(e), context=ErrorContext(favour_id=favour_id),
            ) from e

    async def delete_favour(self, favour_id: FavourId, credential: Credential) -> None:
        """DELETE /favours/{id}. 404 surfaces as ResourceNotFoundError."""
        await self._send(
            "DELETE", _favour_url(favour_id), credential,
            operation="delete", favour_id=favour_id,
        )

    async def register_evidence(
        self, favour_id: FavourId, path: BlobPath, credential: Credential,
    ) -> dict:
        """POST /favours/{id}/evidence {"evidence": path}. Never retried."""
        body = EvidenceRegistration(evidence=path).model_dump(mode="json")
        response = await self._send(
            "POST", f"{_favour_url(favour_id)}/evidence", credential,
            operation="register_evidence", favour_id=favour_id,
            json=body, retry=False,
        )
        payload = _json_or_none(response)
        return payload if isinstance(payload, dict) else {}

    # --- Transport ------------------------------------------------------------

    async def _send(
        self,
        method: str,
        url: str,
        credential: Credential,
        *,
        operation: str,
        favour_id: FavourId,
        json: dict | None = None,
        retry: bool = True,
    ) -> httpx.Response:
        """Send one request with retry on transient failures (when allowed)."""
        context = ErrorContext(favour_id=favour_id)
        attempts = self.max_retries + 1 if retry else 1
        for attempt in range(attempts):
            last_attempt = attempt + 1 >= attempts
            try:
                response = await self.client.request(
                    method, url, json=json, headers=_auth_headers(credential),
                )
            except httpx.TimeoutException:
                raise TransportError("request timed out", operation, context=context)
            except httpx.TransportError as e:
                if last_attempt:
                    raise TransportError(
                        f"{type(e).__name__}: {e}", operation, context=context,
                    ) from e
                await self._wait_before_retry(
                    self._backoff(attempt), attempt, operation, str(e),
                )
                continue
            except httpx.HTTPError as e:
                raise TransportError(
                    f"{type(e).__name__}: {e}", operation, context=context,
                ) from e

            if response.status_code in _RETRYABLE_STATUS and not last_attempt:
                delay = _retry_after_ms(response) or self._backoff(attempt)
                await self._wait_before_retry(
                    delay, attempt, operation, f"HTTP {response.status_code}",
                )
                continue

            if response.is_success:
                logger.info(
                    f"Favour API {operation} succeeded",
                    extra={
                        "favour_id": favour_id,
                        "attempt": attempt + 1,
                        "status_code": response.status_code,
                    },
                )
                return response

            raise _error_for(response, operation, favour_id, context)

        raise TransportError("retries exhausted", operation, context=context)

    async def _wait_before_retry(
        self, delay_ms: int, attempt: int, operation: str, reason: str,
    ) -> None:
        logger.warning(
            f"Favour API {operation} transient failure ({reason}), "
            f"retry after {delay_ms}ms",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay_ms / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311


# --- Helpers ------------------------------------------------------------------

def _favour_url(favour_id: FavourId) -> str:
    return f"/favours/{quote(str(favour_id), safe='')}"


def _auth_headers(credential: Credential) -> dict[str, str]:
    return {"Authorization": f"Bearer {credential}"}


def _json_or_none(response: httpx.Response):
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _retry_after_ms(response: httpx.Response) -> int | None:
    """Retry-After header in milliseconds (seconds form only)."""
    val = response.headers.get("retry-after")
    if val and val.strip().isdigit():
        return int(val.strip()) * 1000
    return None


def _error_for(
    response: httpx.Response,
    operation: str,
    favour_id: FavourId,
    context: ErrorContext,
) -> FavourError:
    """Map a non-2xx response onto the error taxonomy."""
    message = extract_first_error_message(_json_or_none(response))
    context.user_message = message
    context.status_code = response.status_code
    status = response.status_code
    reason = message or response.reason_phrase or f"HTTP {status}"

    if status == 401:
        return UnauthorizedError(reason, context=context)
    if status == 403:
        return ForbiddenError(operation, reason, context=context)
    if status == 404:
        return ResourceNotFoundError("Favour", str(favour_id), context=context)
    return TransportError(
        f"HTTP {status}: {reason}", operation,
        retry_after_ms=_retry_after_ms(response), context=context,
    )
