"""
Async client for the BIM Portal property catalog ("Merkmale").

Only the two calls the normalizer needs are implemented: property search and
fetching a single property by GUID. Payloads are validated into SearchHit and
CanonicalDefinition at this boundary.
"""

from typing import Any, Optional, Protocol
from urllib.parse import quote

import httpx
import pydantic
import structlog

from ifc_normalizer.catalog.retry import retry_async
from ifc_normalizer.catalog.settings import CatalogSettings
from ifc_normalizer.errors import ResolutionError, TransportError, ValidationError
from ifc_normalizer.models import CanonicalDefinition, SearchHit

logger = structlog.get_logger(__name__)


class CatalogResolver(Protocol):
    """What the matcher needs from a property catalog."""

    async def search(self, params: dict) -> list[SearchHit]:
        ...

    async def fetch_by_guid(self, guid: str) -> CanonicalDefinition:
        ...


class BIMPortalClient:
    """CatalogResolver backed by the BIM Portal REST API."""

    SEARCH_PATH = "/merkmale/api/v1/public/property"
    PROPERTY_PATH = "/merkmale/api/v1/property/{guid}"

    def __init__(
        self,
        settings: Optional[CatalogSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize the client.

        Args:
            settings: Connection settings (read from the environment if omitted)
            http_client: Preconfigured client; must carry the base URL
        """
        self.settings = settings or CatalogSettings()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self.settings.base.rstrip("/"),
            headers=self._headers(),
            timeout=self.settings.timeout,
        )

    def _headers(self) -> dict:
        headers = {
            "accept": "application/json",
            "user-agent": self.settings.user_agent,
        }
        if self.settings.token:
            headers["authorization"] = f"Bearer {self.settings.token}"
        return headers

    async def __aenter__(self) -> "BIMPortalClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        """Send one request with retries; returns the decoded JSON body."""

        async def attempt():
            try:
                response = await self._client.request(method, path, json=json)
            except httpx.TimeoutException as e:
                raise TransportError(f"Timeout calling {path}: {e}") from e
            except httpx.RequestError as e:
                raise TransportError(f"Network error calling {path}: {e}") from e

            status = response.status_code
            if status >= 500 or status == 429:
                raise TransportError(f"HTTP {status} from {path}", status_code=status)
            if status >= 400:
                raise ResolutionError(f"HTTP {status} from {path}: {response.text[:200]}",
                                      status_code=status)

            try:
                return response.json()
            except ValueError as e:
                raise ValidationError(f"Invalid JSON from {path}") from e

        return await retry_async(
            attempt,
            max_retries=self.settings.retries,
            base_delay=self.settings.backoff,
            max_delay=self.settings.max_backoff,
            description=f"{method} {path}",
        )

    async def search(self, params: dict) -> list[SearchHit]:
        """
        Search public properties.

        Args:
            params: Search body, e.g. {"searchString": "FireRating"}

        Returns:
            Hits in catalog ranking order

        Raises:
            ResolutionError: Permanent failure or retries exhausted
            ValidationError: Malformed payload
        """
        payload = await self._request("POST", self.SEARCH_PATH, json=params)

        if isinstance(payload, dict):
            # Paged responses wrap the hits
            for key in ("content", "items", "results"):
                if isinstance(payload.get(key), list):
                    payload = payload[key]
                    break

        if not isinstance(payload, list):
            raise ValidationError(f"Unexpected search response: {type(payload).__name__}")

        try:
            hits = [SearchHit.model_validate(item) for item in payload]
        except pydantic.ValidationError as e:
            raise ValidationError("Malformed search hit", errors=e.errors()) from e

        logger.debug("catalog.search", query=params.get("searchString"), hits=len(hits))
        return hits

    async def fetch_by_guid(self, guid: str) -> CanonicalDefinition:
        """
        Fetch a single property definition.

        Raises:
            ResolutionError: Unknown GUID, permanent failure or retries exhausted
            ValidationError: Malformed payload
        """
        path = self.PROPERTY_PATH.format(guid=quote(guid, safe=""))
        payload = await self._request("GET", path)

        try:
            return CanonicalDefinition.model_validate(payload)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Malformed property {guid}", errors=e.errors()) from e
