"""Async client for the fleet CRUD backend.

The backend is only the origin of entity data; this client reads the
collections and hands them to the entity store.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import aiohttp

from fleetwatch.config import FleetConfig
from fleetwatch.exceptions import FleetError, FleetTransportError
from fleetwatch.models import Driver, Trip, Truck
from fleetwatch.models._base import FleetBaseModel
from fleetwatch.state.store import parse_rows

_logger = logging.getLogger(__name__)

TModel = TypeVar("TModel", bound=FleetBaseModel)

_USER_AGENT = "fleetwatch"


class FleetApiClient:
    """Read-only client for ``/api/trucks``, ``/api/drivers`` and ``/api/trips``.

    Usage::

        async with FleetApiClient(config) as client:
            trucks = await client.fetch_trucks()
    """

    def __init__(
        self,
        config: FleetConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 15.0,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def __aenter__(self) -> FleetApiClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            raise FleetError("Client not initialized. Use 'async with FleetApiClient(...) as client:'")
        return self._http_session

    async def _get_json(self, endpoint: str) -> Any:
        session = self._require_session()
        url = f"{self._config.api_base_url.rstrip('/')}{endpoint}"
        headers = {"accept": "application/json", "user-agent": _USER_AGENT}
        _logger.debug("GET %s", url)

        try:
            async with session.get(url, headers=headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise FleetTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except FleetTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise FleetTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise FleetTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

    async def _fetch_collection(self, endpoint: str, model: type[TModel]) -> list[TModel]:
        body = await self._get_json(endpoint)
        # Some controllers wrap lists as {"data": [...]}.
        if isinstance(body, dict) and isinstance(body.get("data"), list):
            body = body["data"]
        if not isinstance(body, list):
            raise FleetTransportError(
                f"Expected a list from {endpoint}, got {type(body).__name__}",
                endpoint=endpoint,
            )
        return parse_rows(model, body, source=endpoint)

    async def fetch_trucks(self) -> list[Truck]:
        return await self._fetch_collection("/api/trucks", Truck)

    async def fetch_drivers(self) -> list[Driver]:
        return await self._fetch_collection("/api/drivers", Driver)

    async def fetch_trips(self) -> list[Trip]:
        return await self._fetch_collection("/api/trips", Trip)
