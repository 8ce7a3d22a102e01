"""Address geocoding backed by the Nominatim (OpenStreetMap) search API."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import Address, AddressWithCoordinates, Coordinate
from ..routing.errors import GeocodeMiss
from .cache import GeocodeCache

logger = logging.getLogger(__name__)


class NominatimClient:
    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.nominatim_base_url).rstrip("/")
        self.user_agent = user_agent or settings.nominatim_user_agent
        self.timeout = timeout if timeout is not None else settings.geocode_timeout_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout),
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    def search(self, query: str) -> list[dict]:
        """Return at most one search hit for ``query``.

        Raises ``httpx.HTTPError`` on transport or status failures and
        ``ValueError`` when the body is not a JSON list.
        """
        params = {"q": query, "format": "json", "limit": "1"}
        with self._get_client() as client:
            response = client.get(f"{self.base_url}/search", params=params)
            response.raise_for_status()
            data = response.json()
        if not isinstance(data, list):
            raise ValueError(f"Unexpected Nominatim response type: {type(data).__name__}")
        return data


class Geocoder:
    """Resolves free-text addresses to coordinates, caching every success."""

    def __init__(self, client: NominatimClient | None = None, cache: GeocodeCache | None = None) -> None:
        self.client = client or NominatimClient()
        self.cache = cache if cache is not None else GeocodeCache()

    def geocode(self, address: str) -> Coordinate | None:
        cached = self.cache.get(address)
        if cached is not None:
            logger.debug(f"Using cached coordinates for: {address}")
            return cached

        try:
            results = self.client.search(address)
            if not results:
                logger.warning(f"No geocoding results found for: {address}")
                return None
            # Nominatim returns lat/lon as strings
            coordinate = Coordinate(lat=float(results[0]["lat"]), lng=float(results[0]["lon"]))
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.error(f"Error geocoding address '{address}': {exc}")
            return None

        self.cache.put(address, coordinate)
        logger.info(f"Geocoded '{address}' to ({coordinate.lat:.6f}, {coordinate.lng:.6f})")
        return coordinate

    def geocode_addresses(
        self,
        addresses: Sequence[Address],
        known_positions: Sequence[Coordinate | None] | None = None,
    ) -> tuple[list[AddressWithCoordinates], list[GeocodeMiss]]:
        """Geocode every address, keeping input order.

        ``known_positions`` runs parallel to ``addresses`` and holds the
        coordinate the caller already has for each one, or ``None``. Those
        addresses skip the lookup. Matching is by position because ids may
        repeat.
        """
        if known_positions is None:
            known_positions = [None] * len(addresses)
        elif len(known_positions) != len(addresses):
            raise ValueError("known_positions must have one entry per address")
        geocoded: list[AddressWithCoordinates] = []
        misses: list[GeocodeMiss] = []
        for address, coordinate in zip(addresses, known_positions):
            if coordinate is None:
                coordinate = self.geocode(address.full_address)
            if coordinate is None:
                misses.append(GeocodeMiss(address_id=address.address_id, full_address=address.full_address))
                continue
            geocoded.append(AddressWithCoordinates.from_address(address, coordinate))
        if misses:
            logger.warning(f"{len(misses)}/{len(addresses)} addresses could not be geocoded")
        return geocoded, misses


def check_health(client: NominatimClient | None = None) -> bool:
    """Check that Nominatim answers a known query with at least one hit."""
    client = client or NominatimClient(timeout=5.0)
    try:
        return bool(client.search("San Francisco, CA"))
    except (httpx.HTTPError, ValueError) as exc:
        logger.info(f"Nominatim health check failed: {exc}")
        return False
