"""Map rendering collaborator.

The renderer receives finished ``(location, caption)`` pairs, geocodes
the location and moves a single map view and marker to it.  Failures
are logged here and never propagate back into the stream handling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, NamedTuple

import httpx

from mapexplorer.config import DEFAULT_GEOCODER_URL, DEFAULT_USER_AGENT
from mapexplorer.instrumentation import geocode_span, record_error
from mapexplorer.places import Place

logger = logging.getLogger(__name__)

TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILE_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">'
    "OpenStreetMap</a> contributors"
)


class Coordinates(NamedTuple):
    lat: float
    lon: float


@dataclass
class Marker:
    position: Coordinates

    def set_position(self, position: Coordinates) -> None:
        self.position = position


@dataclass
class MapView:
    """World view that is created once and then updated in place."""

    center: Coordinates = Coordinates(20.0, 0.0)
    zoom: int = 2
    marker: Marker | None = None
    tile_url: str = TILE_URL
    attribution: str = TILE_ATTRIBUTION
    history: list[Coordinates] = field(default_factory=list)

    def fly_to(self, coordinates: Coordinates, zoom: int) -> None:
        self.center = coordinates
        self.zoom = zoom
        self.history.append(coordinates)

    def place_marker(self, coordinates: Coordinates) -> Marker:
        if self.marker is None:
            self.marker = Marker(coordinates)
        else:
            self.marker.set_position(coordinates)
        return self.marker


class NominatimGeocoder:
    """Looks places up with the OpenStreetMap Nominatim search API.

    Args:
        url: Search endpoint.
        user_agent: Sent with every request; Nominatim rejects
            anonymous clients.
        timeout: Seconds before a lookup is abandoned.
        client: Optional shared ``httpx.AsyncClient``.  When omitted a
            client is opened per lookup.
    """

    def __init__(
        self,
        url: str = DEFAULT_GEOCODER_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout
        self.client = client

    async def geocode(self, location: str) -> Coordinates | None:
        """Return the best match for *location*, or ``None``.

        Raises:
            httpx.HTTPError: On network failure or a non-2xx status.
            ValueError: If the response body is not a usable result.
        """
        if self.client is not None:
            return await self._lookup(self.client, location)
        timeout = httpx.Timeout(self.timeout, connect=5.0)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await self._lookup(client, location)

    async def _lookup(
        self, client: httpx.AsyncClient, location: str
    ) -> Coordinates | None:
        r = await client.get(
            self.url,
            params={"q": location, "format": "json", "limit": 1},
            headers={"User-Agent": self.user_agent},
        )
        r.raise_for_status()
        results = r.json()
        if not results:
            return None
        try:
            first = results[0]
            return Coordinates(float(first["lat"]), float(first["lon"]))
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Unexpected geocoder response: {e}") from e


class Renderer:
    """Receives completed places and failure notices."""

    async def render(self, place: Place, still_current=None):
        pass

    def show_caption(self, text: str) -> None:
        pass

    def hide_caption(self) -> None:
        pass


class MapRenderer(Renderer):
    """Renders places onto a :class:`MapView` via a geocoder.

    The map view is created on first use and reused afterwards; so is
    the marker.
    """

    def __init__(
        self,
        geocoder: NominatimGeocoder | None = None,
        fly_to_zoom: int = 10,
    ):
        self.geocoder = geocoder or NominatimGeocoder()
        self.fly_to_zoom = fly_to_zoom
        self.map: MapView | None = None
        self.caption: str | None = None
        self.caption_hidden = True

    def ensure_map(self) -> MapView:
        if self.map is None:
            self.map = MapView()
        return self.map

    def show_caption(self, text: str) -> None:
        self.caption = text
        self.caption_hidden = False

    def hide_caption(self) -> None:
        self.caption_hidden = True

    async def render(
        self, place: Place, still_current: Callable[[], bool] | None = None
    ) -> Coordinates | None:
        """Show *place*, unless *still_current* turns false meanwhile.

        *still_current* is consulted after the geocoder returns; once it
        reports the request as superseded neither the map nor the
        caption is touched.
        """
        coordinates = await self.render_map(place.location, still_current)
        if not _is_current(still_current):
            return None
        self.show_caption(place.caption)
        return coordinates

    async def render_map(
        self, location: str, still_current: Callable[[], bool] | None = None
    ) -> Coordinates | None:
        """Fly the map to *location*; ``None`` if it could not be shown."""
        view = self.ensure_map()
        if not location:
            return None

        async with geocode_span(location) as span:
            try:
                coordinates = await self.geocoder.geocode(location)
            except (httpx.HTTPError, ValueError) as e:
                record_error(span, e)
                logger.error(f"Error during map rendering: {e}")
                return None

        if not _is_current(still_current):
            logger.debug(f"Discarding stale geocode result for {location}")
            return None
        if coordinates is None:
            logger.warning(f"Location not found: {location}")
            return None

        view.fly_to(coordinates, self.fly_to_zoom)
        view.place_marker(coordinates)
        logger.info(f"Rendered {location} at {coordinates}")
        return coordinates


def _is_current(still_current: Callable[[], bool] | None) -> bool:
    return still_current is None or still_current()
