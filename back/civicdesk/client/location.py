# Standard library imports
from collections.abc import Callable
from typing import Protocol

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field, ValidationError

# Local application imports
from civicdesk.client.errors import DeviceUnavailable, InvalidCoordinate
from civicdesk.core.monitoring.logging import get_logger
from civicdesk.utils.geo_utils import wrap_longitude

logger = get_logger(__name__)


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)


def make_coordinate(latitude: float, longitude: float) -> Coordinate:
    try:
        return Coordinate(latitude=latitude, longitude=longitude)
    except ValidationError as exc:
        raise InvalidCoordinate(f"({latitude}, {longitude}) is not a valid coordinate") from exc


class Geolocator(Protocol):
    async def current_position(self) -> tuple[float, float]: ...


class MapView(Protocol):
    def recenter(self, coordinate: Coordinate) -> None: ...


class LocationPicker:
    """
    Holds the report's selected coordinate.

    The device position and a manual map pick both feed the same selection.
    A manual pick made while a device lookup is still pending wins; the
    lookup's result is dropped when it arrives.
    """

    def __init__(
        self,
        geolocator: Geolocator | None = None,
        map_view: MapView | None = None,
        on_change: Callable[[Coordinate | None], None] | None = None,
        on_error: Callable[[DeviceUnavailable | InvalidCoordinate], None] | None = None,
    ):
        self.geolocator = geolocator
        self.map_view = map_view
        self.on_change = on_change
        self.on_error = on_error
        self.selection: Coordinate | None = None
        self._generation = 0

    async def use_device_location(self) -> Coordinate | None:
        """Select the device position; returns None when it cannot be obtained."""
        if self.geolocator is None:
            self._report_error(DeviceUnavailable("Geolocation is not supported on this device"))
            return None

        generation = self._generation
        try:
            latitude, longitude = await self.geolocator.current_position()
        except DeviceUnavailable as exc:
            self._report_error(exc)
            return None
        except Exception as exc:
            logger.info(f"Device location lookup failed: {exc!r}")
            self._report_error(DeviceUnavailable(f"Unable to get your location: {exc}"))
            return None

        if generation != self._generation:
            return self.selection

        try:
            coordinate = make_coordinate(latitude, longitude)
        except InvalidCoordinate as exc:
            self._report_error(exc)
            return None

        self._select(coordinate)
        if self.map_view is not None:
            self.map_view.recenter(coordinate)
        return coordinate

    def pick_on_map(self, latitude: float, longitude: float) -> Coordinate:
        # Map tiles repeat horizontally, so clicks can land outside [-180, 180]
        coordinate = make_coordinate(latitude, wrap_longitude(longitude))
        self._generation += 1
        self._select(coordinate)
        return coordinate

    def clear(self) -> None:
        self._generation += 1
        self._select(None)

    def _select(self, coordinate: Coordinate | None) -> None:
        self.selection = coordinate
        if self.on_change is not None:
            self.on_change(coordinate)

    def _report_error(self, error: DeviceUnavailable | InvalidCoordinate) -> None:
        if self.on_error is not None:
            self.on_error(error)
