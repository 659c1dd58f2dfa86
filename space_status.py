from __future__ import annotations

"""Fetching and formatting of the SpaceAPI status document."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List, Optional

import requests
from requests.exceptions import RequestException

from texts import TextResources

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 10.0


class StatusFetchError(RuntimeError):
    """The status document could not be retrieved."""


@dataclass(slots=True, frozen=True)
class SensorReading:
    location: str
    unit: str
    value: float


@dataclass(slots=True)
class StatusDocument:
    """Parsed status payload. Every field may be absent."""

    door_open: Optional[bool] = None
    temperature: List[SensorReading] = field(default_factory=list)
    humidity: List[SensorReading] = field(default_factory=list)
    carbondioxide: List[SensorReading] = field(default_factory=list)


def _parse_readings(raw: Any) -> List[SensorReading]:
    if not isinstance(raw, list):
        return []

    readings: List[SensorReading] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        location = item.get("location")
        unit = item.get("unit")
        value = item.get("value")
        # bool is an int subclass
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            logger.debug("Skipping sensor reading without numeric value: %r", item)
            continue
        if not isinstance(location, str) or not isinstance(unit, str):
            logger.debug("Skipping sensor reading without location/unit: %r", item)
            continue
        try:
            number = float(value)
        except OverflowError:
            logger.warning("Skipping sensor reading at %s: value out of float range", location)
            continue
        readings.append(SensorReading(location=location, unit=unit, value=number))
    return readings


def parse_status_document(payload: Any) -> StatusDocument:
    """Map a decoded JSON payload onto :class:`StatusDocument`."""

    if not isinstance(payload, Mapping):
        logger.warning("Status payload is not a JSON object: %s", type(payload).__name__)
        return StatusDocument()

    state = payload.get("state")
    door_open = None
    if isinstance(state, Mapping) and isinstance(state.get("open"), bool):
        door_open = state["open"]

    sensors = payload.get("sensors")
    if not isinstance(sensors, Mapping):
        sensors = {}

    return StatusDocument(
        door_open=door_open,
        temperature=_parse_readings(sensors.get("temperature")),
        humidity=_parse_readings(sensors.get("humidity")),
        carbondioxide=_parse_readings(sensors.get("carbondioxide")),
    )


def fetch_status(url: str, *, timeout: float = DEFAULT_HTTP_TIMEOUT) -> StatusDocument:
    """GET ``url`` and parse the body as a status document.

    Raises:
        StatusFetchError: on network or HTTP errors and on a non-JSON body.
    """

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except RequestException as exc:
        logger.error("Status request to %s failed: %s", url, exc)
        raise StatusFetchError(f"Status request failed: {exc}") from exc

    try:
        payload = response.json()
    except (ValueError, RecursionError) as exc:
        logger.error("Status response from %s is not valid JSON", url)
        raise StatusFetchError("Status response is not valid JSON") from exc

    return parse_status_document(payload)


def _find_reading(readings: List[SensorReading], location: str) -> Optional[SensorReading]:
    for reading in readings:
        if reading.location == location:
            return reading
    return None


def format_status(
    status: StatusDocument,
    location: str,
    texts: TextResources | None = None,
) -> str:
    """Render door, temperature, humidity and CO2 in that fixed order."""

    resources = texts if texts is not None else TextResources()

    if status.door_open is None:
        door = resources["door_unknown"]
    elif status.door_open:
        door = resources["door_open"]
    else:
        door = resources["door_closed"]
    segments = [resources.format("segment_template", label=resources["door_label"], value=door)]

    categories = (
        ("temperature_label", status.temperature, "{:.1f}"),
        ("humidity_label", status.humidity, "{:.0f}"),
        ("co2_label", status.carbondioxide, "{:.0f}"),
    )
    for label_key, readings, number_format in categories:
        reading = _find_reading(readings, location)
        if reading is None:
            continue
        value = number_format.format(reading.value) + reading.unit
        segments.append(
            resources.format("segment_template", label=resources[label_key], value=value)
        )

    return ", ".join(segments)
