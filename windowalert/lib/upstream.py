"""Client for the upstream "last measurement" API.

One form-encoded POST carries the account id and every external device id;
the JSON answer is validated against a strict schema where only the outdoor
temperature and humidity are optional.
"""

import asyncio
import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from windowalert.lib.config import UpstreamSettings, get_settings
from windowalert.lib.exceptions import NetworkError, ParseError, UpstreamFailure
from windowalert.logging import get_logger

logger = get_logger("lib.upstream")


class MeasurementSnapshot(BaseModel):
    """The latest reading of one device as reported upstream."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    timestamp: int = Field(alias="ts")
    temperature: float = Field(alias="t1")
    humidity: float = Field(alias="h")
    temperature_outside: float | None = Field(default=None, alias="t2")
    humidity_outside: float | None = Field(default=None, alias="h2")
    index: int | None = Field(default=None, alias="idx")
    low_battery: bool | None = Field(default=None, alias="lb")


class DeviceEntry(BaseModel):
    """One device block of the upstream response."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    external_id: str = Field(alias="deviceid")
    measurement: MeasurementSnapshot
    last_seen: int | None = Field(default=None, alias="lastseen")
    low_battery: bool | None = Field(default=None, alias="lowbattery")


class LastMeasurementResponse(BaseModel):
    """Top-level upstream response."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    success: bool
    devices: list[DeviceEntry] = []


def parse_response(body: bytes | str) -> list[DeviceEntry]:
    """Parse a raw upstream response body.

    Raises:
        ParseError: The body is not JSON or does not match the schema.
        UpstreamFailure: The body is valid but reports success=false.
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"Upstream response is not valid JSON: {e}") from e

    if isinstance(payload, dict) and payload.get("success") is False:
        raise UpstreamFailure()

    try:
        response = LastMeasurementResponse.model_validate(payload)
    except ValidationError as e:
        raise ParseError(f"Unexpected upstream response: {e}") from e

    if not response.success:
        raise UpstreamFailure()
    return response.devices


class Fetcher:
    """Fetches the latest measurement of every requested device."""

    def __init__(self, settings: UpstreamSettings | None = None) -> None:
        self._settings = settings or get_settings().upstream

    def _build_request(self, external_ids: Sequence[str]) -> urllib.request.Request:
        body = urllib.parse.urlencode(
            {
                "phoneid": self._settings.phone_id,
                "deviceids": ",".join(external_ids),
            }
        ).encode("utf-8")
        return urllib.request.Request(
            self._settings.url,
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            method="POST",
        )

    def _post(self, request: urllib.request.Request) -> bytes:
        try:
            with urllib.request.urlopen(
                request, timeout=self._settings.timeout_sec
            ) as resp:
                return resp.read()
        except urllib.error.HTTPError as e:
            raise NetworkError(f"Upstream returned status {e.code}") from e
        except (OSError, http.client.HTTPException) as e:
            raise NetworkError(f"Upstream request failed: {e}") from e

    async def fetch_latest(self, external_ids: Sequence[str]) -> list[DeviceEntry]:
        """Fetch the latest measurement for each external device id.

        Raises:
            NetworkError: Transport failure or non-success HTTP status.
            ParseError: Malformed payload.
            UpstreamFailure: The API reported the request as unsuccessful.
        """
        request = self._build_request(external_ids)
        body = await asyncio.to_thread(self._post, request)
        entries = parse_response(body)
        logger.debug(
            "Fetched %d entries for %d devices", len(entries), len(external_ids)
        )
        return entries
