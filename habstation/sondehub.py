"""Queueing and uploading of telemetry to the SondeHub amateur API."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

import requests

from .clock import utc_now_iso

log = logging.getLogger(__name__)


@dataclass
class MinTelemetry:
    """Minimal telemetry of one decoded sentence."""

    payload_callsign: str = ""
    time_received: str = ""
    datetime: str = ""
    frame: int = 0
    lat: float = 0.0
    lon: float = 0.0
    alt: float = 0.0


class SondeHubUploader:
    """Collect telemetry and upload it in batches.

    Without an endpoint or an uploader callsign the uploader does nothing.
    """

    SOFTWARE_NAME = "habstation"
    TIMEOUT_S = 30.0

    def __init__(self, api_endpoint: str, uploader_callsign: str,
                 software_version: str = "") -> None:
        self.api_endpoint = api_endpoint
        self.uploader_callsign = uploader_callsign
        self.software_version = software_version[:7]
        self._queue: list[MinTelemetry] = []
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.api_endpoint and self.uploader_callsign)

    def push(self, telemetry: MinTelemetry) -> None:
        """Queue one telemetry record for the next upload."""
        if not self.enabled:
            return
        with self._lock:
            self._queue.append(telemetry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def build_payload(self, telemetry: Iterable[MinTelemetry], upload_time: str) -> str:
        """Return the JSON array sent to SondeHub for ``telemetry``."""
        records = [
            {
                "uploader_callsign": self.uploader_callsign,
                "software_name": self.SOFTWARE_NAME,
                "software_version": self.software_version,
                "time_received": t.time_received,
                "upload_time": upload_time,
                "payload_callsign": t.payload_callsign,
                "datetime": t.datetime,
                "frame": t.frame,
                "lat": t.lat,
                "lon": t.lon,
                "alt": int(t.alt),
            }
            for t in telemetry
        ]
        return json.dumps(records, sort_keys=True, separators=(",", ":"))

    def upload(self) -> int | None:
        """Send all queued telemetry.

        Returns the HTTP status code, 0 if the request could not be made,
        or None when there was nothing to send.
        """
        if not self.enabled:
            return None
        with self._lock:
            batch, self._queue = self._queue, []
        if not batch:
            return None

        payload = self.build_payload(batch, utc_now_iso())
        try:
            response = requests.put(
                self.api_endpoint,
                data=payload,
                headers={"User-Agent": self.SOFTWARE_NAME, "Content-Type": "application/json"},
                timeout=self.TIMEOUT_S,
            )
        except requests.RequestException as exc:
            log.error("sondehub upload error: %s", exc)
            return 0

        if response.status_code != 200:
            log.error(
                "sondehub upload error:\n%s\n%s\n%s",
                response.status_code,
                response.headers.get("content-type", ""),
                response.text,
            )
        return response.status_code