"""Run-time parameters, statistics and shared state of the receiving station."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from pathlib import Path

from .geo import GpsDistance
from .transport import TransportType

DEFAULT_OPTIONS_FILE = "./habdecWebsocketServer.opts"


def _g(value: float, precision: int = 6) -> str:
    return format(float(value), f".{precision}g")


@dataclass
class Params:
    """Station, receiver and decoder settings.

    Equality covers the settings clients see; the SSDV directory, the
    SondeHub URL and the IQ file are left out of the comparison.
    """

    device: int = 0
    command_host: str = "0.0.0.0"
    command_port: int = 5555
    station_callsign: str = ""
    station_lat: float = 0.0
    station_lon: float = 0.0
    station_alt: float = 0.0
    sampling_rate: float = 0.0
    decimation: int = 6
    frequency: float = 434349500.0
    gain: float = 15.0
    biast: bool = False
    baud: float = 300.0
    rtty_ascii_bits: int = 8
    rtty_ascii_stops: float = 2.0
    live_print: bool = True
    afc: bool = False
    ppm: float = 0.0
    usb_pack: bool = False
    dc_remove: bool = False
    lowpass_bw_hz: float = 1500.0
    lowpass_tr: float = 0.025
    no_exit: bool = False
    sentence_cmd: str = ""
    coord_format_lat: str = "dd.dddd"
    coord_format_lon: str = "dd.dddd"
    ssdv_dir: str = field(default=".", compare=False)
    test_parse_sentence: str = field(default="", compare=False)
    sondehub: str = field(default="https://api.v2.sondehub.org/", compare=False)
    iqfile: str = field(default="", compare=False)
    iqfile_sampling_rate: float = field(default=0.0, compare=False)
    transport_data_type: TransportType = TransportType.FLOAT

    def _config_lines(self) -> list[tuple[str, str]]:
        return [
            ("device", str(self.device)),
            ("sampling_rate", _g(self.sampling_rate)),
            ("port", f"{self.command_host}:{self.command_port}"),
            ("station", self.station_callsign),
            ("latlon", _g(self.station_lat)),
            ("latlon", _g(self.station_lon)),
            ("alt", _g(self.station_alt)),
            ("freq", _g(self.frequency / 1e6, 9)),
            ("dec", str(self.decimation)),
            ("ppm", _g(self.ppm, 9)),
            ("gain", _g(self.gain, 9)),
            ("biast", str(int(self.biast))),
            ("print", str(int(self.live_print))),
            ("rtty", _g(self.baud, 9)),
            ("rtty", str(self.rtty_ascii_bits)),
            ("rtty", _g(self.rtty_ascii_stops, 9)),
            ("afc", str(int(self.afc))),
            ("usb_pack", str(int(self.usb_pack))),
            ("dc_remove", str(int(self.dc_remove))),
            ("lowpass", _g(self.lowpass_bw_hz, 9)),
            ("lp_trans", _g(self.lowpass_tr, 9)),
            ("sentence_cmd", self.sentence_cmd),
            ("no_exit", str(int(self.no_exit))),
            ("sondehub", self.sondehub),
        ]

    def dump(self, path: str | Path = DEFAULT_OPTIONS_FILE) -> None:
        """Write the settings as a config file that the option parser reads back.

        Raises OSError when the file cannot be written.
        """
        text = "".join(f"{key} = {value}\n" for key, value in self._config_lines())
        Path(path).write_text(text, encoding="utf-8")

    def describe(self) -> str:
        """Return the current settings as indented ``name: value`` lines."""
        rows = [
            ("device", str(self.device)),
            ("sampling_rate", _g(self.sampling_rate)),
            ("decimation", str(self.decimation)),
            ("command_host", self.command_host),
            ("command_port", str(self.command_port)),
            ("sentence_cmd", self.sentence_cmd),
            ("station", self.station_callsign),
            ("latlon", f"{_g(self.station_lat)} {_g(self.station_lon)}"),
            ("alt", _g(self.station_alt)),
            ("freq", _g(self.frequency)),
            ("ppm", _g(self.ppm)),
            ("gain", _g(self.gain)),
            ("live_print", str(int(self.live_print))),
            ("baud", _g(self.baud)),
            ("rtty_ascii_bits", str(self.rtty_ascii_bits)),
            ("rtty_ascii_stops", _g(self.rtty_ascii_stops)),
            ("biast", str(int(self.biast))),
            ("usb_pack", str(int(self.usb_pack))),
            ("dc_remove", str(int(self.dc_remove))),
            ("lowpass", _g(self.lowpass_bw_hz)),
            ("lp_trans", _g(self.lowpass_tr)),
            ("no_exit", str(int(self.no_exit))),
            ("sondehub", self.sondehub),
        ]
        return "".join(f"\t{name}: {value}\n" for name, value in rows)


@dataclass
class Stats:
    """Decoding statistics: sentence count, distances and last reception time."""

    num_ok: int = 0
    distance: GpsDistance = field(default_factory=GpsDistance)
    dist_max: float = 0.0
    elev_min: float = 90.0
    last_sentence_timestamp: float = field(default_factory=time.monotonic)


@dataclass
class State:
    """State shared between the decoder, the uploader and the client sessions.

    ``options_path`` is where the settings are saved after each sentence;
    ``sentence_lock_timeout`` bounds the wait for the sentence store.
    """

    params: Params = field(default_factory=Params)
    stats: Stats = field(default_factory=Stats)
    sentences: dict[int, str] = field(default_factory=dict)
    demod_accumulated: list[float] = field(default_factory=list)
    options_path: str | Path = field(default=DEFAULT_OPTIONS_FILE, compare=False)
    sentence_lock_timeout: float = field(default=1.0, repr=False, compare=False)
    demod_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    _sentences_lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def register_sentence(self, frame: int, sentence: str) -> bool:
        """Store ``sentence`` under its frame number and update the count.

        Returns False if the sentence store stayed locked for
        ``sentence_lock_timeout`` seconds.
        """
        if not self._sentences_lock.acquire(timeout=self.sentence_lock_timeout):
            return False
        try:
            self.sentences[frame] = sentence
            self.stats.num_ok = len(self.sentences)
        finally:
            self._sentences_lock.release()
        return True

    def latest_sentence(self) -> str:
        """Return the sentence with the highest frame number, or an empty string."""
        with self._sentences_lock:
            if not self.sentences:
                return ""
            return self.sentences[max(self.sentences)]