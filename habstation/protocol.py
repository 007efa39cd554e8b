"""Request handling for the client protocol of the station server."""

from __future__ import annotations

import dataclasses
import logging
import math
import re
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from .settings import Params, State
from .transport import SpectrumInfo, TransportType, serialize_demodulation, serialize_spectrum

log = logging.getLogger(__name__)

_NUMBER = r"([+-]?([0-9]*[.])?[0-9]+)"

_SET_FREQUENCY = re.compile(rf"set:frequency={_NUMBER}")
_SET_DECIMATION = re.compile(r"set:decimation=(\d+)")
_SET_PPM = re.compile(rf"set:ppm={_NUMBER}")
_SET_GAIN = re.compile(rf"set:gain={_NUMBER}")
_SET_LOWPASS_BW = re.compile(rf"set:lowpass_bw={_NUMBER}")
_SET_LOWPASS_TRANS = re.compile(rf"set:lowpass_trans={_NUMBER}")
_SET_BAUD = re.compile(rf"set:baud={_NUMBER}")
_SET_RTTY_BITS = re.compile(r"set:rtty_bits=(\d+)")
_SET_RTTY_STOPS = re.compile(rf"set:rtty_stops={_NUMBER}")
_SET_DATASIZE = re.compile(r"set:datasize=(\d+)")
_SET_BIASTEE = re.compile(r"set:biastee=([0-9])+")
_SET_AFC = re.compile(r"set:afc=([0-9])+")
_SET_DC_REMOVE = re.compile(r"set:dc_remove=([0-9])+")

_POWER = re.compile(rf"cmd::power:res=(\d+),zoom={_NUMBER}")
_DEMOD = re.compile(r"cmd::demod:res=(\d+)")

_LEADING_INT = re.compile(r"\s*[+-]?\d+")

PARAMETER_NAMES = (
    "frequency",
    "ppm",
    "gain",
    "baud",
    "rtty_bits",
    "rtty_stops",
    "lowpass_bw",
    "lowpass_trans",
    "biastee",
    "afc",
    "decimation",
    "dc_remove",
    "datasize",
    "sampling_rate",
)


def _num(value: float | int | bool) -> str:
    """Format a number the way clients expect: 12 significant digits, bools as 0/1."""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    return format(float(value), ".12g")


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    if not match:
        raise ValueError(f"not an integer: {text!r}")
    return int(match.group())


@dataclass
class HabdecMessage:
    """One message for clients: text or binary, for one client or for all."""

    payload: str | bytes = ""
    is_binary: bool = False
    to_all_clients: bool = False


class IQSource(Protocol):
    """Receiver options the protocol reads and changes."""

    def get_option(self, name: str) -> float: ...

    def set_option(self, name: str, value: float) -> None: ...


class DecoderControl(Protocol):
    """Decoder settings and outputs the protocol reads and changes."""

    baud: float
    rtty_bits: int
    rtty_stops: float
    lowpass_bw: float
    lowpass_trans: float
    dc_remove: bool
    decimation_factor: int

    def spectrum_info(self) -> SpectrumInfo | None: ...

    def live_text(self) -> str: ...


def shrink_vector(values: Sequence[float], new_size: int) -> list[float]:
    """Pick ``new_size`` evenly spaced values; shorter inputs come back whole."""
    count = len(values)
    if new_size >= count:
        return list(values)
    return [values[int(i / new_size * count)] for i in range(new_size)]


class ProtocolHandler:
    """Answer client requests with lists of messages.

    Each thread remembers the parameters it last reported; when they have
    changed, every parameter is sent again after the response.
    """

    def __init__(self, state: State, iq_source: IQSource | None, decoder: DecoderControl) -> None:
        self.state = state
        self.iq_source = iq_source
        self.decoder = decoder
        self._seen = threading.local()

    @staticmethod
    def _broadcast(text: str) -> HabdecMessage:
        return HabdecMessage(text, to_all_clients=True)

    def echo_parameter(self, name: str = "") -> list[HabdecMessage]:
        """Report parameter ``name``, or all of them when ``name`` is empty."""
        params = self.state.params
        iq = self.iq_source
        decoder = self.decoder
        result: list[HabdecMessage] = []

        def wanted(parameter: str) -> bool:
            return name in ("", parameter)

        if wanted("frequency") and iq is not None:
            frequency = float(iq.get_option("frequency_double")) / 1e6
            result.append(self._broadcast(f"cmd::set:frequency={_num(frequency)}"))
        if wanted("ppm") and iq is not None:
            result.append(self._broadcast(f"cmd::set:ppm={_num(float(iq.get_option('ppm_double')))}"))
        if wanted("gain") and iq is not None:
            result.append(self._broadcast(f"cmd::set:gain={_num(float(iq.get_option('gain_double')))}"))
        if wanted("baud"):
            result.append(self._broadcast(f"cmd::set:baud={int(decoder.baud)}"))
        if wanted("rtty_bits"):
            result.append(self._broadcast(f"cmd::set:rtty_bits={int(decoder.rtty_bits)}"))
        if wanted("rtty_stops"):
            result.append(self._broadcast(f"cmd::set:rtty_stops={_num(float(decoder.rtty_stops))}"))
        if wanted("lowpass_bw"):
            result.append(self._broadcast(f"cmd::set:lowpass_bw={_num(float(decoder.lowpass_bw))}"))
        if wanted("lowpass_trans"):
            result.append(
                self._broadcast(f"cmd::set:lowpass_trans={_num(float(decoder.lowpass_trans))}")
            )
        if wanted("biastee") and iq is not None:
            biastee = float(iq.get_option("biastee_double"))
            result.append(self._broadcast(f"cmd::set:biastee={_num(biastee)}"))
        if wanted("afc"):
            result.append(self._broadcast(f"cmd::set:afc={_num(bool(params.afc))}"))
        if wanted("decimation"):
            factor = decoder.decimation_factor
            log_factor = int(math.log2(factor)) if factor > 0 else 0
            result.append(self._broadcast(f"cmd::set:decimation={log_factor}"))
        if wanted("dc_remove"):
            result.append(self._broadcast(f"cmd::set:dc_remove={_num(float(decoder.dc_remove))}"))
        if wanted("datasize"):
            result.append(self._broadcast(f"cmd::set:datasize={params.transport_data_type.value}"))
        if wanted("sampling_rate") and iq is not None:
            rate = float(iq.get_option("sampling_rate_double"))
            result.append(self._broadcast(f"cmd::info:sampling_rate={_num(rate)}"))
        return result

    def handle_command(self, command: str) -> list[HabdecMessage]:
        """Apply a ``get:`` or ``set:`` command and return the echoed parameters."""
        iq = self.iq_source
        if iq is None:
            return []
        params = self.state.params
        decoder = self.decoder

        if len(command) > 4 and command.startswith("get:"):
            return self.echo_parameter(command[4:])

        if match := _SET_FREQUENCY.fullmatch(command):
            frequency = float(match.group(1)) * 1e6
            iq.set_option("frequency_double", frequency)
            params.frequency = frequency
            return self.echo_parameter("frequency")
        if match := _SET_DECIMATION.fullmatch(command):
            exponent = int(match.group(1))
            decoder.decimation_factor = 2**exponent
            params.decimation = exponent
            return self.echo_parameter("decimation")
        if match := _SET_PPM.fullmatch(command):
            ppm = float(match.group(1))
            iq.set_option("ppm_double", ppm)
            params.ppm = ppm
            return self.echo_parameter("ppm")
        if match := _SET_GAIN.fullmatch(command):
            gain = float(match.group(1))
            iq.set_option("gain_double", gain)
            params.gain = gain
            return self.echo_parameter("gain")
        if match := _SET_LOWPASS_BW.fullmatch(command):
            bandwidth = float(match.group(1))
            decoder.lowpass_bw = bandwidth
            params.lowpass_bw_hz = bandwidth
            return self.echo_parameter("lowpass_bw")
        if match := _SET_LOWPASS_TRANS.fullmatch(command):
            transition = float(match.group(1))
            decoder.lowpass_trans = transition
            params.lowpass_tr = transition
            return self.echo_parameter("lowpass_trans")
        if match := _SET_BAUD.fullmatch(command):
            baud = float(match.group(1))
            decoder.baud = baud
            params.baud = baud
            return self.echo_parameter("baud")
        if match := _SET_RTTY_BITS.fullmatch(command):
            bits = int(match.group(1))
            decoder.rtty_bits = bits
            params.rtty_ascii_bits = bits
            return self.echo_parameter("rtty_bits")
        if match := _SET_RTTY_STOPS.fullmatch(command):
            stops = _leading_int(match.group(1))
            decoder.rtty_stops = stops
            params.rtty_ascii_stops = stops
            return self.echo_parameter("rtty_stops")
        if match := _SET_DATASIZE.fullmatch(command):
            datasize = int(match.group(1))
            if datasize == 3:
                datasize = 4 if params.transport_data_type is TransportType.SHORT else 2
            if datasize not in (1, 2, 4):
                datasize = 1
            params.transport_data_type = TransportType(datasize)
            return self.echo_parameter("datasize")
        if match := _SET_BIASTEE.fullmatch(command):
            value = float(match.group(1))
            iq.set_option("biastee_double", value)
            params.biast = bool(value)
            return self.echo_parameter("biastee")
        if match := _SET_AFC.fullmatch(command):
            params.afc = bool(int(match.group(1)))
            return self.echo_parameter("afc")
        if match := _SET_DC_REMOVE.fullmatch(command):
            value = bool(int(match.group(1)))
            decoder.dc_remove = value
            params.dc_remove = value
            return self.echo_parameter("dc_remove")

        log.warning("Unknown command: %s", command)
        return []

    def spectrum_to_stream(self, zoom: float, resolution: int) -> bytes | None:
        """Serialise the central ``1 - zoom`` part of the spectrum in at most
        ``resolution`` bins. Returns None when there is no spectrum."""
        spectrum = self.decoder.spectrum_info()
        if spectrum is None or not len(spectrum):
            return None

        zoom = min(max(zoom, 0.01), 0.99)
        count = len(spectrum)
        begin = int(zoom / 2 * count)
        end = int((1.0 - zoom / 2) * count)
        values = list(spectrum.values[begin:end])
        if not values:
            return None

        peak_left = spectrum.peak_left - begin
        left_valid = spectrum.peak_left_valid
        if peak_left < 0 or peak_left > len(values):
            peak_left, left_valid = 0, False
        peak_right = spectrum.peak_right - begin
        right_valid = spectrum.peak_right_valid
        if peak_right < 0 or peak_right > len(values):
            peak_right, right_valid = 0, False

        if resolution < len(values):
            peak_left = int(peak_left * resolution / len(values))
            peak_right = int(peak_right * resolution / len(values))
            values = shrink_vector(values, resolution)
        if not values:
            return None

        trimmed = dataclasses.replace(
            spectrum,
            values=values,
            peak_left=peak_left,
            peak_right=peak_right,
            peak_left_valid=left_valid,
            peak_right_valid=right_valid,
        )
        return serialize_spectrum(trimmed, self.state.params.transport_data_type)

    def demod_to_stream(self, resolution: int) -> bytes | None:
        """Serialise the accumulated demodulated samples; None when there are none."""
        with self.state.demod_lock:
            samples = list(self.state.demod_accumulated)
        if not samples:
            return None
        samples = shrink_vector(samples, resolution)
        if not samples:
            return None
        return serialize_demodulation(samples, self.state.params.transport_data_type)

    def _stats_text(self) -> str:
        stats = self.state.stats
        params = self.state.params
        age = int(time.monotonic() - stats.last_sentence_timestamp)
        fields = [
            f"ok:{stats.num_ok}",
            f"dist_line:{_num(stats.distance.dist_line)}",
            f"dist_circ:{_num(stats.distance.dist_circle)}",
            f"max_dist:{_num(stats.dist_max)}",
            f"min_elev:{_num(stats.elev_min)}",
            f"lat:{_num(float(params.station_lat))}",
            f"lon:{_num(float(params.station_lon))}",
            f"alt:{_num(float(params.station_alt))}",
            f"age:{age}",
        ]
        return "cmd::info:stats=" + ",".join(fields)

    def handle_request(self, request: str) -> list[HabdecMessage]:
        """Answer one client request; appends all parameters when they changed."""
        result: list[HabdecMessage] = []

        if match := _POWER.fullmatch(request):
            data = self.spectrum_to_stream(float(match.group(2)), int(match.group(1)))
            if data:
                result.append(HabdecMessage(b"PWR_" + data, is_binary=True))
        elif match := _DEMOD.fullmatch(request):
            data = self.demod_to_stream(int(match.group(1)))
            if data:
                result.append(HabdecMessage(b"DEM_" + data, is_binary=True))
        elif request == "cmd::sentence":
            result.append(HabdecMessage(f"cmd::info:sentence={self.state.latest_sentence()}"))
        elif request == "cmd::liveprint":
            result.append(HabdecMessage(f"cmd::info:liveprint={self.decoder.live_text()}"))
        elif request == "cmd::stats":
            result.append(HabdecMessage(self._stats_text()))
        elif len(request) > 5 and request.startswith("cmd::"):
            log.info("Command %s", request)
            result.extend(self.handle_command(request[5:]))

        seen: Params = getattr(self._seen, "params", None) or Params()
        if seen != self.state.params and self.iq_source is not None:
            result.extend(self.echo_parameter(""))
            seen = dataclasses.replace(self.state.params)
        self._seen.params = seen
        return result