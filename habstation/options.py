"""Command line and config file options of the station server."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .settings import Params

log = logging.getLogger(__name__)

SONDEHUB_DEFAULT = "https://api.v2.sondehub.org"

_PORT_RE = re.compile(r"([\w.]*)(:?)(\d*)")
_LEADING_INT = re.compile(r"\s*[+-]?\d+")

_TRUE = {"", "on", "yes", "1", "true"}
_FALSE = {"off", "no", "0", "false"}


class OptionsError(ValueError):
    """Invalid option or option value."""


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"invalid boolean value: {text!r}")


_parse_bool.__name__ = "bool"


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    if not match:
        raise OptionsError(f"not a port number: {text!r}")
    return int(match.group())


def parse_port(text: str) -> tuple[str | None, int | None]:
    """Split ``[host][:port]`` into (host, port); missing parts are None.

    A value of only digits is a port. Raises OptionsError when a lone
    value is not a number.
    """
    match = _PORT_RE.fullmatch(text)
    if not match:
        return None, None
    host, colon, port = match.groups()
    if not colon and not port:
        return None, _leading_int(host)
    return host or None, int(port) if port else None


@dataclass(frozen=True)
class _Option:
    name: str
    convert: Callable[[str], Any]
    help: str
    multi: bool = False


_OPTIONS = [
    _Option("device", int, "SDR device number. -1 to list"),
    _Option("sampling_rate", float, "Sampling rate, as supported by the device"),
    _Option("no_exit", _parse_bool, "Constantly retry on missing device instead of exit."),
    _Option("port", str, "Command port, example: --port 127.0.0.1:5555"),
    _Option("station", str, "Station callsign. Omitting it disables the upload."),
    _Option("latlon", float, "Station GPS location (decimal)", multi=True),
    _Option("alt", float, "Station altitude in metres"),
    _Option("freq", float, "Frequency in MHz"),
    _Option("ppm", float, "Frequency correction in PPM"),
    _Option("gain", int, "Gain"),
    _Option("print", _parse_bool, "Live print received chars, values: 0, 1"),
    _Option("rtty", float, "rtty: baud bits stops, example: --rtty 300 8 2", multi=True),
    _Option("biast", _parse_bool, "Bias tee, values: 0, 1"),
    _Option("bias_t", _parse_bool, "Bias tee, values: 0, 1"),
    _Option("afc", _parse_bool, "Auto frequency correction, values: 0, 1"),
    _Option("usb_pack", _parse_bool, "AirSpy USB bit packing"),
    _Option("dc_remove", _parse_bool, "DC remove"),
    _Option("dec", int, "Decimation: 2^dec, range: 0-8"),
    _Option("lowpass", float, "Lowpass bandwidth in Hertz"),
    _Option("lp_trans", float, "Lowpass transition width (0-1)"),
    _Option("sentence_cmd", str, "Call external command with sentence as parameter"),
    _Option("ssdv_dir", str, "SSDV directory (default: .)"),
    _Option("sondehub", str, f"SondeHub API url (default: {SONDEHUB_DEFAULT})"),
    _Option("iqfile", str, "IQ file and its sampling rate", multi=True),
]
_BY_NAME = {option.name: option for option in _OPTIONS}


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise OptionsError(message)


def build_parser() -> argparse.ArgumentParser:
    """Return the command line parser; unset options come back as None."""
    parser = _Parser(description="Command Line Interface options", allow_abbrev=False)
    for option in _OPTIONS:
        parser.add_argument(
            f"--{option.name}",
            dest=option.name,
            type=option.convert,
            nargs="+" if option.multi else None,
            default=None,
            help=option.help,
        )
    parser.add_argument(
        "--config",
        dest="config",
        default=None,
        help="Last run config file. Autosaved on every successful decode.",
    )
    return parser


def _read_config(path: str) -> dict[str, Any]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError:
        log.warning("Can not open config file: %s", path)
        return {}
    log.info("Reading config from file %s", path)

    raw: dict[str, list[str]] = {}
    prefix = ""
    for number, line in enumerate(text.splitlines(), start=1):
        line = line.split("#", 1)[0].strip()
        if not line:
            continue
        if line.startswith("[") and line.endswith("]"):
            prefix = line[1:-1].strip() + "."
            continue
        if "=" not in line:
            raise OptionsError(f"invalid line {number} in {path}: {line!r}")
        name, value = (part.strip() for part in line.split("=", 1))
        raw.setdefault(prefix + name, []).append(value)

    values: dict[str, Any] = {}
    for name, texts in raw.items():
        option = _BY_NAME.get(name)
        if option is None:
            continue
        try:
            if option.multi:
                values[name] = [option.convert(t) for t in texts]
            elif len(texts) > 1:
                raise OptionsError(f"option '{name}' cannot be specified more than once")
            else:
                values[name] = option.convert(texts[0])
        except ValueError as exc:
            if isinstance(exc, OptionsError):
                raise
            raise OptionsError(f"invalid value for '{name}' in {path}: {exc}") from exc
    return values


def _apply(values: dict[str, Any], params: Params) -> None:
    if "device" in values:
        params.device = values["device"]
    if "sampling_rate" in values:
        params.sampling_rate = values["sampling_rate"]
    if "port" in values:
        host, port = parse_port(values["port"])
        if host is not None:
            params.command_host = host
        if port is not None:
            params.command_port = port
    if "station" in values:
        params.station_callsign = values["station"]
    if "sentence_cmd" in values:
        params.sentence_cmd = values["sentence_cmd"]
    if "freq" in values:
        params.frequency = values["freq"] * 1e6
    if "ppm" in values:
        params.ppm = values["ppm"]
    if "gain" in values:
        params.gain = values["gain"]
    if "print" in values:
        params.live_print = values["print"]
    if "no_exit" in values:
        params.no_exit = values["no_exit"]
    if "biast" in values:
        params.biast = values["biast"]
    if "bias_t" in values:
        params.biast = values["bias_t"]
    if "afc" in values:
        params.afc = values["afc"]
    if "usb_pack" in values:
        params.usb_pack = values["usb_pack"]
    if "dc_remove" in values:
        params.dc_remove = values["dc_remove"]
    if "lowpass" in values:
        params.lowpass_bw_hz = values["lowpass"]
    if "lp_trans" in values:
        params.lowpass_tr = values["lp_trans"]
    if "dec" in values:
        params.decimation = max(0, values["dec"])
    if "rtty" in values:
        baud_bits_stops = values["rtty"]
        if len(baud_bits_stops) != 3:
            raise OptionsError("--rtty option needs 3 args: baud ascii-bits stop-bits")
        baud, bits, stops = baud_bits_stops
        if stops not in (1, 2):
            raise OptionsError("Only 1 or 2 stop bits are supported.")
        if bits not in (7, 8):
            raise OptionsError("ASCII Bits must be 7 or 8")
        params.baud = baud
        params.rtty_ascii_bits = int(bits)
        params.rtty_ascii_stops = stops
    if "latlon" in values:
        latlon = values["latlon"]
        if len(latlon) != 2:
            raise OptionsError("--latlon option needs 2 args")
        params.station_lat, params.station_lon = latlon
    if "alt" in values:
        params.station_alt = values["alt"]
    if "ssdv_dir" in values:
        params.ssdv_dir = values["ssdv_dir"]
    if "sondehub" in values:
        params.sondehub = values["sondehub"]
    if "iqfile" in values:
        file_and_rate = values["iqfile"]
        if len(file_and_rate) != 2:
            raise OptionsError("--iqfile option needs 2 args")
        try:
            rate = float(file_and_rate[1])
        except ValueError as exc:
            raise OptionsError(f"invalid IQ file sampling rate: {file_and_rate[1]!r}") from exc
        params.iqfile = file_and_rate[0]
        params.iqfile_sampling_rate = rate


def parse_options(argv: Sequence[str] | None = None, params: Params | None = None) -> Params:
    """Read the command line and an optional ``--config`` file into ``params``.

    Command line values win over the config file. Unknown options are
    ignored. ``--help`` prints the usage and exits; invalid values raise
    OptionsError.
    """
    params = Params() if params is None else params
    argv = sys.argv[1:] if argv is None else list(argv)

    namespace, _unknown = build_parser().parse_known_args(argv)
    values = {name: value for name, value in vars(namespace).items() if value is not None}

    config = values.pop("config", "")
    if config:
        for name, value in _read_config(config).items():
            values.setdefault(name, value)

    values.setdefault("sampling_rate", params.sampling_rate)
    values.setdefault("ssdv_dir", params.ssdv_dir)
    values.setdefault("sondehub", SONDEHUB_DEFAULT)

    _apply(values, params)
    return params