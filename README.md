# habstation

Building blocks for a high-altitude balloon (HAB) RTTY ground station: distance
and elevation to a balloon, batched telemetry upload to SondeHub, compact binary
frames of spectrum and demodulation data, a request protocol for browser
clients, and a websocket server that carries it.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `habstation.geo`: `calc_gps_distance(lat1, lon1, alt1, lat2, lon2, alt2)`
  returns a `GpsDistance` with the straight-line and great-circle distance in
  metres, the angular distance in radians, and the elevation and bearing in
  degrees.
- `habstation.clock`: `utc_now_iso(now=None)` formats a time as
  `YYYY-MM-DDTHH:MM:SS.ffffffZ` in UTC.
- `habstation.colors`: the `Color` enum of ANSI sequences and `paint(text, color, enabled=None)`,
  which colours text only on Linux unless told otherwise.
- `habstation.sondehub`: `MinTelemetry` records and `SondeHubUploader`, which
  queues them with `push()` and sends them as one JSON array with an HTTP PUT in
  `upload()`. Without an endpoint or uploader callsign it does nothing.
- `habstation.compressed`: `CompressedVector` reduces float samples to 8-bit,
  16-bit or 32-bit values normalised to their minimum and maximum.
- `habstation.transport`: `SpectrumInfo`, `TransportType`, and
  `serialize_spectrum()` / `serialize_demodulation()`, which build a little-endian
  header followed by the samples.
- `habstation.bitmap`: drawing of spectrum bars, demodulated samples and lines
  into raw greyscale or RGB `bytearray` bitmaps.
- `habstation.settings`: `Params` (station, receiver and decoder settings, with
  `dump()` to a config file and `describe()`), `Stats` and the shared `State`.
- `habstation.options`: `parse_options(argv, params)` reads command-line
  arguments and an optional `--config` file into `Params`; `parse_port()` splits
  `[host][:port]`.
- `habstation.protocol`: `ProtocolHandler` answers client requests such as
  `cmd::power:res=512,zoom=0.5`, `cmd::demod:res=256`, `cmd::sentence`,
  `cmd::liveprint`, `cmd::stats`, `cmd::get:frequency` and
  `cmd::set:frequency=434.2` with a list of `HabdecMessage` objects.
- `habstation.server`: `WebsocketServer` passes each client request to a handler
  and sends the replies to that client or, when marked so, to all clients.

## Example

```python
from habstation.geo import calc_gps_distance
from habstation.sondehub import MinTelemetry, SondeHubUploader

d = calc_gps_distance(52.0, 21.0, 100.0, 52.5, 21.25, 5000.0)
print(d.dist_line, d.elevation, d.bearing)

uploader = SondeHubUploader("https://api.v2.sondehub.org/amateur/telemetry", "MYCALL")
uploader.push(MinTelemetry(payload_callsign="MYBALLOON", frame=42,
                           datetime="2024-01-01T12:34:56Z",
                           lat=52.5, lon=21.25, alt=5000))
status = uploader.upload()
```

Serving the protocol to clients:

```python
from habstation.protocol import ProtocolHandler
from habstation.server import WebsocketServer
from habstation.settings import State

state = State()
handler = ProtocolHandler(state, iq_source, decoder)  # objects you supply
WebsocketServer("0.0.0.0", 5555, handler.handle_request).run()
```

`iq_source` must provide `get_option(name)` and `set_option(name, value)`;
`decoder` must provide the attributes and methods listed in
`habstation.protocol.DecoderControl`.

## What the package does not do

- It installs no command. There is no program that starts a station; you wire
  the parts together yourself.
- It does not talk to radio hardware and does not demodulate or decode RTTY.
  The receiver and decoder are the objects you pass to `ProtocolHandler`.
- It does not parse telemetry sentences. You fill `MinTelemetry` records
  yourself before pushing them to `SondeHubUploader`.