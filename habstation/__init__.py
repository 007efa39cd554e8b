"""Ground station parts for balloon telemetry: geometry, SondeHub upload, transport frames and a websocket server."""

__version__ = "0.1.0"