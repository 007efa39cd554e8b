import threading
from dataclasses import dataclass, field

import pytest

from habstation.protocol import (
    PARAMETER_NAMES,
    HabdecMessage,
    ProtocolHandler,
    shrink_vector,
)
from habstation.settings import State
from habstation.transport import DEMOD_HEADER, SPECTRUM_HEADER, SpectrumInfo, TransportType


class FakeIQ:
    def __init__(self):
        self.options = {
            "frequency_double": 434349500.0,
            "ppm_double": 0.0,
            "gain_double": 15.0,
            "biastee_double": 0.0,
            "sampling_rate_double": 2000000.0,
        }

    def get_option(self, name):
        return self.options[name]

    def set_option(self, name, value):
        self.options[name] = value


@dataclass
class FakeDecoder:
    baud: float = 300.0
    rtty_bits: int = 8
    rtty_stops: float = 2.0
    lowpass_bw: float = 1500.0
    lowpass_trans: float = 0.025
    dc_remove: bool = False
    decimation_factor: int = 64
    spectrum: SpectrumInfo | None = None
    text: str = "$$$HAB"

    def spectrum_info(self):
        return self.spectrum

    def live_text(self):
        return self.text


@pytest.fixture
def parts():
    state = State()
    iq = FakeIQ()
    decoder = FakeDecoder()
    return state, iq, decoder, ProtocolHandler(state, iq, decoder)


def texts(messages):
    return [m.payload for m in messages]


def test_shrink_vector_picks_evenly_spaced():
    values = list(range(10))
    assert shrink_vector(values, 5) == [0, 2, 4, 6, 8]


def test_shrink_vector_keeps_short_input():
    values = [1.0, 2.0, 3.0]
    assert shrink_vector(values, 3) == values
    assert shrink_vector(values, 10) == values


def test_echo_frequency(parts):
    _, _, _, handler = parts
    messages = handler.echo_parameter("frequency")
    assert texts(messages) == ["cmd::set:frequency=434.3495"]
    assert messages[0].to_all_clients
    assert not messages[0].is_binary


def test_echo_all_in_order(parts):
    _, _, _, handler = parts
    messages = handler.echo_parameter("")
    assert len(messages) == len(PARAMETER_NAMES)
    for message, name in zip(messages, PARAMETER_NAMES):
        assert f":{name}=" in message.payload


def test_echo_unknown_is_empty(parts):
    _, _, _, handler = parts
    assert handler.echo_parameter("nothing") == []


def test_set_frequency(parts):
    state, iq, _, handler = parts
    messages = handler.handle_command("set:frequency=434.1")
    assert iq.options["frequency_double"] == pytest.approx(434.1e6)
    assert state.params.frequency == pytest.approx(434.1e6)
    assert texts(messages) == ["cmd::set:frequency=434.1"]


def test_set_decimation(parts):
    state, _, decoder, handler = parts
    messages = handler.handle_command("set:decimation=3")
    assert decoder.decimation_factor == 8
    assert state.params.decimation == 3
    assert texts(messages) == ["cmd::set:decimation=3"]


@pytest.mark.parametrize(
    "start, request_size, expected",
    [
        (TransportType.FLOAT, 3, TransportType.SHORT),
        (TransportType.SHORT, 3, TransportType.FLOAT),
        (TransportType.FLOAT, 7, TransportType.CHAR),
        (TransportType.CHAR, 2, TransportType.SHORT),
    ],
)
def test_set_datasize(parts, start, request_size, expected):
    state, _, _, handler = parts
    state.params.transport_data_type = start
    messages = handler.handle_command(f"set:datasize={request_size}")
    assert state.params.transport_data_type is expected
    assert texts(messages) == [f"cmd::set:datasize={expected.value}"]


def test_set_biastee_uses_last_digit(parts):
    state, iq, _, handler = parts
    handler.handle_command("set:biastee=10")
    assert iq.options["biastee_double"] == 0.0
    assert state.params.biast is False


def test_set_rtty_stops_takes_integer_part(parts):
    state, _, decoder, handler = parts
    handler.handle_command("set:rtty_stops=1.5")
    assert decoder.rtty_stops == 1
    assert state.params.rtty_ascii_stops == 1


def test_get_command_echoes(parts):
    _, _, _, handler = parts
    assert texts(handler.handle_command("get:baud")) == ["cmd::set:baud=300"]


def test_unknown_command(parts):
    _, _, _, handler = parts
    assert handler.handle_command("set:bogus=1") == []


def test_no_iq_source_ignores_commands():
    state = State()
    handler = ProtocolHandler(state, None, FakeDecoder())
    assert handler.handle_command("set:gain=20") == []
    assert state.params.gain == 15.0


def test_sentence_request(parts):
    state, _, _, handler = parts
    state.register_sentence(1, "first")
    state.register_sentence(5, "last")
    assert texts(handler.handle_request("cmd::sentence")) == ["cmd::info:sentence=last"]


def test_liveprint_request(parts):
    _, _, decoder, handler = parts
    assert texts(handler.handle_request("cmd::liveprint")) == [
        f"cmd::info:liveprint={decoder.text}"
    ]


def test_stats_request(parts):
    _, _, _, handler = parts
    (message,) = handler.handle_request("cmd::stats")
    assert message.payload.startswith("cmd::info:stats=ok:0,")
    assert ",min_elev:90," in message.payload
    assert message.payload.endswith(",age:0")


def test_power_request(parts):
    state, _, decoder, handler = parts
    state.params.transport_data_type = TransportType.CHAR
    decoder.spectrum = SpectrumInfo(values=[float(i) for i in range(100)], peak_left=40,
                                    peak_right=60, peak_left_valid=True, peak_right_valid=True)
    (message,) = handler.handle_request("cmd::power:res=50,zoom=0")
    assert message.is_binary
    assert message.payload[:4] == b"PWR_"
    header = SPECTRUM_HEADER.unpack(message.payload[4 : 4 + SPECTRUM_HEADER.size])
    assert header[-1] == 50
    assert header[-2] == 1
    assert len(message.payload) == 4 + SPECTRUM_HEADER.size + 50


def test_spectrum_peak_outside_zoom_is_invalid(parts):
    _, _, decoder, handler = parts
    decoder.spectrum = SpectrumInfo(values=[float(i) for i in range(100)], peak_left=0,
                                    peak_right=50, peak_left_valid=True, peak_right_valid=True)
    data = handler.spectrum_to_stream(0.5, 1000)
    header = SPECTRUM_HEADER.unpack(data[: SPECTRUM_HEADER.size])
    peak_left, peak_right, left_valid, right_valid = header[5:9]
    assert (peak_left, left_valid) == (0, 0)
    assert (peak_right, right_valid) == (25, 1)


def test_spectrum_missing(parts):
    _, _, _, handler = parts
    assert handler.spectrum_to_stream(0.5, 100) is None
    assert handler.handle_request("cmd::power:res=10,zoom=0.5") == []


def test_demod_request(parts):
    state, _, _, handler = parts
    assert handler.handle_request("cmd::demod:res=10") == []
    state.demod_accumulated.extend([-1.0, 0.5, 1.0, 0.0])
    (message,) = handler.handle_request("cmd::demod:res=10")
    assert message.payload[:4] == b"DEM_"
    header = DEMOD_HEADER.unpack(message.payload[4 : 4 + DEMOD_HEADER.size])
    assert header[1] == -1.0
    assert header[2] == 1.0
    assert header[4] == 4


def test_changed_params_echo_all(parts):
    state, _, _, handler = parts
    assert len(handler.handle_request("cmd::liveprint")) == 1
    messages = handler.handle_request("cmd::set:gain=20")
    assert texts(messages)[0] == "cmd::set:gain=20"
    assert len(messages) == 1 + len(PARAMETER_NAMES)
    assert len(handler.handle_request("cmd::liveprint")) == 1


def test_changed_params_tracked_per_thread(parts):
    state, _, _, handler = parts
    state.params.gain = 30.0
    assert len(handler.handle_request("cmd::liveprint")) == 1 + len(PARAMETER_NAMES)
    results = []
    worker = threading.Thread(target=lambda: results.append(handler.handle_request("cmd::liveprint")))
    worker.start()
    worker.join()
    assert len(results[0]) == 1 + len(PARAMETER_NAMES)


def test_message_defaults():
    message = HabdecMessage("x")
    assert (message.is_binary, message.to_all_clients) == (False, False)