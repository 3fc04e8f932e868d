import pytest

from galga.core.reset import ResetSignal
from galga.hardware import ads1115, gpio, lcd
from galga.hardware.ads1115 import ADS1115Sensor, build_config, raw_to_volts
from galga.hardware.base import ORANGE, SensorError, SensorReadTimeout
from galga.hardware.board import build_board
from galga.hardware.hx711 import HX711Sensor, counts_to_voltage
from galga.hardware.lcd import GroveRGBLcd
from galga.hardware.simulated import HISTORY_LIMIT, SimulatedBench
from galga.models.settings import Settings


class FakeBus:
    def __init__(self, conversion=(0x00, 0x00), failures=0) -> None:
        self.writes = []
        self.blocks = []
        self.conversion = list(conversion)
        self.failures = failures
        self.closed = False

    def write_byte_data(self, address, register, value) -> None:
        self.writes.append((address, register, value))

    def write_i2c_block_data(self, address, register, data) -> None:
        if self.failures:
            self.failures -= 1
            raise OSError(121, "Remote I/O error")
        self.blocks.append((address, register, list(data)))

    def read_i2c_block_data(self, address, register, length):
        return self.conversion[:length]

    def close(self) -> None:
        self.closed = True


class FakeGPIO:
    BCM = "BCM"
    IN = "IN"
    OUT = "OUT"
    HIGH = 1
    LOW = 0
    PUD_UP = "PUD_UP"
    PUD_DOWN = "PUD_DOWN"
    RISING = "RISING"

    def __init__(self) -> None:
        self.setups = {}
        self.levels = {}
        self.inputs = {}
        self.events = {}
        self.cleaned = []

    def setup(self, pin, mode, pull_up_down=None, initial=None) -> None:
        self.setups[pin] = (mode, pull_up_down)
        if initial is not None:
            self.levels[pin] = initial

    def output(self, pin, value) -> None:
        self.levels[pin] = value

    def input(self, pin):
        queued = self.inputs.get(pin, 0)
        if isinstance(queued, list):
            return queued.pop(0) if queued else 0
        return queued

    def add_event_detect(self, pin, edge, callback=None, bouncetime=None) -> None:
        self.events[pin] = (edge, callback, bouncetime)

    def remove_event_detect(self, pin) -> None:
        self.events.pop(pin, None)

    def cleanup(self, pins=None) -> None:
        self.cleaned.append(pins)


@pytest.fixture
def fake_gpio(monkeypatch) -> FakeGPIO:
    fake = FakeGPIO()
    monkeypatch.setattr(gpio, "_GPIO", fake)
    return fake


def _lcd(bus: FakeBus) -> GroveRGBLcd:
    return GroveRGBLcd(bus_id=1, bus=bus, settle=0)


def test_lcd_initialisation_sequence() -> None:
    bus = FakeBus()
    _lcd(bus)
    assert bus.writes == [
        (0x3E, 0x80, 0x28),
        (0x3E, 0x80, 0x0C),
        (0x3E, 0x80, 0x01),
        (0x3E, 0x80, 0x06),
        (0x62, 0x00, 0x00),
        (0x62, 0x08, 0xFF),
        (0x62, 0x01, 0x20),
        (0x62, 0x04, 0xFF),
        (0x62, 0x03, 0xFF),
        (0x62, 0x02, 0xFF),
    ]


def test_lcd_cursor_text_and_tint() -> None:
    bus = FakeBus()
    display = _lcd(bus)
    bus.writes.clear()

    display.locate(3, 1)
    display.print("Hi")
    display.set_rgb(*ORANGE)

    assert bus.writes == [
        (0x3E, 0x80, 0xC3),
        (0x3E, 0x40, ord("H")),
        (0x3E, 0x40, ord("i")),
        (0x62, 0x04, 0xFF),
        (0x62, 0x03, 0xC3),
        (0x62, 0x02, 0x00),
    ]


def test_lcd_truncates_and_validates() -> None:
    bus = FakeBus()
    display = _lcd(bus)
    bus.writes.clear()

    display.print("x" * 20)
    assert len(bus.writes) == 16

    with pytest.raises(ValueError):
        display.set_rgb(256, 0, 0)

    display.close()
    assert bus.closed


def test_ads1115_config_and_conversion() -> None:
    assert build_config(0) == 0xC383
    assert build_config(3) == 0xF383
    with pytest.raises(ValueError):
        build_config(4)
    assert raw_to_volts(0x4000) == pytest.approx(2.048)
    assert raw_to_volts(0xFFFF) < 0


def test_ads1115_reads_and_clamps() -> None:
    bus = FakeBus(conversion=(0x1F, 0x40))
    sensor = ADS1115Sensor(bus=bus, conversion_delay=0)
    assert sensor.read_voltage() == pytest.approx(0x1F40 * 4.096 / 32768)
    assert bus.blocks == [(0x48, 0x01, [0xC3, 0x83])]

    bus.conversion = [0x7F, 0xFF]
    assert sensor.read_voltage() == pytest.approx(3.3)
    bus.conversion = [0x80, 0x00]
    assert sensor.read_voltage() == 0.0


def test_ads1115_retries_then_raises() -> None:
    bus = FakeBus(conversion=(0x10, 0x00), failures=1)
    sensor = ADS1115Sensor(bus=bus, conversion_delay=0, retries=1)
    assert sensor.read_voltage() == pytest.approx(0x1000 * 4.096 / 32768)

    bus.failures = 2
    with pytest.raises(SensorError):
        sensor.read_voltage()


def test_hx711_counts_map_onto_reference_range() -> None:
    assert counts_to_voltage(0) == pytest.approx(1.65)
    assert counts_to_voltage(-(1 << 23)) == 0.0
    assert counts_to_voltage((1 << 23) - 1) == pytest.approx(3.3, abs=1e-6)


def test_hx711_reads_signed_counts(fake_gpio) -> None:
    sensor = HX711Sensor(5, 6)
    assert fake_gpio.setups[5] == ("IN", "PUD_UP")
    assert fake_gpio.levels[6] is False

    bits = [int(b) for b in format(0xFFFFFE, "024b")]
    fake_gpio.inputs[5] = [0] + bits
    assert sensor.read_counts() == -2

    fake_gpio.inputs[5] = [0] + [1] + [0] * 23
    assert sensor.read_voltage() == 0.0


def test_hx711_times_out_when_never_ready(fake_gpio) -> None:
    fake_gpio.inputs[5] = 1
    sensor = HX711Sensor(5, 6, ready_timeout=0.01)
    with pytest.raises(SensorReadTimeout):
        sensor.read_voltage()


def test_gpio_pins_and_reset_edge(fake_gpio) -> None:
    out = gpio.GPIOOutput(23)
    assert fake_gpio.levels[23] == 0
    out.write(True)
    assert fake_gpio.levels[23] == 1

    button = gpio.GPIOInput(27)
    assert fake_gpio.setups[27] == ("IN", "PUD_DOWN")
    fake_gpio.inputs[27] = 1
    assert button.read() is True

    signal = ResetSignal()
    watch = gpio.RisingEdgeWatch(22, signal.request, bounce_ms=150)
    edge, callback, bouncetime = fake_gpio.events[22]
    assert (edge, bouncetime) == ("RISING", 150)
    callback(22)
    callback(22)
    assert signal.consume()
    assert signal.edge_count == 2

    watch.close()
    assert 22 not in fake_gpio.events


def test_build_board_wires_peripherals(fake_gpio, monkeypatch) -> None:
    buses = []

    def make_bus(bus_id):
        bus = FakeBus(conversion=(0x10, 0x00))
        buses.append(bus)
        return bus

    monkeypatch.setattr(ads1115, "SMBus", make_bus)
    monkeypatch.setattr(lcd, "SMBus", make_bus)
    signal = ResetSignal()

    board = build_board(Settings(), signal.request)
    assert board.sensor.read_voltage() == pytest.approx(0.512)
    assert 22 in fake_gpio.events

    board.panel.alarm.on()
    assert fake_gpio.levels[25] == 1

    board.close()
    assert 22 not in fake_gpio.events
    assert all(bus.closed for bus in buses)
    assert fake_gpio.cleaned[-1] is None


def test_build_board_propagates_missing_gpio(monkeypatch) -> None:
    def missing():
        raise ImportError("RPi.GPIO module not available")

    monkeypatch.setattr(gpio, "load_gpio", missing)
    with pytest.raises(ImportError):
        build_board(Settings(), ResetSignal().request)


def test_simulated_display_renders_whole_frames() -> None:
    rendered = []
    bench = SimulatedBench(on_render=lambda lines, tint: rendered.append((lines, tint)))

    bench.panel.show("Weight:", "50.000 g", ORANGE)
    bench.panel.show("Weight:", "50.000 g", ORANGE)
    bench.panel.show("Weight:", "51.000 g", ORANGE)

    assert rendered == [
        (("Weight:", "50.000 g"), ORANGE),
        (("Weight:", "51.000 g"), ORANGE),
    ]


def test_simulated_history_is_bounded() -> None:
    bench = SimulatedBench()
    for value in range(HISTORY_LIMIT * 2):
        bench.panel.alarm.toggle()
        bench.panel.show("Weight:", f"{value}.000 g")

    assert len(bench.alarm_pin.history) == HISTORY_LIMIT
    assert len(bench.display.frames) == HISTORY_LIMIT
    assert bench.display.frames[-1] == ("Weight:", f"{HISTORY_LIMIT * 2 - 1}.000 g")
