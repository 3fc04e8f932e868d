"""Grove LCD RGB Backlight: HD44780-style text controller plus RGB backlight."""
from __future__ import annotations

import time
from typing import Any, Optional

from smbus2 import SMBus

from galga.config import defaults
from galga.hardware.base import validate_tint
from galga.logging_utils import get_logger

LOGGER = get_logger("lcd")

# Text controller
LCD_COMMAND = 0x80
LCD_DATA = 0x40
CMD_CLEAR = 0x01
CMD_ENTRY_MODE = 0x06  # increment, no shift
CMD_DISPLAY_ON = 0x0C  # display on, cursor off, blink off
CMD_FUNCTION_SET = 0x28  # 4-bit bus, 2 lines, 5x8 font
CMD_DDRAM = 0x80
ROW_OFFSETS = (0x00, 0x40)

# Backlight controller
REG_MODE1 = 0x00
REG_MODE2 = 0x01
REG_BLUE = 0x02
REG_GREEN = 0x03
REG_RED = 0x04
REG_OUTPUT = 0x08


class GroveRGBLcd:
    """Write-only 16x2 character display with a tintable backlight."""

    def __init__(
        self,
        *,
        bus_id: int = defaults.I2C_BUS,
        lcd_address: int = defaults.LCD_ADDRESS,
        rgb_address: int = defaults.RGB_ADDRESS,
        columns: int = defaults.DISPLAY_COLUMNS,
        rows: int = defaults.DISPLAY_ROWS,
        bus: Optional[Any] = None,
        settle: float = 0.05,
    ) -> None:
        self._bus = bus if bus is not None else SMBus(int(bus_id))
        self._lcd_address = int(lcd_address)
        self._rgb_address = int(rgb_address)
        self._columns = int(columns)
        self._rows = int(rows)
        self._settle = max(0.0, float(settle))
        self._initialize()

    def _initialize(self) -> None:
        if self._settle:
            time.sleep(self._settle)
        self._command(CMD_FUNCTION_SET)
        self._command(CMD_DISPLAY_ON)
        self.clear()
        self._command(CMD_ENTRY_MODE)

        self._rgb_register(REG_MODE1, 0x00)
        self._rgb_register(REG_OUTPUT, 0xFF)
        self._rgb_register(REG_MODE2, 0x20)
        self.set_rgb(0xFF, 0xFF, 0xFF)

    def _command(self, value: int) -> None:
        self._bus.write_byte_data(self._lcd_address, LCD_COMMAND, value & 0xFF)

    def _rgb_register(self, register: int, value: int) -> None:
        self._bus.write_byte_data(self._rgb_address, register, value & 0xFF)

    def clear(self) -> None:
        self._command(CMD_CLEAR)
        # clear needs ~1.5 ms on the HD44780
        time.sleep(0.002)

    def locate(self, column: int, row: int) -> None:
        row = min(max(int(row), 0), self._rows - 1)
        column = min(max(int(column), 0), self._columns - 1)
        self._command(CMD_DDRAM | (ROW_OFFSETS[row] + column))

    def print(self, text: str) -> None:
        payload = text.encode("ascii", errors="replace")
        for byte in payload[: self._columns]:
            self._bus.write_byte_data(self._lcd_address, LCD_DATA, byte)

    def set_rgb(self, red: int, green: int, blue: int) -> None:
        red, green, blue = validate_tint(red, green, blue)
        self._rgb_register(REG_RED, red)
        self._rgb_register(REG_GREEN, green)
        self._rgb_register(REG_BLUE, blue)

    def flush(self) -> None:
        """Nothing is buffered; every write already reached the controller."""

    def close(self) -> None:
        try:
            self._bus.close()
        except Exception as exc:  # pragma: no cover - best effort
            LOGGER.warning("Failed to close LCD bus: %s", exc)


__all__ = ["GroveRGBLcd"]
