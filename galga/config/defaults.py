"""Factory defaults for the weighing controller."""

# Alarm threshold and its automatic clear.
WEIGHT_LIMIT_G = 120.0
ALARM_TIMEOUT_S = 3.0

# Calibration.
REFERENCE_MASS_G = 100.0
SAMPLE_COUNT = 10

# Loop cadence. The pacing delay keeps the LCD readable.
DISPLAY_PACING_MS = 500
BLINK_HALF_PERIOD_MS = 200

# Analog front end (volt-equivalent full scale).
REFERENCE_VOLTAGE = 3.3

# Text panel geometry.
DISPLAY_COLUMNS = 16
DISPLAY_ROWS = 2

# BCM pin map.
RESET_PIN = 22
TARE_PIN = 27
STATUS_LED_PIN = 23
READY_LED_PIN = 24
ALARM_PIN = 25
HX711_DT_PIN = 5
HX711_SCK_PIN = 6
RESET_BOUNCE_MS = 200

# I2C bus devices.
I2C_BUS = 1
ADS1115_ADDRESS = 0x48
ADS1115_CHANNEL = 0
LCD_ADDRESS = 0x3E
RGB_ADDRESS = 0x62

SENSOR_BACKEND = "ads1115"

__all__ = [
    "WEIGHT_LIMIT_G",
    "ALARM_TIMEOUT_S",
    "REFERENCE_MASS_G",
    "SAMPLE_COUNT",
    "DISPLAY_PACING_MS",
    "BLINK_HALF_PERIOD_MS",
    "REFERENCE_VOLTAGE",
    "DISPLAY_COLUMNS",
    "DISPLAY_ROWS",
    "RESET_PIN",
    "TARE_PIN",
    "STATUS_LED_PIN",
    "READY_LED_PIN",
    "ALARM_PIN",
    "HX711_DT_PIN",
    "HX711_SCK_PIN",
    "RESET_BOUNCE_MS",
    "I2C_BUS",
    "ADS1115_ADDRESS",
    "ADS1115_CHANNEL",
    "LCD_ADDRESS",
    "RGB_ADDRESS",
    "SENSOR_BACKEND",
]
