from .settings import HardwarePins, Settings, Thresholds, load_settings

__all__ = ["HardwarePins", "Settings", "Thresholds", "load_settings"]
