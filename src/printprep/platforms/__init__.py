"""Platform-specific printer backends."""

from .unix_driver import UnixPrinterDriver
from .win_driver import WindowsPrinterDriver

__all__ = [
    "UnixPrinterDriver",
    "WindowsPrinterDriver",
]
