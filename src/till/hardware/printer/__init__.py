"""Print backends for TILL."""

import logging
import sys
from typing import Optional

from till.config.settings import PrinterSettings
from till.hardware.base import PrintBackend, PrinterDescriptor
from till.hardware.printer.cups import LinePrinterBackend
from till.hardware.printer.mock import MockBackend, MockJob
from till.hardware.printer.win32 import Win32RawBackend

logger = logging.getLogger(__name__)

__all__ = [
    "PrintBackend",
    "PrinterDescriptor",
    "Win32RawBackend",
    "LinePrinterBackend",
    "MockBackend",
    "MockJob",
    "create_backend",
]


def create_backend(
    kind: Optional[str] = None,
    settings: Optional[PrinterSettings] = None,
) -> PrintBackend:
    """Factory function to create the print backend for this platform.

    Args:
        kind: auto, win32, cups or mock; defaults to settings.backend

    Returns:
        PrintBackend instance
    """
    settings = settings or PrinterSettings()
    kind = kind or settings.backend

    if kind == "auto":
        kind = "win32" if sys.platform == "win32" else "cups"

    if kind == "win32":
        backend: PrintBackend = Win32RawBackend()
    elif kind == "cups":
        backend = LinePrinterBackend(
            timeout=settings.command_timeout,
            honor_printer_name=settings.lp_honor_printer_name,
        )
    elif kind == "mock":
        backend = MockBackend()
    else:
        raise ValueError(f"Unknown print backend: {kind}")

    logger.info(f"Using {backend.name} print backend")
    return backend
