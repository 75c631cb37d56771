"""Printer discovery for TILL.

Windows reports its default printer as a marked entry. CUPS (`lpstat -p`)
lists queues without any default marker, so on macOS and Linux every entry
has is_default=False and the default must come from `default_printer()`.
"""

import asyncio
import logging
from typing import Optional

from till.hardware.base import PrintBackend, PrinterDescriptor

logger = logging.getLogger(__name__)

PLACEHOLDER = PrinterDescriptor(name="Default Printer", is_default=True, status="available")


class PrinterDirectory:
    """Enumerates installed printers. Results are never cached."""

    def __init__(self, backend: PrintBackend):
        self._backend = backend

    def list_printers(self) -> list[PrinterDescriptor]:
        """Query the OS for printers, in OS order.

        Never raises and never returns an empty list: on any error, or when
        nothing is installed, a single placeholder entry is returned.
        """
        try:
            printers = self._backend.list_printers()
        except Exception as e:
            logger.error(f"Error discovering printers: {e}")
            return [PLACEHOLDER]

        if not printers:
            logger.info("No printers reported, offering the default placeholder")
            return [PLACEHOLDER]

        logger.info(f"Found {len(printers)} printers")
        return list(printers)

    async def list_printers_async(self) -> list[PrinterDescriptor]:
        """list_printers() in a worker thread."""
        return await asyncio.to_thread(self.list_printers)

    def default_printer(self) -> Optional[str]:
        """Best-effort name of the system default printer."""
        try:
            return self._backend.default_printer()
        except Exception as e:
            logger.error(f"Error getting default printer: {e}")
            return None

    def printer_status(self, printer_name: str) -> Optional[PrinterDescriptor]:
        """Current state of one printer, or None if it cannot be queried."""
        try:
            return self._backend.printer_status(printer_name)
        except Exception as e:
            logger.error(f"Error checking printer '{printer_name}': {e}")
            return None

    def test_connection(self, printer_name: str) -> bool:
        """True when the printer exists and is ready to accept jobs."""
        descriptor = self.printer_status(printer_name)
        ready = descriptor is not None and descriptor.is_ready
        logger.info(f"Printer '{printer_name}' connection test: {'ok' if ready else 'failed'}")
        return ready
