"""Windows raw spooler backend for TILL.

Sends the ESC/POS stream to the print spooler as a RAW job, so the driver
passes control codes through untouched. Requires pywin32.

Job sequence:
- OpenPrinter (named or default printer)
- StartDocPrinter with datatype RAW
- StartPagePrinter / WritePrinter (whole buffer) / EndPagePrinter
- EndDocPrinter / ClosePrinter

A failure at any step aborts the job and reports the step that failed.
"""

import logging
from typing import Optional

from till.hardware.base import PrintBackend, PrinterDescriptor
from till.printing.errors import PrintError, PrintErrorKind
from till.printing.staging import StagedArtifact

logger = logging.getLogger(__name__)

# PRINTER_INFO_2 Status and Attributes bits (winspool.h)
STATUS_PAUSED = 0x00000001
STATUS_ERROR = 0x00000002
STATUS_PAPER_JAM = 0x00000008
STATUS_PAPER_OUT = 0x00000010
STATUS_OFFLINE = 0x00000080
STATUS_PRINTING = 0x00000400
STATUS_NOT_AVAILABLE = 0x00001000
ATTRIBUTE_WORK_OFFLINE = 0x00000400


def describe_status(status: int, attributes: int = 0) -> str:
    """Map spooler status bits to a directory status string."""
    if status & (STATUS_OFFLINE | STATUS_NOT_AVAILABLE) or attributes & ATTRIBUTE_WORK_OFFLINE:
        return "offline"
    if status & STATUS_PAUSED:
        return "disabled"
    if status & (STATUS_ERROR | STATUS_PAPER_JAM | STATUS_PAPER_OUT):
        return "error"
    if status & STATUS_PRINTING:
        return "printing"
    return "idle"


def _win32():
    """Import pywin32 modules, reporting a missing install as a launch failure."""
    try:
        import pywintypes
        import win32print
    except ImportError as e:
        raise PrintError(
            PrintErrorKind.LAUNCH,
            "pywin32 is not installed - run: pip install pywin32",
        ) from e
    return win32print, pywintypes


class Win32RawBackend(PrintBackend):
    """Raw spooler access through winspool (pywin32)."""

    name = "win32"
    DOC_NAME = "ESC/POS Receipt"

    def list_printers(self) -> list[PrinterDescriptor]:
        win32print, _ = _win32()
        flags = win32print.PRINTER_ENUM_LOCAL | win32print.PRINTER_ENUM_CONNECTIONS
        default = self.default_printer()

        printers = []
        # (flags, description, name, comment)
        for entry in win32print.EnumPrinters(flags):
            name = entry[2]
            printers.append(PrinterDescriptor(
                name=name,
                is_default=(name == default),
                status="available",
            ))
        logger.debug(f"Found {len(printers)} Windows printers")
        return printers

    def default_printer(self) -> Optional[str]:
        win32print, pywintypes = _win32()
        try:
            return win32print.GetDefaultPrinter() or None
        except pywintypes.error as e:
            logger.debug(f"No default printer: {e}")
            return None

    def printer_status(self, printer_name: str) -> PrinterDescriptor:
        win32print, pywintypes = _win32()
        try:
            handle = win32print.OpenPrinter(printer_name)
        except pywintypes.error as e:
            raise PrintError(
                PrintErrorKind.TARGET_RESOLUTION,
                f"Unknown printer '{printer_name}': {e.strerror} (error {e.winerror})",
            ) from e

        try:
            info = win32print.GetPrinter(handle, 2)
        except pywintypes.error as e:
            raise PrintError(
                PrintErrorKind.TRANSMISSION,
                f"GetPrinter failed for '{printer_name}': {e.strerror} (error {e.winerror})",
            ) from e
        finally:
            win32print.ClosePrinter(handle)

        return PrinterDescriptor(
            name=printer_name,
            is_default=(printer_name == self.default_printer()),
            status=describe_status(info.get("Status", 0), info.get("Attributes", 0)),
        )

    def resolve_target(self, printer_name: Optional[str]) -> Optional[str]:
        if printer_name:
            return printer_name

        default = self.default_printer()
        if not default:
            raise PrintError(
                PrintErrorKind.TARGET_RESOLUTION,
                "No target printer: no name given and no default printer configured",
            )
        return default

    def transmit(self, artifact: StagedArtifact, printer_name: Optional[str]) -> None:
        win32print, pywintypes = _win32()
        target = self.resolve_target(printer_name)

        try:
            data = artifact.path.read_bytes()
        except OSError as e:
            raise PrintError(
                PrintErrorKind.ARTIFACT_IO,
                f"Failed to read staged receipt {artifact.path}: {e}",
            ) from e

        handle = None
        job_started = False
        step = "OpenPrinter"
        try:
            handle = win32print.OpenPrinter(target)

            step = "StartDocPrinter"
            win32print.StartDocPrinter(handle, 1, (self.DOC_NAME, None, "RAW"))
            job_started = True

            step = "StartPagePrinter"
            win32print.StartPagePrinter(handle)

            step = "WritePrinter"
            written = win32print.WritePrinter(handle, data)
            if written != len(data):
                self._abort(win32print, pywintypes, handle)
                job_started = False
                raise PrintError(
                    PrintErrorKind.TRANSMISSION,
                    f"WritePrinter wrote {written} of {len(data)} bytes to {target}",
                )

            step = "EndPagePrinter"
            win32print.EndPagePrinter(handle)

            step = "EndDocPrinter"
            win32print.EndDocPrinter(handle)
            job_started = False

        except pywintypes.error as e:
            if job_started:
                self._abort(win32print, pywintypes, handle)
            raise PrintError(
                PrintErrorKind.TRANSMISSION,
                f"{step} failed for '{target}': {e.strerror} (error {e.winerror})",
            ) from e

        finally:
            if handle is not None:
                try:
                    win32print.ClosePrinter(handle)
                except pywintypes.error as e:
                    logger.warning(f"ClosePrinter failed for '{target}': {e}")

        logger.info(f"Raw job of {len(data)} bytes spooled to '{target}'")

    def _abort(self, win32print, pywintypes, handle) -> None:
        try:
            win32print.AbortPrinter(handle)
        except pywintypes.error as e:
            logger.warning(f"AbortPrinter failed: {e}")
