"""Line-printer backend for macOS and Linux (CUPS).

Submits the staged receipt file with the system line-printer command:
- Linux: lp <file>
- macOS: lpr <file>

The job always goes to the default CUPS queue. CUPS has no raw-mode
switch on this path and lpstat -p carries no default marker, so printer
selection is off unless lp_honor_printer_name is enabled, in which case the
name is passed as -d (lp) or -P (lpr).
"""

import logging
import re
import subprocess
import sys
from typing import Optional

from till.hardware.base import PrintBackend, PrinterDescriptor
from till.printing.errors import PrintError, PrintErrorKind
from till.printing.staging import StagedArtifact

logger = logging.getLogger(__name__)

DEFAULT_DESTINATION = re.compile(r"system default destination:\s*(.+)")


def default_command() -> str:
    """lpr on macOS, lp elsewhere."""
    return "lpr" if sys.platform == "darwin" else "lp"


class LinePrinterBackend(PrintBackend):
    """Submit receipts through lp / lpr."""

    name = "cups"

    def __init__(
        self,
        command: Optional[str] = None,
        timeout: float = 30.0,
        honor_printer_name: bool = False,
    ):
        """Initialize the backend.

        Args:
            command: Submission command, defaults to the platform's
            timeout: Seconds to wait for each command
            honor_printer_name: Pass explicit printer names to the command
        """
        self._command = command or default_command()
        self._timeout = timeout
        self._honor_printer_name = honor_printer_name

    @property
    def command(self) -> str:
        return self._command

    def list_printers(self) -> list[PrinterDescriptor]:
        result = self._run(["lpstat", "-p"])
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise RuntimeError(f"lpstat -p failed (exit {result.returncode}): {stderr}")

        printers = self._parse_lpstat(result.stdout)

        logger.debug(f"Found {len(printers)} CUPS printers")
        return printers

    def printer_status(self, printer_name: str) -> PrinterDescriptor:
        result = self._run(["lpstat", "-p", printer_name])
        printers = self._parse_lpstat(result.stdout) if result.returncode == 0 else []
        if not printers:
            detail = (result.stderr or "").strip() or "not reported by lpstat"
            raise PrintError(
                PrintErrorKind.TARGET_RESOLUTION,
                f"Unknown printer '{printer_name}': {detail}",
            )
        return printers[0]

    @staticmethod
    def _parse_lpstat(output: str) -> list[PrinterDescriptor]:
        """Parse `lpstat -p` lines; CUPS gives no default marker here."""
        printers = []
        for line in (output or "").splitlines():
            parts = line.split()
            if len(parts) < 2 or parts[0] != "printer":
                continue
            if "disabled" in line:
                status = "disabled"
            elif "now printing" in line:
                status = "printing"
            else:
                status = "idle"
            printers.append(PrinterDescriptor(name=parts[1], is_default=False, status=status))
        return printers

    def default_printer(self) -> Optional[str]:
        try:
            result = self._run(["lpstat", "-d"])
        except PrintError as e:
            logger.debug(f"Default printer lookup failed: {e}")
            return None

        match = DEFAULT_DESTINATION.search(result.stdout or "")
        return match.group(1).strip() if match else None

    def resolve_target(self, printer_name: Optional[str]) -> Optional[str]:
        if printer_name and not self._honor_printer_name:
            logger.warning(
                f"{self._command} submits to the default queue; ignoring printer '{printer_name}'"
            )
            return None
        return printer_name or None

    def transmit(self, artifact: StagedArtifact, printer_name: Optional[str]) -> None:
        args = [self._command]
        target = self.resolve_target(printer_name)
        if target:
            args += ["-P" if self._command == "lpr" else "-d", target]
        args.append(str(artifact.path))

        result = self._run(args)
        stderr = (result.stderr or "").strip()

        # Only a clean exit with nothing on stderr counts as accepted
        if result.returncode != 0 or stderr:
            stdout = (result.stdout or "").strip()
            raise PrintError(
                PrintErrorKind.TRANSMISSION,
                f"Print failed (exit {result.returncode}): {stderr or stdout or 'no output'}",
            )

        logger.info(f"{self._command} accepted {artifact.path.name}: {(result.stdout or '').strip()}")

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                args,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise PrintError(
                PrintErrorKind.TRANSMISSION,
                f"{args[0]} timed out after {self._timeout:g} seconds",
            ) from e
        except OSError as e:
            raise PrintError(
                PrintErrorKind.LAUNCH,
                f"Print command {args[0]!r} could not start: {e}",
            ) from e
