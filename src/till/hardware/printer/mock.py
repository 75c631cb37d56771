"""Mock print backend for tests and machines without a receipt printer."""

import logging
from dataclasses import dataclass
from typing import Optional

from till.hardware.base import PrintBackend, PrinterDescriptor
from till.printing.errors import PrintError, PrintErrorKind
from till.printing.staging import StagedArtifact

logger = logging.getLogger(__name__)


@dataclass
class MockJob:
    """A job captured by the mock backend."""

    printer_name: Optional[str]
    data: bytes
    artifact_name: str


class MockBackend(PrintBackend):
    """Records jobs instead of printing them.

    Failures can be injected per stage to exercise the dispatcher's error
    paths.
    """

    name = "mock"

    def __init__(
        self,
        printers: Optional[list[str]] = None,
        default: Optional[str] = None,
        transmit_error: Optional[PrintError] = None,
        enumeration_error: Optional[Exception] = None,
        statuses: Optional[dict[str, str]] = None,
    ):
        self.printers = list(printers) if printers is not None else ["Mock Receipt Printer"]
        self.default = default if default is not None else (self.printers[0] if self.printers else None)
        self.transmit_error = transmit_error
        self.enumeration_error = enumeration_error
        self.statuses = dict(statuses or {})
        self.jobs: list[MockJob] = []
        self.seen_artifacts: list[str] = []

    def list_printers(self) -> list[PrinterDescriptor]:
        if self.enumeration_error is not None:
            raise self.enumeration_error
        return [self._describe(name) for name in self.printers]

    def default_printer(self) -> Optional[str]:
        return self.default

    def printer_status(self, printer_name: str) -> PrinterDescriptor:
        if printer_name not in self.printers:
            raise PrintError(PrintErrorKind.TARGET_RESOLUTION, f"Unknown printer '{printer_name}'")
        return self._describe(printer_name)

    def _describe(self, name: str) -> PrinterDescriptor:
        return PrinterDescriptor(
            name=name,
            is_default=(name == self.default),
            status=self.statuses.get(name, "idle"),
        )

    def resolve_target(self, printer_name: Optional[str]) -> Optional[str]:
        if printer_name:
            return printer_name
        if not self.default:
            raise PrintError(
                PrintErrorKind.TARGET_RESOLUTION,
                "No target printer: no name given and no default printer configured",
            )
        return self.default

    def transmit(self, artifact: StagedArtifact, printer_name: Optional[str]) -> None:
        self.seen_artifacts.append(artifact.path.name)
        if self.transmit_error is not None:
            raise self.transmit_error

        try:
            data = artifact.path.read_bytes()
        except OSError as e:
            raise PrintError(PrintErrorKind.ARTIFACT_IO, f"Failed to read {artifact.path}: {e}") from e

        self.jobs.append(MockJob(
            printer_name=printer_name,
            data=data,
            artifact_name=artifact.path.name,
        ))
        logger.info(f"Mock print: {len(data)} bytes to {printer_name or 'default'}")
