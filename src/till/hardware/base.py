"""
Abstract base class for print delivery backends.

Every platform exposes the same capability: send a staged raw byte stream
to a named or default printer. Backends are blocking; async callers run
them in a worker thread.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from till.printing.staging import StagedArtifact


# Statuses that can accept a job right now
READY_STATUSES = frozenset({"available", "idle", "printing"})


@dataclass(frozen=True)
class PrinterDescriptor:
    """An installed printer as reported by the OS."""

    name: str
    is_default: bool = False
    status: str = "unknown"

    @property
    def is_ready(self) -> bool:
        return self.status in READY_STATUSES


class PrintBackend(ABC):
    """Abstract base class for an OS print path."""

    #: Short identifier used in settings and logs
    name: str = "base"

    @abstractmethod
    def list_printers(self) -> list[PrinterDescriptor]:
        """
        Query the OS for installed printers, in OS order.

        May raise; callers that must not fail wrap this call.
        """
        ...

    @abstractmethod
    def default_printer(self) -> Optional[str]:
        """Name of the system default printer, or None if unknown."""
        ...

    @abstractmethod
    def printer_status(self, printer_name: str) -> PrinterDescriptor:
        """
        Query the current state of one printer.

        Raises:
            PrintError: TARGET_RESOLUTION if the OS does not know the printer
        """
        ...

    @abstractmethod
    def resolve_target(self, printer_name: Optional[str]) -> Optional[str]:
        """
        Pick the printer a job goes to.

        Returns:
            A printer name, or None when the OS default queue is used
            implicitly.

        Raises:
            PrintError: TARGET_RESOLUTION when no target can be found
        """
        ...

    @abstractmethod
    def transmit(self, artifact: "StagedArtifact", printer_name: Optional[str]) -> None:
        """
        Send the staged bytes to the printer.

        Raises:
            PrintError: LAUNCH, TRANSMISSION or ARTIFACT_IO
        """
        ...
