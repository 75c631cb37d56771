"""Print failures and outcomes."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class PrintErrorKind(Enum):
    """Why a print call failed."""

    ARTIFACT_IO = "artifact_io"              # Cannot stage or clean the temp file
    TARGET_RESOLUTION = "target_resolution"  # No printer name and no default
    TRANSMISSION = "transmission"            # Spooler call or command failed
    LAUNCH = "launch"                        # Print command could not start


class PrintError(Exception):
    """Raised by backends and the stager; turned into a failed PrintOutcome."""

    def __init__(self, kind: PrintErrorKind, detail: str):
        super().__init__(detail)
        self.kind = kind
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}"


@dataclass(frozen=True)
class PrintOutcome:
    """Result of a print call: either fully dispatched or failed."""

    success: bool
    message: str
    item_count: int = 0
    printer_name: Optional[str] = None
    error_kind: Optional[PrintErrorKind] = None
    artifact_path: Optional[Path] = None

    @classmethod
    def succeeded(
        cls,
        item_count: int,
        printer_name: Optional[str] = None,
        artifact_path: Optional[Path] = None,
    ) -> "PrintOutcome":
        target = printer_name or "default printer"
        return cls(
            success=True,
            message=f"Receipt sent to {target}. Items: {item_count}",
            item_count=item_count,
            printer_name=printer_name,
            artifact_path=artifact_path,
        )

    @classmethod
    def failed(
        cls,
        error: PrintError,
        item_count: int = 0,
        printer_name: Optional[str] = None,
        artifact_path: Optional[Path] = None,
    ) -> "PrintOutcome":
        return cls(
            success=False,
            message=error.detail,
            item_count=item_count,
            printer_name=printer_name,
            error_kind=error.kind,
            artifact_path=artifact_path,
        )

    def to_dict(self) -> dict:
        """Serializable form for the desktop shell."""
        return {
            "success": self.success,
            "message": self.message,
            "item_count": self.item_count,
            "printer": self.printer_name,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "artifact": str(self.artifact_path) if self.artifact_path else None,
        }
