"""Printing module for TILL - ESC/POS receipt generation and delivery."""

from till.printing.errors import PrintError, PrintErrorKind, PrintOutcome
from till.printing.staging import ArtifactStager, StagedArtifact
from till.printing.receipt import LineItem, ReceiptRequest, RenderedReceipt
from till.printing.layout import LayoutEngine, ReceiptLayout, TextBlock
from till.printing.formatter import ReceiptFormatter
from till.printing.directory import PrinterDirectory
from till.printing.dispatcher import PrintDispatcher
from till.printing.manager import PrintManager

__all__ = [
    # Outcomes
    "PrintError",
    "PrintErrorKind",
    "PrintOutcome",
    # Receipt
    "LineItem",
    "ReceiptRequest",
    "RenderedReceipt",
    "ReceiptFormatter",
    # Layout
    "LayoutEngine",
    "ReceiptLayout",
    "TextBlock",
    # Delivery
    "ArtifactStager",
    "StagedArtifact",
    "PrinterDirectory",
    "PrintDispatcher",
    "PrintManager",
]
