"""Printer access layer for TILL."""

from .base import PrintBackend, PrinterDescriptor

__all__ = [
    "PrintBackend",
    "PrinterDescriptor",
]
