"""Print manager for TILL receipts."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Set

from till.config.settings import Settings, get_settings
from till.core.events import Event, EventBus, EventType
from till.hardware.base import PrintBackend, PrinterDescriptor
from till.printing.directory import PrinterDirectory
from till.printing.dispatcher import PrintDispatcher
from till.printing.errors import PrintError, PrintErrorKind, PrintOutcome
from till.printing.formatter import ReceiptFormatter
from till.printing.receipt import ReceiptRequest, sample_request
from till.printing.staging import ArtifactStager

logger = logging.getLogger(__name__)


class PrintManager:
    """Formats, dispatches and reports receipt print jobs.

    Jobs are not queued: each request runs as soon as it arrives, and
    concurrent requests proceed independently.
    """

    def __init__(
        self,
        event_bus: EventBus,
        backend: Optional[PrintBackend] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        if backend is None:
            from till.hardware.printer import create_backend
            backend = create_backend(settings=self._settings.printer)

        self._event_bus = event_bus
        self._backend = backend
        self._formatter = ReceiptFormatter(self._settings, clock=clock)
        self._stager = ArtifactStager(self._settings.staging_dir)
        self._dispatcher = PrintDispatcher(backend, self._stager, self._settings)
        self._directory = PrinterDirectory(backend)
        self._jobs: Set[asyncio.Task[PrintOutcome]] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._running = False

    @property
    def backend(self) -> PrintBackend:
        return self._backend

    @property
    def stager(self) -> ArtifactStager:
        return self._stager

    async def start(self) -> None:
        """Start listening for print requests on the event bus."""
        if self._running:
            return
        self._running = True
        self._unsubscribe = self._event_bus.subscribe(
            EventType.PRINT_REQUEST, self.handle_print_request
        )
        logger.info(f"Print manager started ({self._backend.name} backend)")

    async def stop(self) -> None:
        """Stop the print manager, finishing in-flight jobs and cleanup."""
        self._running = False
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

        if self._jobs:
            await asyncio.gather(*self._jobs, return_exceptions=True)
        await self._stager.shutdown()
        logger.info("Print manager stopped")

    def handle_print_request(self, event: Event) -> None:
        """Start a print job from a PRINT_REQUEST event."""
        data = event.data if isinstance(event.data, dict) else {}
        try:
            task = asyncio.get_running_loop().create_task(self.print_payload(data))
        except RuntimeError as exc:
            logger.error(f"Failed to start print job: {exc}")
            return

        self._jobs.add(task)
        task.add_done_callback(self._jobs.discard)
        logger.info("Started print job")

    async def print_payload(self, data: Dict[str, Any]) -> PrintOutcome:
        """Print a receipt from a shell payload dictionary."""
        return await self.print_receipt(ReceiptRequest.from_dict(data))

    async def print_receipt(self, request: ReceiptRequest) -> PrintOutcome:
        """Format and print a receipt.

        Returns:
            PrintOutcome; failures are reported, never raised
        """
        self._event_bus.emit(Event(
            EventType.PRINT_START,
            data={"items": request.item_count, "printer": request.printer_name},
            source="print_manager",
        ))

        try:
            receipt = self._formatter.format(request)
            outcome = await self._dispatcher.dispatch(
                receipt.raw_commands,
                printer_name=request.printer_name,
                item_count=receipt.item_count,
            )
        except Exception as exc:
            logger.exception("Print failed unexpectedly")
            outcome = PrintOutcome.failed(
                PrintError(PrintErrorKind.TRANSMISSION, str(exc) or type(exc).__name__),
                item_count=request.item_count,
                printer_name=request.printer_name,
            )

        if outcome.success:
            self._event_bus.emit(Event(
                EventType.PRINT_COMPLETE,
                data=outcome.to_dict(),
                source="print_manager",
            ))
        else:
            self._event_bus.emit(Event(
                EventType.PRINT_ERROR,
                data=outcome.to_dict(),
                source="print_manager",
            ))

        return outcome

    def preview(self, request: ReceiptRequest) -> str:
        """Boxed text preview of a receipt."""
        return self._formatter.preview(request)

    async def list_printers(self) -> list[PrinterDescriptor]:
        """Enumerate printers (never empty)."""
        printers = await self._directory.list_printers_async()
        self._event_bus.emit(Event(
            EventType.PRINTERS_LISTED,
            data={"printers": [p.name for p in printers]},
            source="print_manager",
        ))
        return printers

    async def check_printer(self, printer_name: str) -> Optional[PrinterDescriptor]:
        """Query one printer's state. None means it could not be found."""
        descriptor = await asyncio.to_thread(self._directory.printer_status, printer_name)
        self._event_bus.emit(Event(
            EventType.PRINTER_CHECKED,
            data={
                "printer": printer_name,
                "ready": bool(descriptor and descriptor.is_ready),
                "status": descriptor.status if descriptor else None,
            },
            source="print_manager",
        ))
        return descriptor

    async def test_print(
        self, printer_name: Optional[str] = None, item_count: int = 3
    ) -> PrintOutcome:
        """Print a sample receipt to check a printer end to end."""
        logger.info(f"Test print to {printer_name or 'default printer'}")
        return await self.print_receipt(sample_request(item_count, printer_name=printer_name))

    async def default_printer(self) -> Optional[str]:
        """Best-effort name of the system default printer."""
        return await asyncio.to_thread(self._directory.default_printer)
