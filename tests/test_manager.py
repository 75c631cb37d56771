"""Tests for the print manager and its event bus wiring."""

import asyncio

from till.core.events import EventBus, EventType, print_request_event
from till.hardware.printer.mock import MockBackend
from till.printing.errors import PrintError, PrintErrorKind
from till.printing.manager import PrintManager

PAYLOAD = {
    "customer": {"name": "Juan"},
    "items": [
        {"desc": "Coffee", "qty": 2, "price": 3, "amount": 6},
        {"desc": "Bagel", "qty": 1, "price": 2.5, "amount": 2.5},
    ],
    "cartTotal": 8.5,
    "amount": 10,
    "change": 1.5,
}


class ExplodingBackend(MockBackend):
    """Backend that fails with something other than a PrintError."""

    def transmit(self, artifact, printer_name):
        raise RuntimeError("driver crashed")


def event_types(bus):
    return [e.type for e in bus.get_history(limit=100)]


class TestPrintManager:
    """Tests for PrintManager."""

    def test_print_request_event_prints_receipt(self, settings, clock, list_staged):
        bus = EventBus()
        backend = MockBackend()
        manager = PrintManager(bus, backend=backend, settings=settings, clock=clock)

        async def scenario():
            await manager.start()
            bus.emit(print_request_event(PAYLOAD))
            await manager.stop()

        asyncio.run(scenario())

        assert event_types(bus) == [
            EventType.PRINT_REQUEST, EventType.PRINT_START, EventType.PRINT_COMPLETE,
        ]
        complete = bus.get_history(EventType.PRINT_COMPLETE)[0]
        assert complete.data["success"]
        assert complete.data["message"] == "Receipt sent to Mock Receipt Printer. Items: 2"
        assert b"Coffee" in backend.jobs[0].data
        assert list_staged(settings.staging_dir) == []

    def test_failure_emits_print_error(self, settings, clock):
        bus = EventBus()
        backend = MockBackend(transmit_error=PrintError(PrintErrorKind.TRANSMISSION, "offline"))
        manager = PrintManager(bus, backend=backend, settings=settings, clock=clock)

        outcome = asyncio.run(manager.print_payload(PAYLOAD))

        assert not outcome.success
        error = bus.get_history(EventType.PRINT_ERROR)[0]
        assert error.data["error_kind"] == "transmission"
        assert error.data["artifact"] == str(outcome.artifact_path)

    def test_unexpected_error_is_reported(self, settings, clock):
        bus = EventBus()
        manager = PrintManager(bus, backend=ExplodingBackend(), settings=settings, clock=clock)

        outcome = asyncio.run(manager.print_payload(PAYLOAD))

        assert not outcome.success
        assert outcome.error_kind == PrintErrorKind.TRANSMISSION
        assert outcome.message == "driver crashed"
        assert EventType.PRINT_ERROR in event_types(bus)

    def test_stop_flushes_delayed_cleanup(self, settings, clock, list_staged):
        settings.cleanup_delay = 3600
        bus = EventBus()
        manager = PrintManager(bus, backend=MockBackend(), settings=settings, clock=clock)

        async def scenario():
            await manager.start()
            outcome = await manager.print_payload(PAYLOAD)
            waiting = manager.stager.pending
            await manager.stop()
            return outcome, waiting

        outcome, waiting = asyncio.run(scenario())

        assert outcome.success
        assert waiting == 1
        assert list_staged(settings.staging_dir) == []

    def test_stopped_manager_ignores_requests(self, settings, clock):
        bus = EventBus()
        backend = MockBackend()
        manager = PrintManager(bus, backend=backend, settings=settings, clock=clock)

        async def scenario():
            await manager.start()
            await manager.stop()
            bus.emit(print_request_event(PAYLOAD))
            await asyncio.sleep(0)

        asyncio.run(scenario())

        assert backend.jobs == []

    def test_list_printers_emits_event(self, settings, clock):
        bus = EventBus()
        manager = PrintManager(bus, backend=MockBackend(printers=[]), settings=settings, clock=clock)

        printers = asyncio.run(manager.list_printers())

        assert [p.name for p in printers] == ["Default Printer"]
        listed = bus.get_history(EventType.PRINTERS_LISTED)[0]
        assert listed.data == {"printers": ["Default Printer"]}

    def test_test_print_sends_sample_receipt(self, settings, clock, list_staged):
        bus = EventBus()
        backend = MockBackend()
        manager = PrintManager(bus, backend=backend, settings=settings, clock=clock)

        async def scenario():
            outcome = await manager.test_print()
            await manager.stop()
            return outcome

        outcome = asyncio.run(scenario())

        assert outcome.success
        assert outcome.message == "Receipt sent to Mock Receipt Printer. Items: 3"
        assert b"Test Item 3" in backend.jobs[0].data
        assert b"Customer: Test Customer" in backend.jobs[0].data
        assert list_staged(settings.staging_dir) == []

    def test_test_print_to_named_printer(self, settings, clock):
        backend = MockBackend(printers=["Bar", "Kitchen"])
        manager = PrintManager(EventBus(), backend=backend, settings=settings, clock=clock)

        outcome = asyncio.run(manager.test_print("Kitchen", item_count=1))

        assert outcome.message == "Receipt sent to Kitchen. Items: 1"
        assert backend.jobs[0].printer_name == "Kitchen"

    def test_check_printer_emits_event(self, settings, clock):
        bus = EventBus()
        backend = MockBackend(printers=["Bar", "Kitchen"], statuses={"Kitchen": "offline"})
        manager = PrintManager(bus, backend=backend, settings=settings, clock=clock)

        async def scenario():
            return (
                await manager.check_printer("Bar"),
                await manager.check_printer("Kitchen"),
                await manager.check_printer("Missing"),
            )

        bar, kitchen, missing = asyncio.run(scenario())

        assert bar.is_ready
        assert kitchen.status == "offline"
        assert missing is None
        checked = [e.data for e in bus.get_history(EventType.PRINTER_CHECKED)]
        assert checked == [
            {"printer": "Bar", "ready": True, "status": "idle"},
            {"printer": "Kitchen", "ready": False, "status": "offline"},
            {"printer": "Missing", "ready": False, "status": None},
        ]

    def test_preview(self, settings, clock, coffee_request):
        manager = PrintManager(EventBus(), backend=MockBackend(), settings=settings, clock=clock)

        preview = manager.preview(coffee_request)

        assert "Customer: Juan" in preview
        assert "January 15, 2025 09:30" in preview


class TestEventBus:
    """Tests for EventBus."""

    def test_subscribe_and_unsubscribe(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(EventType.PRINT_REQUEST, seen.append)

        first = print_request_event({"n": 1})
        bus.emit(first)
        unsubscribe()
        bus.emit(print_request_event({"n": 2}))

        assert seen == [first]
        assert len(bus.get_history()) == 2

    def test_failing_handler_does_not_stop_others(self):
        bus = EventBus()
        seen = []

        def broken(event):
            raise ValueError("boom")

        bus.subscribe(EventType.PRINT_REQUEST, broken)
        bus.subscribe_all(seen.append)
        bus.emit(print_request_event({"x": 1}))

        assert [e.data for e in seen] == [{"x": 1}]

    def test_async_handlers(self):
        bus = EventBus()
        seen = []

        async def handler(event):
            seen.append(event.source)

        bus.subscribe(EventType.PRINT_REQUEST, handler)
        bus.emit(print_request_event({}, source="sync"))
        asyncio.run(bus.emit_async(print_request_event({}, source="async")))

        assert seen == ["async"]

    def test_history_limit(self):
        bus = EventBus(history_limit=3)
        for i in range(5):
            bus.emit(print_request_event({"i": i}))

        assert [e.data["i"] for e in bus.get_history(limit=10)] == [2, 3, 4]
