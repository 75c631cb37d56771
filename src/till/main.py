"""
Command line entry point for TILL.

Usage:
    till printers
    till preview receipt.json
    till print receipt.json [--printer NAME] [--backend mock]
    till test [--printer NAME] [--items N]

Receipt files hold the shell's JSON payload; use "-" to read stdin.
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional, Sequence

from till.config.settings import get_settings
from till.core.events import EventBus
from till.hardware.printer import create_backend
from till.printing.errors import PrintOutcome
from till.printing.manager import PrintManager
from till.printing.receipt import ReceiptRequest


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


def load_payload(source: str) -> Any:
    """Read a JSON receipt payload from a file or stdin."""
    if source == "-":
        return json.load(sys.stdin)
    return json.loads(Path(source).read_text(encoding="utf-8"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="till", description="Print point-of-sale receipts")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument(
        "--backend",
        choices=["auto", "win32", "cups", "mock"],
        help="Print backend (default: TILL_PRINTER_BACKEND or auto)",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("printers", help="List installed printers")

    preview = commands.add_parser("preview", help="Show a receipt as text")
    preview.add_argument("receipt", help="JSON payload file, or - for stdin")

    send = commands.add_parser("print", help="Print a receipt")
    send.add_argument("receipt", help="JSON payload file, or - for stdin")
    send.add_argument("--printer", help="Target printer (default: system default)")

    check = commands.add_parser("test", help="Check a printer and print a sample receipt")
    check.add_argument("--printer", help="Printer to test (default: system default)")
    check.add_argument("--items", type=int, default=3, help="Sample line items")

    return parser


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    backend = create_backend(args.backend, settings.printer) if args.backend else None

    manager = PrintManager(EventBus(), backend=backend, settings=settings)
    await manager.start()
    try:
        if args.command == "printers":
            for printer in await manager.list_printers():
                marker = "*" if printer.is_default else " "
                print(f"{marker} {printer.name} ({printer.status})")
            return 0

        if args.command == "test":
            return await run_test(manager, args.printer, args.items)

        request = ReceiptRequest.from_dict(load_payload(args.receipt))

        if args.command == "preview":
            print(manager.preview(request))
            return 0

        if args.printer:
            request = replace(request, printer_name=args.printer)
        return report(await manager.print_receipt(request))
    finally:
        await manager.stop()


async def run_test(manager: PrintManager, printer_name: Optional[str], items: int) -> int:
    name = printer_name or await manager.default_printer()
    if name:
        printer = await manager.check_printer(name)
        if printer is None or not printer.is_ready:
            status = printer.status if printer else "not found"
            print(f"Printer {name} is not ready ({status})", file=sys.stderr)
            return 1
        print(f"Printer {name} is ready ({printer.status})")

    return report(await manager.test_print(name, item_count=items))


def report(outcome: PrintOutcome) -> int:
    if outcome.success:
        print(outcome.message)
        return 0

    print(f"Print failed ({outcome.error_kind.value}): {outcome.message}", file=sys.stderr)
    if outcome.artifact_path:
        print(f"Receipt kept at {outcome.artifact_path}", file=sys.stderr)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    from dotenv import load_dotenv

    # Load environment variables
    load_dotenv()

    args = build_parser().parse_args(argv)
    setup_logging(args.debug or get_settings().debug)
    logger = logging.getLogger(__name__)

    try:
        return asyncio.run(run(args))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read receipt: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
