"""Receipt formatter for TILL.

Turns a ReceiptRequest into an ESC/POS byte stream and a plain-text
rendering of the same receipt:

- Store header (centered, bold name)
- Customer and date
- Item table (description, qty, price, amount)
- Totals, payment and change
- Loyalty points (only when earned)
- Footer, feed and full cut
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from till.config.settings import Settings, get_settings
from till.printing.layout import Alignment, LayoutEngine, ReceiptLayout
from till.printing.receipt import (
    DEFAULT_CUSTOMER,
    DEFAULT_DESCRIPTION,
    LineItem,
    ReceiptRequest,
    RenderedReceipt,
    format_money,
    to_int,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

TRUNCATION_MARKER = "..."
QTY_WIDTH = 3
MONEY_WIDTH = 6
TOTAL_VALUE_WIDTH = 10
COLUMN_GAP = " "


class ReceiptFormatter:
    """Formatter for sale receipts.

    The clock is injected so that two renders of the same request at the
    same instant are byte-identical.
    """

    def __init__(self, settings: Optional[Settings] = None, clock: Optional[Clock] = None):
        self._settings = settings or get_settings()
        self._clock = clock or datetime.now
        self._engine = LayoutEngine()
        self._logo_data: Optional[bytes] = None

        logo_path = self._settings.store.logo_path
        if logo_path:
            try:
                self._logo_data = Path(logo_path).read_bytes()
            except OSError as e:
                logger.warning(f"Store logo not loaded from {logo_path}: {e}")

    def set_logo(self, logo_data: Optional[bytes]) -> None:
        """Set the store logo image data.

        Args:
            logo_data: PNG or JPG image bytes, or None to print without a logo
        """
        self._logo_data = logo_data

    @property
    def line_width(self) -> int:
        return self._settings.printer.line_width

    @property
    def description_width(self) -> int:
        # Leave room for the numeric columns and the gaps before them
        numeric = QTY_WIDTH + 2 * MONEY_WIDTH + 3 * len(COLUMN_GAP)
        return max(4, min(self._settings.printer.description_width, self.line_width - numeric))

    def format(self, request: ReceiptRequest) -> RenderedReceipt:
        """Format a receipt.

        Args:
            request: The sale to print

        Returns:
            RenderedReceipt with raw ESC/POS commands and plain text
        """
        timestamp = self._clock()
        layout = self.build_layout(request, timestamp)

        return RenderedReceipt(
            raw_commands=self._engine.render(layout),
            text=self._engine.plain_text(layout),
            item_count=len(request.items or ()),
            timestamp=timestamp,
            printer_name=request.printer_name,
        )

    def preview(self, request: ReceiptRequest) -> str:
        """Boxed text preview of the receipt."""
        return self._engine.preview_text(self.build_layout(request, self._clock()))

    def build_layout(self, request: ReceiptRequest, timestamp: datetime) -> ReceiptLayout:
        printer = self._settings.printer
        layout = ReceiptLayout(line_width=self.line_width, feed_lines=printer.feed_lines)

        self._create_header(layout, request)

        customer = str(request.customer_name or "").strip() or DEFAULT_CUSTOMER
        layout.add_text(f"Customer: {customer}")
        layout.add_text(f"Date: {timestamp.strftime(printer.date_format)}")
        layout.add_separator()

        layout.add_text(self._item_row("Item", "Qty", "Price", "Amount"), wrap=False)
        layout.add_separator()
        for item in request.items or ():
            layout.add_text(self._format_item(item), wrap=False)
        layout.add_separator()

        layout.add_text(self._total_row("TOTAL:", request.total), wrap=False)
        layout.add_text(self._total_row("AMOUNT:", request.amount_tendered), wrap=False)
        layout.add_text(self._total_row("CHANGE:", request.change_due), wrap=False)
        layout.add_separator()

        points = to_int(request.points)
        if points > 0:
            layout.add_text(f"Points earned: {points}")
            layout.add_separator()

        self._create_footer(layout)
        return layout

    def truncate(self, description: str) -> str:
        """Fit a description into the description column."""
        width = self.description_width
        if len(description) <= width:
            return description
        return description[:width - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER

    def _create_header(self, layout: ReceiptLayout, request: ReceiptRequest) -> None:
        store = self._settings.store
        name = request.store_name or store.name
        address = tuple(request.store_address or ()) or tuple(store.address)

        if self._logo_data:
            layout.add_image(self._logo_data, width=self._settings.printer.logo_width)
        layout.add_text(name, alignment=Alignment.CENTER, bold=True)
        for line in address:
            layout.add_text(line, alignment=Alignment.CENTER)
        layout.add_separator()

    def _create_footer(self, layout: ReceiptLayout) -> None:
        for line in self._settings.store.footer:
            layout.add_text(line, alignment=Alignment.CENTER)

    def _item_row(self, description: str, qty: str, price: str, amount: str) -> str:
        # Oversized values push the row wider rather than merging columns
        return COLUMN_GAP.join([
            description.ljust(self.description_width),
            qty.rjust(QTY_WIDTH),
            price.rjust(MONEY_WIDTH),
            amount.rjust(MONEY_WIDTH),
        ])

    def _format_item(self, item: LineItem) -> str:
        symbol = self._settings.printer.currency_symbol
        # Collapse line breaks so each item stays on one row
        description = " ".join(str(item.description or "").split()) or DEFAULT_DESCRIPTION
        return self._item_row(
            self.truncate(description),
            str(to_int(item.quantity)),
            format_money(item.unit_price, symbol),
            format_money(item.amount, symbol),
        )

    def _total_row(self, label: str, value) -> str:
        amount = format_money(value, self._settings.printer.currency_symbol)
        label_width = self.line_width - TOTAL_VALUE_WIDTH - len(COLUMN_GAP)
        return label.rjust(label_width) + COLUMN_GAP + amount.rjust(TOTAL_VALUE_WIDTH)
