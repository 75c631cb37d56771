"""Layout engine for thermal receipt printers.

Handles text formatting and receipt composition for 58mm ESC/POS printers
(32 columns in font A). The same layout renders either to a raw command
stream or to plain text.
"""

import logging
from typing import List, Union
from dataclasses import dataclass, field
from enum import Enum
from io import BytesIO

logger = logging.getLogger(__name__)


class Alignment(Enum):
    """Text alignment options."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass
class TextBlock:
    """A block of text for the receipt."""

    text: str
    alignment: Alignment = Alignment.LEFT
    bold: bool = False
    wrap: bool = True  # Table rows are pre-padded and must stay on one line


@dataclass
class ImageBlock:
    """A raster image block (store logo)."""

    image_data: bytes
    width: int = 144  # dots, multiple of 8
    alignment: Alignment = Alignment.CENTER


@dataclass
class SeparatorBlock:
    """A full-width dashed rule."""


Block = Union[TextBlock, ImageBlock, SeparatorBlock]


@dataclass
class ReceiptLayout:
    """Complete receipt layout definition."""

    blocks: List[Block] = field(default_factory=list)
    line_width: int = 32  # characters per line
    feed_lines: int = 3
    cut: bool = True

    def add_text(
        self,
        text: str,
        alignment: Alignment = Alignment.LEFT,
        bold: bool = False,
        wrap: bool = True,
    ) -> "ReceiptLayout":
        """Add a text block."""
        self.blocks.append(TextBlock(text=text, alignment=alignment, bold=bold, wrap=wrap))
        return self

    def add_image(self, image_data: bytes, width: int = 144) -> "ReceiptLayout":
        """Add a raster image block."""
        self.blocks.append(ImageBlock(image_data=image_data, width=width))
        return self

    def add_separator(self) -> "ReceiptLayout":
        """Add a separator line."""
        self.blocks.append(SeparatorBlock())
        return self


class LayoutEngine:
    """Engine for rendering receipt layouts to printer commands.

    Converts ReceiptLayout to ESC/POS commands using code page 437.
    """

    # ESC/POS command constants
    ESC = b'\x1b'
    GS = b'\x1d'
    LF = b'\x0a'

    CHARSET_CP437 = b'\x1b\x74\x00'  # ESC t 0
    ENCODING = "cp437"

    def _wrap_text(self, text: str, width: int) -> List[str]:
        """Word-wrap each paragraph; words longer than a line are split."""
        lines: List[str] = []

        for paragraph in text.splitlines() or [""]:
            current = ""
            for word in paragraph.split():
                while len(word) > width:
                    if current:
                        lines.append(current)
                        current = ""
                    lines.append(word[:width])
                    word = word[width:]

                if current and len(current) + 1 + len(word) > width:
                    lines.append(current)
                    current = word
                else:
                    current = f"{current} {word}" if current else word

            lines.append(current)

        return lines

    def _block_lines(self, block: TextBlock, width: int) -> List[str]:
        if not block.wrap:
            return block.text.splitlines() or [""]
        return self._wrap_text(block.text, width) or [""]

    def render(self, layout: ReceiptLayout) -> bytes:
        """Render a receipt layout to printer commands.

        Args:
            layout: The receipt layout to render

        Returns:
            ESC/POS command bytes ready to send to printer
        """
        commands = []

        # Initialize printer
        commands.append(self._cmd_init())
        commands.append(self.CHARSET_CP437)

        for block in layout.blocks:
            if isinstance(block, TextBlock):
                commands.append(self._render_text(block, layout.line_width))
            elif isinstance(block, ImageBlock):
                commands.append(self._render_image(block))
            elif isinstance(block, SeparatorBlock):
                commands.append(self._render_separator(layout.line_width))

        commands.append(self._cmd_align(Alignment.LEFT))
        if layout.feed_lines:
            commands.append(self._cmd_feed(layout.feed_lines))
        if layout.cut:
            commands.append(self._cmd_cut())

        return b''.join(commands)

    def _cmd_init(self) -> bytes:
        """Initialize printer command."""
        return self.ESC + b'@'

    def _cmd_feed(self, lines: int) -> bytes:
        """ESC d n - print and feed n lines."""
        return self.ESC + b'd' + bytes([max(0, min(lines, 255))])

    def _cmd_cut(self) -> bytes:
        """GS V 0 - full paper cut."""
        return self.GS + b'V' + b'\x00'

    def _cmd_align(self, alignment: Alignment) -> bytes:
        """Set text alignment."""
        align_byte = {
            Alignment.LEFT: b'\x00',
            Alignment.CENTER: b'\x01',
            Alignment.RIGHT: b'\x02',
        }
        return self.ESC + b'a' + align_byte.get(alignment, b'\x00')

    def _cmd_bold(self, enabled: bool) -> bytes:
        """Set bold mode."""
        return self.ESC + b'E' + (b'\x01' if enabled else b'\x00')

    def _encode(self, line: str) -> bytes:
        return line.encode(self.ENCODING, errors='replace')

    def _render_text(self, block: TextBlock, width: int) -> bytes:
        """Render a text block to commands."""
        commands = [self._cmd_align(block.alignment)]
        if block.bold:
            commands.append(self._cmd_bold(True))

        for line in self._block_lines(block, width):
            commands.append(self._encode(line))
            commands.append(self.LF)

        if block.bold:
            commands.append(self._cmd_bold(False))

        return b''.join(commands)

    def _render_image(self, block: ImageBlock) -> bytes:
        """Render an image block as a GS v 0 raster bit image."""
        try:
            from PIL import Image

            img = Image.open(BytesIO(block.image_data))

            target_width = max(8, block.width - block.width % 8)
            aspect = img.height / img.width
            target_height = max(1, int(target_width * aspect))
            img = img.convert('L').resize((target_width, target_height), Image.Resampling.LANCZOS)
            img = img.convert('1', dither=Image.Dither.FLOYDSTEINBERG)

            return self._image_to_raster(img, block.alignment)

        except Exception as e:
            logger.error(f"Image rendering failed: {e}")
            return b''

    def _image_to_raster(self, img, alignment: Alignment) -> bytes:
        """Convert a 1-bit PIL image to ESC/POS raster commands."""
        width, height = img.size
        bytes_per_line = width // 8

        raster_data = bytearray()
        for y in range(height):
            for x_byte in range(bytes_per_line):
                byte_val = 0
                for bit in range(8):
                    if img.getpixel((x_byte * 8 + bit, y)) == 0:  # Black pixel
                        byte_val |= (0x80 >> bit)
                raster_data.append(byte_val)

        # GS v 0 m xL xH yL yH data, with zero line spacing around the image
        return b''.join([
            self._cmd_align(alignment),
            self.ESC + b'3' + b'\x00',
            self.GS + b'v0' + b'\x00',
            bytes([bytes_per_line & 0xFF, (bytes_per_line >> 8) & 0xFF]),
            bytes([height & 0xFF, (height >> 8) & 0xFF]),
            bytes(raster_data),
            self.ESC + b'2',
        ])

    def _render_separator(self, width: int) -> bytes:
        return self._render_text(TextBlock(text=self._separator_text(width), wrap=False), width)

    def plain_text(self, layout: ReceiptLayout, show_images: bool = False) -> str:
        """Render the layout as plain monospace text (no control codes).

        Images have no text form; show_images marks their place.
        """
        width = layout.line_width
        lines: List[str] = []

        for block in layout.blocks:
            if isinstance(block, TextBlock):
                for line in self._block_lines(block, width):
                    if block.alignment == Alignment.CENTER:
                        line = line.center(width).rstrip()
                    elif block.alignment == Alignment.RIGHT:
                        line = line.rjust(width)
                    lines.append(line)

            elif isinstance(block, ImageBlock):
                if show_images:
                    lines.append("[LOGO]".center(width).rstrip())

            elif isinstance(block, SeparatorBlock):
                lines.append(self._separator_text(width))

        return "\n".join(lines) + "\n"

    def preview_text(self, layout: ReceiptLayout) -> str:
        """Generate a boxed text preview of the receipt (for the CLI).

        Args:
            layout: The receipt layout to preview

        Returns:
            ASCII art representation of the receipt
        """
        width = layout.line_width
        lines = ["+" + "-" * width + "+"]
        for line in self.plain_text(layout, show_images=True).splitlines():
            lines.append("|" + line[:width].ljust(width) + "|")
        lines.append("+" + "-" * width + "+")
        return "\n".join(lines)

    def _separator_text(self, width: int) -> str:
        return "-" * width
