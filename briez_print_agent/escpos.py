"""
ESC/POS Formatter
=================

Renders test pages and order tickets into ESC/POS byte streams for
thermal receipt printers. Pure functions, no I/O.
"""

from datetime import datetime
from typing import Optional

from . import __version__
from .config import AGENT_NAME, FOOTER_LABEL
from .models import Printer, Order

RULE_WIDTH = 32
TRAILING_FEED = 4


class EscPosBuilder:
    """Byte buffer with named ESC/POS operations."""

    # ESC/POS commands
    INIT = b'\x1b\x40'  # Initialize printer
    CUT = b'\x1d\x56\x00'  # Full cut
    PARTIAL_CUT = b'\x1d\x56\x01'  # Partial cut

    # Text formatting
    BOLD_ON = b'\x1b\x45\x01'
    BOLD_OFF = b'\x1b\x45\x00'
    NORMAL = b'\x1b\x21\x00'
    DOUBLE_HEIGHT = b'\x1b\x21\x10'
    DOUBLE_WIDTH = b'\x1b\x21\x20'
    DOUBLE = b'\x1b\x21\x30'

    # Alignment
    ALIGN_LEFT = b'\x1b\x61\x00'
    ALIGN_CENTER = b'\x1b\x61\x01'
    ALIGN_RIGHT = b'\x1b\x61\x02'

    SIZES = {
        'normal': NORMAL,
        'double_height': DOUBLE_HEIGHT,
        'double_width': DOUBLE_WIDTH,
        'double': DOUBLE,
    }
    ALIGNMENTS = {
        'left': ALIGN_LEFT,
        'center': ALIGN_CENTER,
        'right': ALIGN_RIGHT,
    }

    def __init__(self, encoding: str = 'utf-8'):
        self.encoding = encoding
        self._data = bytearray()

    def raw(self, data: bytes) -> 'EscPosBuilder':
        self._data.extend(data)
        return self

    def reset(self) -> 'EscPosBuilder':
        return self.raw(self.INIT)

    def align(self, alignment: str) -> 'EscPosBuilder':
        if alignment not in self.ALIGNMENTS:
            raise ValueError(f'Unknown alignment: {alignment}')
        return self.raw(self.ALIGNMENTS[alignment])

    def size(self, size: str) -> 'EscPosBuilder':
        if size not in self.SIZES:
            raise ValueError(f'Unknown size: {size}')
        return self.raw(self.SIZES[size])

    def bold(self, enabled: bool = True) -> 'EscPosBuilder':
        return self.raw(self.BOLD_ON if enabled else self.BOLD_OFF)

    def line(self, text: str = '') -> 'EscPosBuilder':
        """Text followed by a line feed."""
        self._data.extend(text.encode(self.encoding, errors='replace'))
        self._data.extend(b'\n')
        return self

    def rule(self, char: str = '-', width: int = RULE_WIDTH) -> 'EscPosBuilder':
        return self.line(char * width)

    def feed(self, lines: int = 1) -> 'EscPosBuilder':
        return self.raw(b'\n' * lines)

    def cut(self, partial: bool = False) -> 'EscPosBuilder':
        """Clear the print head, then cut."""
        self.feed(TRAILING_FEED)
        return self.raw(self.PARTIAL_CUT if partial else self.CUT)

    def build(self) -> bytes:
        return bytes(self._data)


def _timestamp(now: Optional[datetime]) -> str:
    return (now or datetime.now()).strftime('%d/%m/%Y %H:%M:%S')


def format_test_page(printer: Printer, now: Optional[datetime] = None) -> bytes:
    """Test page identifying the agent and the target printer."""
    doc = EscPosBuilder()
    doc.reset().align('center').size('double')
    doc.line('TESTE DE IMPRESSAO')
    doc.size('normal')
    doc.rule('=')
    doc.line(AGENT_NAME)
    doc.line(f'Versao: {__version__}')
    doc.line(f'Data: {_timestamp(now)}')
    doc.feed()
    doc.line(f'Impressora: {printer.name}')
    doc.line(f'Tipo: {printer.transport_kind.value}')
    if printer.address:
        doc.line(f'IP: {printer.address}:{printer.port}')
    doc.feed()
    doc.rule('=')
    doc.line('Impressao OK!')
    doc.align('left')
    return doc.cut().build()


def format_order(order: Order, now: Optional[datetime] = None,
                 footer: str = FOOTER_LABEL) -> bytes:
    """
    Kitchen ticket for an order.

    Optional parts (table/counter header, waiter, item notes, order note)
    are left out entirely when missing.
    """
    doc = EscPosBuilder()
    doc.reset().align('center').size('double')
    if order.label:
        doc.line(order.label)
    doc.size('normal').align('left')
    doc.rule('=')

    doc.line(f'Pedido: #{order.display_number}')
    doc.line(f'Data: {_timestamp(now)}')
    if order.waiter:
        doc.line(f'Garcom: {order.waiter}')
    doc.rule()

    for item in order.items:
        doc.line(f'{item.quantity}x {item.name}')
        if item.note:
            doc.line(f'   OBS: {item.note}')
    doc.rule()

    if order.note:
        doc.line(f'OBS: {order.note}')
        doc.rule()

    doc.align('center')
    doc.line(footer)
    doc.align('left')
    return doc.cut().build()
