"""
Order Model
===========

Kitchen/bar ticket input for the receipt formatter. Field names on the
wire follow the Briez web app (``mesa``, ``numero``, ``itens``, ...).
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any


def _quantity(value: Any) -> Any:
    """2.0 prints as 2, like the web app shows it."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


@dataclass(frozen=True)
class OrderItem:
    quantity: Any
    name: str
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrderItem':
        if not isinstance(data, dict):
            raise ValueError('order item must be an object')
        return cls(
            quantity=_quantity(data.get('quantidade', 1)),
            name=str(data.get('nome', '')),
            note=data.get('observacoes') or None,
        )


@dataclass(frozen=True)
class Order:
    """Order ticket to print. Never stored."""

    number: Optional[str] = None
    table: Optional[str] = None  # mesa
    counter: Optional[str] = None  # balcao
    waiter: Optional[str] = None
    items: List[OrderItem] = field(default_factory=list)
    note: Optional[str] = None
    id: Optional[str] = None

    @property
    def label(self) -> Optional[str]:
        """Header line: table takes precedence over counter."""
        if self.table:
            return f'MESA {self.table}'
        if self.counter:
            return f'BALCAO {self.counter}'
        return None

    @property
    def display_number(self) -> str:
        if self.number:
            return str(self.number)
        return (self.id or '')[:8]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Order':
        """
        Build an order from the web app payload.

        Raises:
            ValueError: if the payload is not an object or ``itens`` is not a list
        """
        if not isinstance(data, dict):
            raise ValueError('order must be an object')

        items = data.get('itens') or []
        if not isinstance(items, list):
            raise ValueError('itens must be a list')

        def _text(key):
            value = data.get(key)
            return str(value) if value not in (None, '') else None

        return cls(
            number=_text('numero'),
            table=_text('mesa'),
            counter=_text('balcao'),
            waiter=_text('garcom'),
            items=[OrderItem.from_dict(item) for item in items],
            note=_text('observacoes'),
            id=_text('id'),
        )
