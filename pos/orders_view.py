# pos/orders_view.py
"""Proyecciones de la lista de pedidos para la vista de gestión y la cocina."""
from dataclasses import dataclass
from decimal import Decimal

from .models import Order
from .status import OrderStatus

ALL = "all"
SORT_KEYS = ("date", "status", "total")


@dataclass(frozen=True)
class OrderQuery:
    text: str = ""
    status: str = ALL
    sort: str = "date"

    def __post_init__(self):
        if self.sort not in SORT_KEYS:
            raise ValueError(f"Orden no soportado: {self.sort}")
        if self.status != ALL:
            # normaliza y valida el estado
            object.__setattr__(self, "status", OrderStatus(self.status))


@dataclass(frozen=True)
class OrderStats:
    total_count: int
    active_count: int
    revenue: Decimal


def matches_text(order: Order, text: str) -> bool:
    needle = text.strip().lower()
    if not needle:
        return True
    haystack = (str(order.id), order.order_number, order.space_name, order.customer_name or "")
    return any(needle in field.lower() for field in haystack)


def apply(orders: list[Order], query: OrderQuery = OrderQuery()) -> list[Order]:
    result = [o for o in orders if matches_text(o, query.text)]
    if query.status != ALL:
        result = [o for o in result if o.status == query.status]

    if query.sort == "date":
        result.sort(key=lambda o: o.created_at, reverse=True)
    elif query.sort == "status":
        result.sort(key=lambda o: o.status.value)
    else:
        result.sort(key=lambda o: o.total_amount, reverse=True)
    return result


def summarize(orders: list[Order]) -> OrderStats:
    """Totales de la colección completa; no dependen de filtros ni orden."""
    return OrderStats(
        total_count=len(orders),
        active_count=sum(1 for o in orders if o.is_active),
        revenue=sum((o.total_amount for o in orders), Decimal("0")),
    )


def kitchen_queue(orders: list[Order]) -> list[Order]:
    return sorted((o for o in orders if o.is_active), key=lambda o: o.created_at)


def by_space(orders: list[Order], space_id) -> list[Order]:
    return [o for o in orders if o.space_id == space_id]
