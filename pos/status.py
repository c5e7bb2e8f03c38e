# pos/status.py
"""Estados de pedido y transiciones permitidas.

Lo usan tanto el cliente (como atajo antes de llamar a la API) como el
backend, que es quien finalmente rechaza los cambios ilegales.
"""
from enum import Enum

from .errors import TransitionError


class OrderStatus(str, Enum):
    PENDIENTE = "PENDIENTE"
    EN_PREPARACION = "EN_PREPARACION"
    LISTO = "LISTO"
    ENTREGADO = "ENTREGADO"
    CANCELADO = "CANCELADO"


TERMINAL = frozenset({OrderStatus.ENTREGADO, OrderStatus.CANCELADO})
ACTIVE = frozenset({OrderStatus.PENDIENTE, OrderStatus.EN_PREPARACION})
DELETABLE = frozenset({OrderStatus.PENDIENTE, OrderStatus.CANCELADO})

TRANSITIONS = {
    OrderStatus.PENDIENTE: frozenset({OrderStatus.EN_PREPARACION, OrderStatus.CANCELADO}),
    OrderStatus.EN_PREPARACION: frozenset({OrderStatus.LISTO, OrderStatus.CANCELADO}),
    OrderStatus.LISTO: frozenset({OrderStatus.ENTREGADO, OrderStatus.CANCELADO}),
    OrderStatus.ENTREGADO: frozenset(),
    OrderStatus.CANCELADO: frozenset(),
}

# acción de personal -> estado destino
ACTIONS = {
    "start_preparation": OrderStatus.EN_PREPARACION,
    "mark_ready": OrderStatus.LISTO,
    "mark_delivered": OrderStatus.ENTREGADO,
    "cancel": OrderStatus.CANCELADO,
}

LABELS = {
    OrderStatus.PENDIENTE: "Pendiente",
    OrderStatus.EN_PREPARACION: "Preparando",
    OrderStatus.LISTO: "Listo",
    OrderStatus.ENTREGADO: "Entregado",
    OrderStatus.CANCELADO: "Cancelado",
}


def is_terminal(status) -> bool:
    return OrderStatus(status) in TERMINAL


def can_transition(current, target) -> bool:
    return OrderStatus(target) in TRANSITIONS[OrderStatus(current)]


def check_transition(current, target):
    current, target = OrderStatus(current), OrderStatus(target)
    if target not in TRANSITIONS[current]:
        raise TransitionError(
            f"No se puede pasar un pedido de {LABELS[current]} a {LABELS[target]}"
        )
    return target


def can_delete(status) -> bool:
    return OrderStatus(status) in DELETABLE


def check_delete(status):
    status = OrderStatus(status)
    if status not in DELETABLE:
        raise TransitionError(
            f"Solo se pueden eliminar pedidos pendientes o cancelados (estado actual: {LABELS[status]})"
        )


def available_actions(status) -> list[str]:
    """Acciones que el personal puede disparar desde ``status``, en orden fijo."""
    allowed = TRANSITIONS[OrderStatus(status)]
    return [name for name, target in ACTIONS.items() if target in allowed]
