# pos/lifecycle.py
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from . import status as order_status
from .cart import Cart
from .catalog import CatalogStore
from .errors import CartError, NotFoundError, Outcome, PosError
from .models import Order, OrderItem, Space
from .services import OrderService
from .status import LABELS, OrderStatus

logger = logging.getLogger(__name__)


@dataclass
class OrderRequest:
    space_id: int
    customer_name: str
    items: list[OrderItem]
    customer_phone: str | None = None
    notes: str | None = None
    total_amount: Decimal = field(default=Decimal("0"))


class OrderLifecycle:
    """Crea pedidos desde el carrito y los mueve por sus estados.

    La caché ``orders`` solo cambia al recargar después de que el backend
    confirma una escritura.
    """

    def __init__(self, orders: OrderService, store: CatalogStore):
        self.service = orders
        self.store = store
        self.orders: list[Order] = []

    def reload(self) -> Outcome:
        try:
            self.orders = self.service.list_orders()
        except PosError as e:
            logger.warning("Error cargando pedidos: %s", e)
            return Outcome.failure(f"Error cargando pedidos: {e}")
        return Outcome.success(f"{len(self.orders)} pedidos", self.orders)

    def get(self, order_id) -> Order | None:
        return next((o for o in self.orders if o.id == order_id), None)

    # ----- creación -----
    def snapshot_items(self, cart: Cart) -> list[OrderItem]:
        items = []
        for line in cart.items:
            product = self.store.product(line.product.id)
            if product is None:
                raise CartError(f"{line.product.name} ya no existe en el catálogo")
            if not (product.is_enabled and product.is_available):
                raise CartError(f"{product.name} no está disponible")
            unit_price = product.price or Decimal("0")
            items.append(OrderItem(
                product_id=product.id,
                name=product.name,
                quantity=line.quantity,
                unit_price=unit_price,
                total_price=unit_price * line.quantity,
                notes=line.notes,
                components=line.components,
            ))
        return items

    def build_order_request(self, cart: Cart, space: Space, customer_name: str,
                            customer_phone: str | None = None, notes: str | None = None) -> OrderRequest:
        items = self.snapshot_items(cart)
        return OrderRequest(
            space_id=space.id,
            customer_name=customer_name.strip(),
            items=items,
            customer_phone=(customer_phone or "").strip() or None,
            notes=(notes or "").strip() or None,
            total_amount=sum((i.total_price for i in items), Decimal("0")),
        )

    def submit(self, cart: Cart, space: Space | None, customer_name: str | None,
               customer_phone: str | None = None, notes: str | None = None) -> Outcome:
        reason = cart.check_submission(space, customer_name)
        if reason:
            return Outcome.failure(reason)

        try:
            request = self.build_order_request(cart, space, customer_name, customer_phone, notes)
            order = self.service.create_order(
                request.space_id, request.customer_name, request.items,
                customer_phone=request.customer_phone, notes=request.notes,
                total_amount=request.total_amount,
            )
        except PosError as e:
            logger.warning("Error creando pedido en %s: %s", space.code, e)
            return Outcome.failure(f"Error al crear la orden: {e}")

        if order.total_amount != request.total_amount:
            logger.warning("Pedido %s: el total del servidor %s difiere del carrito %s",
                           order.order_number, order.total_amount, request.total_amount)
        cart.clear()
        logger.info("Pedido %s creado en %s por %s", order.order_number, space.code, order.total_amount)
        self.reload()
        return Outcome.success(f"¡Orden creada exitosamente! Número de orden: {order.order_number}", order)

    def add_items(self, order_id, cart: Cart) -> Outcome:
        if cart.is_empty():
            return Outcome.failure("Agrega al menos un producto al carrito")
        order = self.get(order_id)
        if order is None:
            return Outcome.failure("El pedido no existe")
        if order_status.is_terminal(order.status):
            return Outcome.failure(f"No se pueden agregar productos a un pedido {LABELS[order.status].lower()}")

        try:
            updated = self.service.add_items(order_id, self.snapshot_items(cart))
        except PosError as e:
            logger.warning("Error agregando productos al pedido %s: %s", order_id, e)
            return Outcome.failure(f"Error al agregar productos: {e}")

        cart.clear()
        self.reload()
        return Outcome.success(f"Productos agregados al pedido {updated.order_number}", updated)

    # ----- transiciones -----
    def change_status(self, order_id, target) -> Outcome:
        order = self.get(order_id)
        if order is None:
            return Outcome.failure("El pedido no existe")

        try:
            target = order_status.check_transition(order.status, target)
            updated = self.service.update_order_status(order_id, target)
        except ValueError:
            return Outcome.failure(f"Estado desconocido: {target}")
        except NotFoundError:
            self.reload()
            return Outcome.failure("El pedido ya no existe")
        except PosError as e:
            logger.warning("Error cambiando el pedido %s a %s: %s", order_id, target, e)
            return Outcome.failure(f"Error al actualizar el estado de la orden: {e}")

        logger.info("Pedido %s: %s -> %s", updated.order_number, order.status.value, updated.status.value)
        self.reload()
        return Outcome.success(f"Pedido {updated.order_number}: {LABELS[updated.status]}", updated)

    def start_preparation(self, order_id) -> Outcome:
        return self.change_status(order_id, OrderStatus.EN_PREPARACION)

    def mark_ready(self, order_id) -> Outcome:
        return self.change_status(order_id, OrderStatus.LISTO)

    def mark_delivered(self, order_id) -> Outcome:
        return self.change_status(order_id, OrderStatus.ENTREGADO)

    def cancel(self, order_id) -> Outcome:
        return self.change_status(order_id, OrderStatus.CANCELADO)

    def delete(self, order_id) -> Outcome:
        order = self.get(order_id)
        if order is None:
            return Outcome.failure("El pedido no existe")

        try:
            order_status.check_delete(order.status)
            self.service.delete_order(order_id)
        except PosError as e:
            logger.warning("Error eliminando el pedido %s: %s", order_id, e)
            return Outcome.failure(f"Error al eliminar el pedido: {e}")

        logger.info("Pedido %s eliminado", order.order_number)
        self.reload()
        return Outcome.success("Pedido eliminado exitosamente")
