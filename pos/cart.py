# pos/cart.py
from dataclasses import dataclass, field
from decimal import Decimal

from .errors import CartError
from .models import Product, SelectedComponent, Space


@dataclass
class CartItem:
    product: Product
    quantity: int = 1
    notes: str | None = None
    components: list[SelectedComponent] = field(default_factory=list)

    @property
    def unit_price(self) -> Decimal:
        return self.product.price or Decimal("0")

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class Cart:
    """Selección de productos de una sesión antes de confirmar el pedido.

    Hay una línea por producto; el total se recalcula en cada lectura.
    """

    def __init__(self):
        self._items: list[CartItem] = []

    def _find(self, product_id):
        for item in self._items:
            if item.product.id == product_id:
                return item
        return None

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    def add(self, product: Product) -> CartItem:
        if not product.is_available:
            raise CartError(f"{product.name} no está disponible")
        item = self._find(product.id)
        if item:
            item.quantity += 1
        else:
            item = CartItem(product=product)
            self._items.append(item)
        return item

    def remove(self, product_id):
        self._items = [i for i in self._items if i.product.id != product_id]

    def set_quantity(self, product_id, quantity: int):
        if quantity <= 0:
            self.remove(product_id)
            return
        item = self._find(product_id)
        if item:
            item.quantity = quantity

    def annotate(self, product_id, notes: str | None = None, components: list[SelectedComponent] | None = None):
        """Adjunta notas o la selección de un combo a la línea del producto."""
        item = self._find(product_id)
        if not item:
            raise CartError("El producto no está en el carrito")
        if notes is not None:
            item.notes = notes
        if components is not None:
            item.components = list(components)

    def total(self) -> Decimal:
        return sum((i.subtotal for i in self._items), Decimal("0"))

    def count(self) -> int:
        return sum(i.quantity for i in self._items)

    def is_empty(self) -> bool:
        return not self._items

    def clear(self):
        self._items = []

    def check_submission(self, space: Space | None, customer_name: str | None) -> str | None:
        """Motivo por el que no se puede enviar el pedido, o ``None`` si se puede."""
        if space is None:
            return "Selecciona un espacio para el pedido"
        if self.is_empty():
            return "Agrega al menos un producto al carrito"
        if not (customer_name or "").strip():
            return "Ingresa el nombre del cliente"
        return None
