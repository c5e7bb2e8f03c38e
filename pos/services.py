# pos/services.py
"""Clientes de los servicios del backend: catálogo, pedidos, mesas y auth."""
import logging

from pydantic import ValidationError as SchemaError

from .client import ApiClient
from .errors import PosError
from .models import Category, Order, OrderItem, Product, Space, User

logger = logging.getLogger(__name__)


def _bad_response(model) -> PosError:
    return PosError(f"Respuesta inválida del servidor ({model.__name__})", code="BAD_RESPONSE")


def _parse(model, data):
    try:
        return model.model_validate(data)
    except SchemaError as e:
        logger.warning("Respuesta inválida para %s: %s", model.__name__, e)
        raise _bad_response(model) from e


def _parse_list(model, data):
    if not isinstance(data, list):
        raise _bad_response(model)
    return [_parse(model, d) for d in data]


class CatalogService:
    def __init__(self, api: ApiClient):
        self.api = api

    # categorías
    def list_categories(self) -> list[Category]:
        return _parse_list(Category, self.api.get("/catalog/categories"))

    def create_category(self, category: Category) -> Category:
        return _parse(Category, self.api.post("/catalog/categories", json=category.to_payload()))

    def update_category(self, category_id: int, category: Category) -> Category:
        return _parse(Category, self.api.put(f"/catalog/categories/{category_id}", json=category.to_payload()))

    def delete_category(self, category_id: int):
        self.api.delete(f"/catalog/categories/{category_id}")

    # productos
    def list_products(self) -> list[Product]:
        return _parse_list(Product, self.api.get("/catalog/products"))

    def create_product(self, product: Product) -> Product:
        return _parse(Product, self.api.post("/catalog/products", json=product.to_payload()))

    def update_product(self, product_id: int, product: Product) -> Product:
        return _parse(Product, self.api.put(f"/catalog/products/{product_id}", json=product.to_payload()))

    def delete_product(self, product_id: int):
        self.api.delete(f"/catalog/products/{product_id}")

    # espacios
    def list_spaces(self) -> list[Space]:
        return _parse_list(Space, self.api.get("/catalog/spaces"))

    def create_space(self, space: Space) -> Space:
        return _parse(Space, self.api.post("/catalog/spaces", json=space.to_payload()))

    def update_space(self, space_id: int, space: Space) -> Space:
        return _parse(Space, self.api.put(f"/catalog/spaces/{space_id}", json=space.to_payload()))

    def delete_space(self, space_id: int):
        self.api.delete(f"/catalog/spaces/{space_id}")


def _status_payload(status) -> dict:
    return {"status": str(getattr(status, "value", status))}


class TableService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list_spaces(self) -> list[Space]:
        return _parse_list(Space, self.api.get("/catalog/spaces"))

    def update_space_status(self, space_id: int, status) -> Space:
        return _parse(Space, self.api.put(f"/tables/spaces/{space_id}/status", json=_status_payload(status)))


def _items_payload(items: list[OrderItem]) -> list[dict]:
    return [item.to_payload() for item in items]


class OrderService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list_orders(self, status=None) -> list[Order]:
        params = {}
        if status:
            values = [status] if isinstance(status, str) else list(status)
            params["status"] = ",".join(str(getattr(s, "value", s)) for s in values)
        return _parse_list(Order, self.api.get("/orders", params=params))

    def get_order(self, order_id: int) -> Order:
        return _parse(Order, self.api.get(f"/orders/{order_id}"))

    def orders_by_space(self, space_id: int) -> list[Order]:
        return _parse_list(Order, self.api.get(f"/orders/space/{space_id}"))

    def create_order(self, space_id: int, customer_name: str, items: list[OrderItem],
                     customer_phone: str | None = None, notes: str | None = None,
                     total_amount=None) -> Order:
        payload = {
            "spaceId": space_id,
            "customerName": customer_name,
            "customerPhone": customer_phone,
            "notes": notes,
            "items": _items_payload(items),
        }
        if total_amount is not None:
            payload["totalAmount"] = str(total_amount)
        return _parse(Order, self.api.post("/orders", json=payload))

    def add_items(self, order_id: int, items: list[OrderItem]) -> Order:
        return _parse(Order, self.api.post(f"/orders/{order_id}/items", json={"items": _items_payload(items)}))

    def update_order_status(self, order_id: int, status) -> Order:
        return _parse(Order, self.api.put(f"/orders/{order_id}/status", json=_status_payload(status)))

    def delete_order(self, order_id: int):
        self.api.delete(f"/orders/{order_id}")


class AuthService:
    def __init__(self, api: ApiClient):
        self.api = api

    def login(self, username: str, password: str) -> tuple[str, User]:
        data = self.api.post("/auth/login", json={"username": username, "password": password})
        if not isinstance(data, dict) or "token" not in data:
            raise _bad_response(User)
        return data["token"], _parse(User, data.get("user"))

    def me(self) -> User:
        return _parse(User, self.api.get("/auth/me"))

    def logout(self):
        self.api.post("/auth/logout")

    def health(self) -> dict:
        return self.api.get("/health")
