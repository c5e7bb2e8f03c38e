import logging
from decimal import Decimal

import pytest
import requests

from api import models
from pos.cart import Cart
from pos.catalog import CatalogStore
from pos.client import ApiClient
from pos.errors import TransitionError, TransportError
from pos.lifecycle import OrderLifecycle
from pos.models import SelectedComponent
from pos.orders_view import summarize
from pos.services import CatalogService, OrderService
from pos.status import OrderStatus


def fill_cart(store, data):
    cart = Cart()
    cart.add(store.product(data.lomo))
    cart.add(store.product(data.lomo))
    cart.add(store.product(data.soda))
    return cart


def submit_order(lifecycle, store, data, customer="Ana"):
    cart = fill_cart(store, data)
    outcome = lifecycle.submit(cart, store.space(data.mesa1), customer)
    assert outcome.ok, outcome.message
    return outcome.value


def test_cart_to_order_totals(lifecycle, store, catalog_data):
    cart = fill_cart(store, catalog_data)
    assert cart.total() == Decimal("25")

    outcome = lifecycle.submit(cart, store.space(catalog_data.mesa1), "Ana", customer_phone="999 111 222")

    assert outcome.ok, outcome.message
    order = outcome.value
    assert order.status == OrderStatus.PENDIENTE
    assert order.total_amount == Decimal("25")
    assert len(order.items) == 2
    assert sum(i.total_price for i in order.items) == Decimal("25")
    assert [(i.name, i.quantity, i.unit_price) for i in order.items] == [
        ("Lomo", 2, Decimal("10")),
        ("Soda", 1, Decimal("5")),
    ]
    assert order.order_number in outcome.message
    assert order.customer_phone == "999 111 222"
    assert order.space.name == "Mesa 1"
    assert cart.is_empty()
    assert [o.id for o in lifecycle.orders] == [order.id]


def test_decimal_prices_keep_order_total_exact(lifecycle, store, admin, catalog_data):
    soda = store.product(catalog_data.soda)
    assert admin.save(soda.model_copy(update={"price": Decimal("3.30")})).ok
    cart = Cart()
    for _ in range(3):
        cart.add(store.product(catalog_data.soda))
    assert cart.total() == Decimal("9.90")

    order = lifecycle.submit(cart, store.space(catalog_data.mesa1), "Ana").value

    assert order.total_amount == Decimal("9.90")
    assert order.items[0].unit_price == Decimal("3.30")
    assert order.items_total == order.total_amount
    assert summarize(lifecycle.orders).revenue == Decimal("9.90")


def test_stale_price_is_recomputed_by_backend_and_logged(lifecycle, store, catalog_data, db_factory, caplog):
    cart = Cart()
    cart.add(store.product(catalog_data.soda))
    db = db_factory()
    db.query(models.Producto).filter(models.Producto.id == catalog_data.soda).update({"price": Decimal("6.00")})
    db.commit()
    db.close()

    with caplog.at_level(logging.WARNING, logger="pos.lifecycle"):
        outcome = lifecycle.submit(cart, store.space(catalog_data.mesa1), "Ana")

    assert outcome.ok, outcome.message
    assert outcome.value.total_amount == Decimal("6")
    assert "difiere del carrito 5" in caplog.text


def test_build_order_request_snapshots_catalog_prices(lifecycle, store, catalog_data):
    cart = fill_cart(store, catalog_data)
    request = lifecycle.build_order_request(cart, store.space(catalog_data.mesa1), "  Ana ", notes=" ")
    assert request.customer_name == "Ana"
    assert request.notes is None
    assert request.total_amount == Decimal("25")
    assert [i.total_price for i in request.items] == [Decimal("20"), Decimal("5")]


@pytest.mark.parametrize("with_space,customer,fill,message", [
    (False, "Ana", True, "Selecciona un espacio"),
    (True, "Ana", False, "Agrega al menos un producto"),
    (True, "  ", True, "nombre del cliente"),
])
def test_submit_preconditions_block_without_calling_backend(lifecycle, store, catalog_data,
                                                            with_space, customer, fill, message):
    cart = fill_cart(store, catalog_data) if fill else Cart()
    space = store.space(catalog_data.mesa1) if with_space else None

    outcome = lifecycle.submit(cart, space, customer)

    assert not outcome.ok
    assert message in outcome.message
    assert lifecycle.service.list_orders() == []
    assert cart.count() == (3 if fill else 0)


def test_components_travel_to_the_order(lifecycle, store, catalog_data):
    cart = Cart()
    cart.add(store.product(catalog_data.lomo))
    cart.annotate(catalog_data.lomo, notes="término medio",
                  components=[SelectedComponent(type="ACOMPAÑAMIENTO", name="Arroz", quantity=2)])

    order = lifecycle.submit(cart, store.space(catalog_data.mesa1), "Ana").value

    line = order.items[0]
    assert line.notes == "término medio"
    assert [(c.type, c.name, c.quantity) for c in line.components] == [("ACOMPAÑAMIENTO", "Arroz", 2)]


def test_full_forward_lifecycle(lifecycle, store, catalog_data):
    order = submit_order(lifecycle, store, catalog_data)

    assert lifecycle.start_preparation(order.id).ok
    assert lifecycle.get(order.id).status == OrderStatus.EN_PREPARACION
    assert lifecycle.mark_ready(order.id).ok
    assert lifecycle.get(order.id).status == OrderStatus.LISTO
    assert lifecycle.mark_delivered(order.id).ok
    assert lifecycle.get(order.id).status == OrderStatus.ENTREGADO

    outcome = lifecycle.cancel(order.id)
    assert not outcome.ok
    assert lifecycle.get(order.id).status == OrderStatus.ENTREGADO


def test_ready_order_rejects_backward_then_delivers_and_refuses_delete(lifecycle, store, catalog_data):
    order = submit_order(lifecycle, store, catalog_data)
    lifecycle.start_preparation(order.id)
    lifecycle.mark_ready(order.id)

    outcome = lifecycle.change_status(order.id, "PENDIENTE")
    assert not outcome.ok
    assert lifecycle.get(order.id).status == OrderStatus.LISTO

    # el backend también lo rechaza por su cuenta
    with pytest.raises(TransitionError):
        lifecycle.service.update_order_status(order.id, OrderStatus.PENDIENTE)

    assert lifecycle.change_status(order.id, "ENTREGADO").ok

    outcome = lifecycle.delete(order.id)
    assert not outcome.ok
    assert "pendientes o cancelados" in outcome.message
    assert lifecycle.service.get_order(order.id).status == OrderStatus.ENTREGADO


@pytest.mark.parametrize("steps", [0, 1, 2])
def test_cancel_from_any_non_terminal_state(lifecycle, store, catalog_data, steps):
    order = submit_order(lifecycle, store, catalog_data)
    for action in [lifecycle.start_preparation, lifecycle.mark_ready][:steps]:
        assert action(order.id).ok

    assert lifecycle.cancel(order.id).ok
    assert lifecycle.get(order.id).status == OrderStatus.CANCELADO
    assert not lifecycle.start_preparation(order.id).ok


def test_delete_pending_and_cancelled_orders(lifecycle, store, catalog_data):
    pending = submit_order(lifecycle, store, catalog_data, "Ana")
    cancelled = submit_order(lifecycle, store, catalog_data, "Bruno")
    lifecycle.cancel(cancelled.id)

    assert lifecycle.delete(pending.id).ok
    assert lifecycle.delete(cancelled.id).ok
    assert lifecycle.orders == []


def test_delete_in_preparation_is_refused_by_backend_too(lifecycle, store, catalog_data):
    order = submit_order(lifecycle, store, catalog_data)
    lifecycle.start_preparation(order.id)

    assert not lifecycle.delete(order.id).ok
    with pytest.raises(TransitionError):
        lifecycle.service.delete_order(order.id)


def test_stale_status_conflict_is_reported(api, store, catalog_data):
    first = OrderLifecycle(OrderService(api), store)
    second = OrderLifecycle(OrderService(api), store)
    order = submit_order(first, store, catalog_data)
    second.reload()

    assert first.start_preparation(order.id).ok
    # `second` aún cree que el pedido está PENDIENTE
    outcome = second.start_preparation(order.id)

    assert not outcome.ok
    assert "Transición no permitida" in outcome.message
    assert second.get(order.id).status == OrderStatus.PENDIENTE


def test_unknown_status_and_missing_order(lifecycle, store, catalog_data):
    order = submit_order(lifecycle, store, catalog_data)
    assert not lifecycle.change_status(order.id, "PAGADO").ok
    assert lifecycle.change_status(9999, "LISTO").message == "El pedido no existe"


def test_add_items_increases_total_amount(lifecycle, store, catalog_data):
    order = submit_order(lifecycle, store, catalog_data)
    extra = Cart()
    extra.add(store.product(catalog_data.soda))

    outcome = lifecycle.add_items(order.id, extra)

    assert outcome.ok, outcome.message
    updated = lifecycle.get(order.id)
    assert updated.total_amount == Decimal("30")
    assert updated.items_total == Decimal("30")
    assert len(updated.items) == 3
    assert extra.is_empty()


def test_add_items_refused_on_terminal_order(lifecycle, store, catalog_data):
    order = submit_order(lifecycle, store, catalog_data)
    lifecycle.cancel(order.id)
    extra = Cart()
    extra.add(store.product(catalog_data.soda))

    assert not lifecycle.add_items(order.id, extra).ok
    assert extra.count() == 1


def test_product_disabled_after_cart_load_is_reported(lifecycle, store, catalog_data, admin):
    cart = fill_cart(store, catalog_data)
    lomo = store.product(catalog_data.lomo)
    assert admin.save(lomo.model_copy(update={"is_available": False})).ok

    outcome = lifecycle.submit(cart, store.space(catalog_data.mesa1), "Ana")

    assert not outcome.ok
    assert "no está disponible" in outcome.message
    assert cart.count() == 3


class BrokenHttp:
    def request(self, method, url, **kwargs):
        raise requests.ConnectionError("sin red")


def test_transport_failure_is_reported_not_raised():
    api = ApiClient(base_url="http://pos.local", http=BrokenHttp())
    store = CatalogStore(CatalogService(api))
    lifecycle = OrderLifecycle(OrderService(api), store)

    assert not store.reload().ok
    outcome = lifecycle.reload()
    assert not outcome.ok
    assert "sin red" in outcome.message
    with pytest.raises(TransportError):
        api.get("/orders")


class GarbledResponse:
    status_code = 200
    content = b"[...]"

    def json(self):
        return [{"id": "no-es-un-id"}]


class GarbledHttp:
    def request(self, method, url, **kwargs):
        return GarbledResponse()


def test_malformed_payload_is_reported_not_raised():
    api = ApiClient(base_url="http://pos.local", http=GarbledHttp())
    store = CatalogStore(CatalogService(api))
    lifecycle = OrderLifecycle(OrderService(api), store)

    outcome = store.reload()
    assert not outcome.ok
    assert "Respuesta inválida" in outcome.message
    outcome = lifecycle.reload()
    assert not outcome.ok
    assert "Respuesta inválida" in outcome.message
    assert lifecycle.orders == []
