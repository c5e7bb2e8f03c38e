# pos/models.py
"""Entidades del catálogo y de pedidos tal como viajan por la API (camelCase)."""
import json
import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .status import ACTIVE, OrderStatus


class ProductType(str, Enum):
    COMIDA = "COMIDA"
    BEBIDA = "BEBIDA"
    POSTRE = "POSTRE"
    ADICIONAL = "ADICIONAL"


class SpaceType(str, Enum):
    MESA = "MESA"
    BARRA = "BARRA"
    DELIVERY = "DELIVERY"
    RESERVA = "RESERVA"


class SpaceStatus(str, Enum):
    LIBRE = "LIBRE"
    OCUPADA = "OCUPADA"
    RESERVADA = "RESERVADA"
    MANTENIMIENTO = "MANTENIMIENTO"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MOZO = "MOZO"
    COCINERO = "COCINERO"
    CAJA = "CAJA"
    BARRA = "BARRA"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self, exclude=None) -> dict:
        skip = {"id", "kind"} | set(exclude or ())
        return self.model_dump(mode="json", by_alias=True, exclude=skip)


# ----- Catálogo -----
class Category(WireModel):
    kind: Literal["category"] = "category"
    id: int | None = None
    name: str = ""
    description: str | None = None
    ord: int = 0
    is_active: bool = True


class Product(WireModel):
    kind: Literal["product"] = "product"
    id: int | None = None
    code: str = ""
    name: str = ""
    category_id: int | None = None
    price: Decimal | None = None
    type: ProductType = ProductType.COMIDA
    description: str | None = None
    preparation_time: int = 15
    is_enabled: bool = True
    is_available: bool = True


class Space(WireModel):
    kind: Literal["space"] = "space"
    id: int | None = None
    code: str = ""
    name: str = ""
    type: SpaceType = SpaceType.MESA
    capacity: int | None = None
    status: SpaceStatus = SpaceStatus.LIBRE
    is_active: bool = True
    notes: str | None = None


CatalogEntity = Annotated[Union[Product, Category, Space], Field(discriminator="kind")]


# ----- Pedidos -----
class SelectedComponent(WireModel):
    """Componente elegido dentro de un combo (sabor, acompañamiento, salsa...)."""

    type: str
    name: str
    quantity: int = Field(1, ge=1)


_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


def _quantity(value) -> int:
    try:
        return max(int(value), 1)
    except (TypeError, ValueError):
        return 1


def decode_legacy_notes(notes: str):
    """Extrae la selección de un combo guardada como JSON dentro de las notas.

    Devuelve ``(componentes, notas_restantes)``. Si las notas no contienen
    una selección reconocible se devuelven intactas y sin componentes.
    """
    match = _JSON_BLOCK.search(notes)
    if not match:
        return [], notes
    try:
        payload = json.loads(match.group(0))
    except ValueError:
        return [], notes
    if not isinstance(payload, dict) or not {"selectedComponents", "selectedSauces"} & payload.keys():
        return [], notes

    components = []
    selected = payload.get("selectedComponents") or {}
    if isinstance(selected, dict):
        for ctype, entries in selected.items():
            for entry in entries or []:
                if isinstance(entry, str):
                    components.append(SelectedComponent(type=ctype, name=entry))
                elif isinstance(entry, dict) and entry.get("name"):
                    components.append(
                        SelectedComponent(type=ctype, name=entry["name"], quantity=_quantity(entry.get("quantity")))
                    )
    for sauce in payload.get("selectedSauces") or []:
        if isinstance(sauce, str):
            components.append(SelectedComponent(type="SALSA", name=sauce))

    rest = (notes[:match.start()] + notes[match.end():]).strip()
    return components, rest or None


class OrderItem(WireModel):
    id: int | None = None
    product_id: int | None = None
    name: str
    quantity: int = Field(gt=0)
    unit_price: Decimal
    total_price: Decimal
    notes: str | None = None
    components: list[SelectedComponent] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _legacy_components(cls, data):
        if not isinstance(data, dict) or data.get("components"):
            return data
        notes = data.get("notes")
        if isinstance(notes, str) and notes:
            components, rest = decode_legacy_notes(notes)
            if components:
                data = {**data, "components": components, "notes": rest}
        return data


class SpaceRef(WireModel):
    id: int
    code: str
    name: str


class Order(WireModel):
    id: int
    order_number: str
    space_id: int
    space: SpaceRef | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    status: OrderStatus
    items: list[OrderItem] = Field(default_factory=list)
    total_amount: Decimal = Field(ge=0)
    created_at: datetime
    updated_at: datetime | None = None
    notes: str | None = None

    @property
    def items_total(self) -> Decimal:
        # puede diferir de total_amount, que es el total vigente según el backend
        return sum((item.total_price for item in self.items), Decimal("0"))

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE

    @property
    def space_name(self) -> str:
        return self.space.name if self.space else ""


class User(WireModel):
    id: int
    username: str
    role: UserRole
    first_name: str | None = None
    last_name: str | None = None
