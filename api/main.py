# api/main.py
import logging
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash

from pos.models import ProductType, SpaceStatus, SpaceType, UserRole
from pos.status import OrderStatus, can_delete, can_transition, is_terminal

from . import models
from .config import LOG_LEVEL
from .db import SessionLocal, engine
from .security import new_token

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="API Restaurante POS")


# ----- DB -----
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ----- Errores -----
class ApiError(Exception):
    def __init__(self, status_code: int, message: str, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


@app.exception_handler(ApiError)
def api_error_handler(request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content={"error": {"code": exc.code, "message": exc.message}})


UNIQUE_INDEXES = ("product_code_lower_uk", "product_name_cat_ci_uk", "space_code_uk")


def commit(db: Session):
    """Confirma la transacción traduciendo violaciones de unicidad a 409."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raw = str(e.orig)
        name = next((n for n in UNIQUE_INDEXES if n in raw), None)
        if name is None:
            match = re.search(r'constraint "([^"]+)"', raw)
            name = match.group(1) if match else "unknown"
        logger.warning("Violación de unicidad: %s", raw)
        raise ApiError(409, f'duplicate key value violates unique constraint "{name}"', "DUPLICATE")


def now():
    return datetime.now(timezone.utc)


# ----- Schemas -----
# importes exactos; en JSON viajan como número
Dinero = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UsuarioOut(CamelModel):
    id: int
    username: str
    role: UserRole
    first_name: str | None = None
    last_name: str | None = None


class LoginIn(CamelModel):
    username: str
    password: str


class CategoriaIn(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None
    ord: int = 0
    is_active: bool = True


class CategoriaOut(CategoriaIn):
    id: int


class ProductoIn(CamelModel):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category_id: int
    price: Dinero = Field(gt=0)
    type: ProductType = ProductType.COMIDA
    description: str | None = None
    preparation_time: int = 15
    is_enabled: bool = True
    is_available: bool = True


class ProductoOut(ProductoIn):
    id: int


class EspacioIn(CamelModel):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: SpaceType = SpaceType.MESA
    capacity: int | None = None
    status: SpaceStatus = SpaceStatus.LIBRE
    is_active: bool = True
    notes: str | None = None


class EspacioOut(EspacioIn):
    id: int


class EspacioRef(CamelModel):
    id: int
    code: str
    name: str


class EstadoEspacioIn(CamelModel):
    status: SpaceStatus


class Componente(CamelModel):
    type: str
    name: str
    quantity: int = Field(1, ge=1)


class DetalleIn(CamelModel):
    product_id: int
    quantity: int = Field(gt=0)
    notes: str | None = None
    components: list[Componente] = []


class DetalleOut(CamelModel):
    id: int
    product_id: int | None = None
    name: str
    quantity: int
    unit_price: Dinero
    total_price: Dinero
    notes: str | None = None
    components: list[Componente] = []


class PedidoCreate(CamelModel):
    space_id: int
    customer_name: str
    customer_phone: str | None = None
    notes: str | None = None
    total_amount: Decimal | None = None
    items: list[DetalleIn] = Field(min_length=1)


class ItemsIn(CamelModel):
    items: list[DetalleIn] = Field(min_length=1)


class EstadoPedidoIn(CamelModel):
    status: OrderStatus


class PedidoOut(CamelModel):
    id: int
    order_number: str
    space_id: int
    space: EspacioRef | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    status: OrderStatus
    items: list[DetalleOut] = []
    total_amount: Dinero
    created_at: datetime
    updated_at: datetime | None = None
    notes: str | None = None


# ----- Auth -----
def get_current_user(authorization: str | None = Header(None), db: Session = Depends(get_db)):
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="No autorizado")
    user = db.query(models.Usuario).filter(models.Usuario.token == authorization[7:]).first()
    if not user:
        raise HTTPException(status_code=401, detail="Sesión expirada o inválida")
    return user


def require_admin(user: models.Usuario = Depends(get_current_user)):
    if user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=403, detail="Se requiere rol ADMIN")
    return user


@app.get("/health")
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}


@app.post("/auth/login")
def login(data: LoginIn, db: Session = Depends(get_db)):
    user = db.query(models.Usuario).filter(models.Usuario.username == data.username).first()
    if not user or not check_password_hash(user.password_hash, data.password):
        raise HTTPException(status_code=401, detail="Usuario o contraseña incorrectos")
    user.token = new_token()
    db.commit()
    logger.info("Login de %s", user.username)
    return {"token": user.token, "user": UsuarioOut.model_validate(user).model_dump(by_alias=True)}


@app.get("/auth/me", response_model=UsuarioOut)
def me(user: models.Usuario = Depends(get_current_user)):
    return user


@app.post("/auth/logout")
def logout(user: models.Usuario = Depends(get_current_user), db: Session = Depends(get_db)):
    user.token = None
    db.commit()
    return {"status": "ok"}


# ---------------- CATÁLOGO ----------------
def _get_or_404(db: Session, model, oid: int, detail: str):
    obj = db.query(model).filter(model.id == oid).first()
    if not obj:
        raise HTTPException(404, detail)
    return obj


def _assign(obj, data: BaseModel):
    for key, value in data.model_dump().items():
        setattr(obj, key, value.value if hasattr(value, "value") else value)


@app.get("/catalog/categories", response_model=list[CategoriaOut])
def listar_categorias(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(models.Categoria).order_by(models.Categoria.ord, models.Categoria.id).all()


@app.post("/catalog/categories", response_model=CategoriaOut, dependencies=[Depends(require_admin)])
def crear_categoria(c: CategoriaIn, db: Session = Depends(get_db)):
    nueva = models.Categoria()
    _assign(nueva, c)
    db.add(nueva)
    commit(db)
    db.refresh(nueva)
    return nueva


@app.put("/catalog/categories/{cid}", response_model=CategoriaOut, dependencies=[Depends(require_admin)])
def actualizar_categoria(cid: int, c: CategoriaIn, db: Session = Depends(get_db)):
    cat = _get_or_404(db, models.Categoria, cid, "Categoría no encontrada")
    _assign(cat, c)
    commit(db)
    return cat


@app.delete("/catalog/categories/{cid}", dependencies=[Depends(require_admin)])
def eliminar_categoria(cid: int, db: Session = Depends(get_db)):
    cat = _get_or_404(db, models.Categoria, cid, "Categoría no encontrada")
    if cat.productos:
        raise ApiError(409, "La categoría tiene productos asociados", "IN_USE")
    db.delete(cat)
    db.commit()
    return {"status": "deleted"}


@app.get("/catalog/products", response_model=list[ProductoOut])
def listar_productos(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(models.Producto).order_by(models.Producto.id).all()


def _check_category(db: Session, category_id: int):
    if not db.query(models.Categoria).filter(models.Categoria.id == category_id).first():
        raise ApiError(422, "La categoría seleccionada no existe", "categoryId")


@app.post("/catalog/products", response_model=ProductoOut, dependencies=[Depends(require_admin)])
def crear_producto(p: ProductoIn, db: Session = Depends(get_db)):
    _check_category(db, p.category_id)
    nuevo = models.Producto()
    _assign(nuevo, p)
    db.add(nuevo)
    commit(db)
    db.refresh(nuevo)
    logger.info("Producto creado: %s (%s)", nuevo.name, nuevo.code)
    return nuevo


@app.put("/catalog/products/{pid}", response_model=ProductoOut, dependencies=[Depends(require_admin)])
def actualizar_producto(pid: int, p: ProductoIn, db: Session = Depends(get_db)):
    prod = _get_or_404(db, models.Producto, pid, "Producto no encontrado")
    _check_category(db, p.category_id)
    _assign(prod, p)
    commit(db)
    return prod


@app.delete("/catalog/products/{pid}", dependencies=[Depends(require_admin)])
def eliminar_producto(pid: int, db: Session = Depends(get_db)):
    prod = _get_or_404(db, models.Producto, pid, "Producto no encontrado")
    # los detalles de pedido conservan su copia de nombre y precio
    db.query(models.PedidoDetalle).filter(models.PedidoDetalle.product_id == pid).update({"product_id": None})
    db.delete(prod)
    db.commit()
    return {"status": "deleted"}


@app.get("/catalog/spaces", response_model=list[EspacioOut])
def listar_espacios(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(models.Espacio).order_by(models.Espacio.id).all()


@app.post("/catalog/spaces", response_model=EspacioOut, dependencies=[Depends(require_admin)])
def crear_espacio(s: EspacioIn, db: Session = Depends(get_db)):
    nuevo = models.Espacio()
    _assign(nuevo, s)
    db.add(nuevo)
    commit(db)
    db.refresh(nuevo)
    return nuevo


@app.put("/catalog/spaces/{sid}", response_model=EspacioOut, dependencies=[Depends(require_admin)])
def actualizar_espacio(sid: int, s: EspacioIn, db: Session = Depends(get_db)):
    esp = _get_or_404(db, models.Espacio, sid, "Espacio no encontrado")
    _assign(esp, s)
    commit(db)
    return esp


@app.delete("/catalog/spaces/{sid}", dependencies=[Depends(require_admin)])
def eliminar_espacio(sid: int, db: Session = Depends(get_db)):
    esp = _get_or_404(db, models.Espacio, sid, "Espacio no encontrado")
    if esp.pedidos:
        raise ApiError(409, "El espacio tiene pedidos asociados", "IN_USE")
    db.delete(esp)
    db.commit()
    return {"status": "deleted"}


# El estado de la mesa lo cambia el personal; no se deriva de los pedidos
@app.put("/tables/spaces/{sid}/status", response_model=EspacioOut)
def actualizar_estado_espacio(sid: int, data: EstadoEspacioIn, user=Depends(get_current_user),
                              db: Session = Depends(get_db)):
    esp = _get_or_404(db, models.Espacio, sid, "Espacio no encontrado")
    esp.status = data.status.value
    db.commit()
    return esp


# ---------------- PEDIDOS ----------------
def _detalles(db: Session, items: list[DetalleIn]):
    detalles = []
    for item in items:
        prod = db.query(models.Producto).filter(models.Producto.id == item.product_id).first()
        if not prod:
            raise HTTPException(404, f"Producto {item.product_id} no existe")
        if not (prod.is_enabled and prod.is_available):
            raise ApiError(409, f"{prod.name} no está disponible", "UNAVAILABLE")

        subtotal = prod.price * item.quantity
        detalles.append(models.PedidoDetalle(
            product_id=prod.id,
            name=prod.name,
            quantity=item.quantity,
            unit_price=prod.price,
            total_price=subtotal,
            notes=item.notes,
            components=[c.model_dump() for c in item.components],
        ))
    return detalles


@app.get("/orders", response_model=list[PedidoOut])
def listar_pedidos(status: str | None = Query(None), user=Depends(get_current_user),
                   db: Session = Depends(get_db)):
    q = db.query(models.Pedido)
    if status:
        try:
            estados = [OrderStatus(s.strip()).value for s in status.split(",") if s.strip()]
        except ValueError:
            raise HTTPException(422, f"Estado desconocido: {status}")
        q = q.filter(models.Pedido.status.in_(estados))
    return q.order_by(models.Pedido.created_at.desc(), models.Pedido.id.desc()).all()


@app.get("/orders/space/{sid}", response_model=list[PedidoOut])
def pedidos_espacio(sid: int, user=Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(models.Pedido)
        .filter(models.Pedido.space_id == sid)
        .order_by(models.Pedido.created_at.desc(), models.Pedido.id.desc())
        .all()
    )


@app.get("/orders/{oid}", response_model=PedidoOut)
def obtener_pedido(oid: int, user=Depends(get_current_user), db: Session = Depends(get_db)):
    return _get_or_404(db, models.Pedido, oid, "Pedido no existe")


@app.post("/orders", response_model=PedidoOut)
def crear_pedido(data: PedidoCreate, user=Depends(get_current_user), db: Session = Depends(get_db)):
    if not data.customer_name.strip():
        raise ApiError(422, "El nombre del cliente es requerido", "customerName")
    _get_or_404(db, models.Espacio, data.space_id, "Espacio no encontrado")

    ahora = now()
    nuevo = models.Pedido(
        space_id=data.space_id,
        customer_name=data.customer_name.strip(),
        customer_phone=data.customer_phone,
        notes=data.notes,
        status=OrderStatus.PENDIENTE.value,
        created_by=user.id,
        created_at=ahora,
        updated_at=ahora,
    )
    nuevo.items = _detalles(db, data.items)
    nuevo.total_amount = sum((d.total_price for d in nuevo.items), Decimal("0"))
    if data.total_amount is not None and data.total_amount != nuevo.total_amount:
        logger.warning(
            "Total enviado %s no coincide con el calculado %s; se usan los precios del catálogo",
            data.total_amount, nuevo.total_amount,
        )

    db.add(nuevo)
    db.flush()
    nuevo.order_number = f"{ahora:%Y%m%d}-{nuevo.id:04d}"
    db.commit()
    db.refresh(nuevo)

    logger.info("Pedido %s creado por %s, total %.2f", nuevo.order_number, user.username, nuevo.total_amount)
    return nuevo


@app.post("/orders/{oid}/items", response_model=PedidoOut)
def agregar_items(oid: int, data: ItemsIn, user=Depends(get_current_user), db: Session = Depends(get_db)):
    pedido = _get_or_404(db, models.Pedido, oid, "Pedido no existe")
    if is_terminal(pedido.status):
        raise ApiError(409, f"El pedido está {pedido.status}; no admite más productos", "INVALID_TRANSITION")

    detalles = _detalles(db, data.items)
    pedido.items.extend(detalles)
    agregado = sum((d.total_price for d in detalles), Decimal("0"))
    pedido.total_amount = (pedido.total_amount or Decimal("0")) + agregado
    pedido.updated_at = now()
    db.commit()
    db.refresh(pedido)
    return pedido


@app.put("/orders/{oid}/status", response_model=PedidoOut)
def actualizar_estado(oid: int, data: EstadoPedidoIn, user=Depends(get_current_user),
                      db: Session = Depends(get_db)):
    pedido = _get_or_404(db, models.Pedido, oid, "Pedido no existe")
    if not can_transition(pedido.status, data.status):
        raise ApiError(
            409, f"Transición no permitida: {pedido.status} -> {data.status.value}", "INVALID_TRANSITION"
        )

    anterior = pedido.status
    pedido.status = data.status.value
    pedido.updated_at = now()
    db.commit()
    db.refresh(pedido)
    logger.info("Pedido %s: %s -> %s (%s)", pedido.order_number, anterior, pedido.status, user.username)
    return pedido


@app.delete("/orders/{oid}")
def eliminar_pedido(oid: int, user=Depends(get_current_user), db: Session = Depends(get_db)):
    pedido = _get_or_404(db, models.Pedido, oid, "Pedido no existe")
    if not can_delete(pedido.status):
        raise ApiError(
            409, f"Solo se pueden eliminar pedidos pendientes o cancelados (estado: {pedido.status})",
            "INVALID_TRANSITION",
        )
    db.delete(pedido)
    db.commit()
    logger.info("Pedido %s eliminado por %s", pedido.order_number, user.username)
    return {"status": "deleted"}
