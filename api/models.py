# api/models.py
from sqlalchemy import (
    JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, func,
)
from sqlalchemy.orm import relationship

from .db import Base


class Usuario(Base):
    __tablename__ = "Usuarios"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False, default="MOZO")
    first_name = Column(String(100))
    last_name = Column(String(100))
    token = Column(String(64), unique=True, index=True, nullable=True)


class Categoria(Base):
    __tablename__ = "Categorias"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(500), nullable=True)
    ord = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)

    productos = relationship("Producto", back_populates="categoria")


class Producto(Base):
    __tablename__ = "Productos"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    category_id = Column(Integer, ForeignKey("Categorias.id"), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    type = Column(String(20), nullable=False, default="COMIDA")
    description = Column(String(500), nullable=True)
    preparation_time = Column(Integer, default=15)
    is_enabled = Column(Boolean, default=True)
    is_available = Column(Boolean, default=True)

    categoria = relationship("Categoria", back_populates="productos")


# unicidad sin distinguir mayúsculas; los nombres de índice los interpreta el cliente
Index("product_code_lower_uk", func.lower(Producto.code), unique=True)
Index("product_name_cat_ci_uk", Producto.category_id, func.lower(Producto.name), unique=True)


class Espacio(Base):
    __tablename__ = "Espacios"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, default="MESA")
    capacity = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="LIBRE")
    is_active = Column(Boolean, default=True)
    notes = Column(String(500), nullable=True)

    pedidos = relationship("Pedido", back_populates="space")


Index("space_code_uk", func.lower(Espacio.code), unique=True)


class Pedido(Base):
    __tablename__ = "Pedidos"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(30), unique=True, nullable=True)
    space_id = Column(Integer, ForeignKey("Espacios.id"), nullable=False)
    customer_name = Column(String(255))
    customer_phone = Column(String(50))
    status = Column(String(20), nullable=False, default="PENDIENTE")
    total_amount = Column(Numeric(10, 2), default=0)
    notes = Column(String(1000))
    created_by = Column(Integer, ForeignKey("Usuarios.id"), nullable=True)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    space = relationship("Espacio", back_populates="pedidos")
    items = relationship(
        "PedidoDetalle", back_populates="pedido", cascade="all, delete-orphan", order_by="PedidoDetalle.id"
    )


class PedidoDetalle(Base):
    __tablename__ = "PedidoDetalles"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("Pedidos.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("Productos.id"), nullable=True)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    notes = Column(String(1000))
    components = Column(JSON, nullable=False, default=list)

    pedido = relationship("Pedido", back_populates="items")
