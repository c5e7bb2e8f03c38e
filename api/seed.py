# api/seed.py
"""Crea las tablas, el usuario administrador y un catálogo de ejemplo.

Uso: ``python -m api.seed [--demo]``
"""
import sys
from decimal import Decimal

from werkzeug.security import generate_password_hash

from . import models
from .config import ADMIN_PASSWORD, ADMIN_USERNAME
from .db import SessionLocal, engine

DEMO_CATEGORIES = [
    ("Platos", 1, [
        ("PL-001", "Lomo saltado", Decimal("32.00"), "COMIDA"),
        ("PL-002", "Ají de gallina", Decimal("28.00"), "COMIDA"),
    ]),
    ("Bebidas", 2, [
        ("BE-001", "Chicha morada", Decimal("8.00"), "BEBIDA"),
        ("BE-002", "Soda", Decimal("5.00"), "BEBIDA"),
    ]),
    ("Postres", 3, [("PO-001", "Suspiro limeño", Decimal("12.00"), "POSTRE")]),
]

DEMO_SPACES = [
    ("M1", "Mesa 1", "MESA", 4),
    ("M2", "Mesa 2", "MESA", 4),
    ("B1", "Barra 1", "BARRA", 1),
    ("D1", "Delivery", "DELIVERY", None),
]


def seed_admin(db, username: str, password: str):
    if db.query(models.Usuario).filter(models.Usuario.username == username).first():
        return
    db.add(models.Usuario(username=username, password_hash=generate_password_hash(password), role="ADMIN"))
    db.commit()
    print(f"Usuario administrador '{username}' creado")


def seed_demo(db):
    if db.query(models.Categoria).first():
        return
    for name, ord_, products in DEMO_CATEGORIES:
        cat = models.Categoria(name=name, ord=ord_, is_active=True)
        db.add(cat)
        db.flush()
        for code, pname, price, ptype in products:
            db.add(models.Producto(code=code, name=pname, price=price, type=ptype, category_id=cat.id))
    for code, name, stype, capacity in DEMO_SPACES:
        db.add(models.Espacio(code=code, name=name, type=stype, capacity=capacity))
    db.commit()
    print("Catálogo de ejemplo cargado")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not ADMIN_PASSWORD:
        raise ValueError("Define ADMIN_PASSWORD en .env para crear el administrador")

    models.Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_admin(db, ADMIN_USERNAME, ADMIN_PASSWORD)
        if "--demo" in argv:
            seed_demo(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
