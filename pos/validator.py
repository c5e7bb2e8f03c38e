# pos/validator.py
"""Validaciones previas a escribir en el catálogo."""
from .errors import ValidationError
from .models import Category, Product, Space

DUPLICATE_MARKERS = ("duplicate key value violates unique constraint", "UNIQUE constraint failed")

# nombre de la restricción en la base -> mensaje para el usuario
CONSTRAINT_MESSAGES = {
    "product_code_lower_uk": "Ya existe un producto con ese código. Por favor, elige un código diferente.",
    "product_name_cat_ci_uk": (
        "Ya existe un producto con ese nombre en esta categoría. Por favor, elige un nombre diferente."
    ),
    "space_code_uk": "Ya existe un espacio con ese código. Por favor, elige un código diferente.",
}

ENTITY_LABELS = {"product": ("un", "producto"), "category": ("una", "categoría"), "space": ("un", "espacio")}


def _blank(value) -> bool:
    return not (value or "").strip()


def _check_product_shape(draft: Product, categories: list[Category]):
    if _blank(draft.code):
        raise ValidationError("code", "El código es requerido")
    if _blank(draft.name):
        raise ValidationError("name", "El nombre es requerido")
    if draft.category_id is None:
        raise ValidationError("categoryId", "La categoría es requerida")
    if not any(c.id == draft.category_id for c in categories):
        raise ValidationError("categoryId", "La categoría seleccionada no existe")
    if draft.price is None or not draft.price.is_finite() or draft.price <= 0:
        raise ValidationError("price", "El precio debe ser un número mayor a 0")


def validate_new_product(draft: Product, products: list[Product], categories: list[Category]):
    _check_product_shape(draft, categories)

    code = draft.code.strip().lower()
    if any(p.code.strip().lower() == code for p in products):
        raise ValidationError(
            "code",
            f'Ya existe un producto con el código "{draft.code}". Por favor, elige un código diferente.',
        )

    name = draft.name.strip().lower()
    if any(p.category_id == draft.category_id and p.name.strip().lower() == name for p in products):
        category = next((c for c in categories if c.id == draft.category_id), None)
        where = category.name if category else "esta categoría"
        raise ValidationError(
            "name",
            f'Ya existe un producto con el nombre "{draft.name}" en {where}. Por favor, elige un nombre diferente.',
        )


def validate_product_update(draft: Product, categories: list[Category]):
    _check_product_shape(draft, categories)


def validate_category(draft: Category):
    if _blank(draft.name):
        raise ValidationError("name", "El nombre es requerido")


def validate_space(draft: Space):
    if _blank(draft.code):
        raise ValidationError("code", "El código es requerido")
    if _blank(draft.name):
        raise ValidationError("name", "El nombre es requerido")


def translate_conflict(message: str, kind: str = "product") -> str:
    """Traduce un error de almacenamiento a un mensaje de duplicado específico."""
    article, label = ENTITY_LABELS.get(kind, ("un", "registro"))
    if any(marker in message for marker in DUPLICATE_MARKERS):
        for constraint, text in CONSTRAINT_MESSAGES.items():
            if constraint in message:
                return text
        return f"Ya existe {article} {label} con esos datos. Por favor, verifica la información."
    return f"Error al guardar {label}: {message}"
