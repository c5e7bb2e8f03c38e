# pos/admin.py
import logging

from .catalog import CatalogStore
from .errors import Outcome, PosError, ValidationError
from .models import Category, Product, Space
from .session import SessionContext
from .validator import (
    ENTITY_LABELS, translate_conflict, validate_category, validate_new_product,
    validate_product_update, validate_space,
)

logger = logging.getLogger(__name__)


class CatalogAdmin:
    """Alta, edición y baja de productos, categorías y espacios.

    Cada entidad se despacha por su ``kind``; un ``kind`` desconocido es un
    error de programación y lanza ``TypeError``.
    """

    def __init__(self, store: CatalogStore, session: SessionContext):
        self.store = store
        self.session = session
        self.catalog = store.catalog
        self._savers = {
            "product": self._save_product,
            "category": self._save_category,
            "space": self._save_space,
        }
        self._deleters = {
            "product": self.catalog.delete_product,
            "category": self.catalog.delete_category,
            "space": self.catalog.delete_space,
        }

    @staticmethod
    def _kind(entity, table):
        kind = getattr(entity, "kind", None)
        if kind not in table:
            raise TypeError(f"Entidad de catálogo no soportada: {type(entity).__name__}")
        return kind

    def save(self, entity) -> Outcome:
        kind = self._kind(entity, self._savers)
        _, label = ENTITY_LABELS[kind]
        try:
            self.session.require_admin()
            saved = self._savers[kind](entity)
        except ValidationError as e:
            return Outcome.failure(e.message)
        except PosError as e:
            logger.warning("Error guardando %s: %s", label, e)
            return Outcome.failure(translate_conflict(e.message, kind))

        logger.info("%s guardado: %s", label, saved.name)
        self.store.reload()
        return Outcome.success(f"Cambios guardados: {saved.name}", saved)

    def delete(self, entity) -> Outcome:
        kind = self._kind(entity, self._deleters)
        _, label = ENTITY_LABELS[kind]
        try:
            self.session.require_admin()
            self._deleters[kind](entity.id)
        except PosError as e:
            logger.warning("Error eliminando %s %s: %s", label, entity.id, e)
            return Outcome.failure(f"Error al eliminar {label}: {e}")

        logger.info("%s %s eliminado", label, entity.id)
        self.store.reload()
        return Outcome.success(f"Se eliminó {label} {entity.name}")

    def _save_product(self, draft: Product) -> Product:
        if draft.id is None:
            validate_new_product(draft, self.store.products, self.store.categories)
            return self.catalog.create_product(draft)
        validate_product_update(draft, self.store.categories)
        return self.catalog.update_product(draft.id, draft)

    def _save_category(self, draft: Category) -> Category:
        validate_category(draft)
        if draft.id is None:
            return self.catalog.create_category(draft)
        return self.catalog.update_category(draft.id, draft)

    def _save_space(self, draft: Space) -> Space:
        validate_space(draft)
        if draft.id is None:
            return self.catalog.create_space(draft)
        return self.catalog.update_space(draft.id, draft)
