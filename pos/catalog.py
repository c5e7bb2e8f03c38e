# pos/catalog.py
import logging

from .errors import Outcome, PosError
from .models import Category, Product, Space, SpaceStatus
from .services import CatalogService, TableService

logger = logging.getLogger(__name__)


class CatalogStore:
    """Caché de categorías, productos y espacios.

    Se recarga completa después de cada escritura; no se mezclan cambios
    locales con los del servidor.
    """

    def __init__(self, catalog: CatalogService, tables: TableService | None = None):
        self.catalog = catalog
        self.tables = tables or TableService(catalog.api)
        self.categories: list[Category] = []
        self.products: list[Product] = []
        self.spaces: list[Space] = []

    def reload(self) -> Outcome:
        try:
            categories = self.catalog.list_categories()
            products = self.catalog.list_products()
            spaces = self.catalog.list_spaces()
        except PosError as e:
            logger.warning("Error cargando el catálogo: %s", e)
            return Outcome.failure(f"Error cargando el catálogo: {e}")
        self.categories, self.products, self.spaces = categories, products, spaces
        logger.debug("Catálogo cargado: %d categorías, %d productos, %d espacios",
                     len(categories), len(products), len(spaces))
        return Outcome.success("Catálogo actualizado")

    def product(self, product_id) -> Product | None:
        return next((p for p in self.products if p.id == product_id), None)

    def category(self, category_id) -> Category | None:
        return next((c for c in self.categories if c.id == category_id), None)

    def space(self, space_id) -> Space | None:
        return next((s for s in self.spaces if s.id == space_id), None)

    def orderable_products(self, category_id=None) -> list[Product]:
        return [
            p for p in self.products
            if p.is_enabled and p.is_available and (category_id is None or p.category_id == category_id)
        ]

    def active_categories(self) -> list[Category]:
        return sorted((c for c in self.categories if c.is_active), key=lambda c: c.ord)

    def free_spaces(self) -> list[Space]:
        return [s for s in self.spaces if s.is_active and s.status == SpaceStatus.LIBRE]

    def update_space_status(self, space_id, status) -> Outcome:
        try:
            space = self.tables.update_space_status(space_id, SpaceStatus(status))
        except (PosError, ValueError) as e:
            logger.warning("Error actualizando el espacio %s: %s", space_id, e)
            return Outcome.failure(f"Error al actualizar el estado del espacio: {e}")
        self.reload()
        logger.info("Espacio %s ahora está %s", space.code, space.status.value)
        return Outcome.success(f"{space.name}: {space.status.value}", space)
