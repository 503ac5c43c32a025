# ==============================================================================
# SERVICIO DE CATÁLOGO
# ==============================================================================
# Fachada sobre el colaborador de catálogo (productos y stock).
# - Traduce fallas de lectura a CatalogUnavailable
# - Mantiene un lock por producto para la sección crítica del checkout
# ==============================================================================

import threading
from contextlib import ExitStack, contextmanager
from typing import Iterable, Iterator, List, Optional

from storefront.models import Product
from storefront.repositories.interfaces import ICatalogRepository
from storefront.services.errors import CatalogUnavailable, ProductNotFound
from storefront.performance_logger import profile_function


class CatalogService:
    """
    Servicio de acceso al catálogo.

    Responsabilidades:
    - Consultar productos por id, categoría o nombre
    - Leer y descontar stock
    - Serializar el acceso al contador de stock de cada producto

    Cada lectura va al repositorio: no se guarda copia de precio ni stock.
    """

    def __init__(self, catalog_repo: ICatalogRepository):
        """
        Args:
            catalog_repo: Implementación del colaborador de catálogo
        """
        self.catalog_repo = catalog_repo
        self._locks = {}
        self._global_lock = threading.RLock()

    # =========================================================================
    # LOCKS POR PRODUCTO
    # =========================================================================

    def _get_lock(self, pid: int) -> threading.RLock:
        """Obtiene o crea el lock de un producto"""
        with self._global_lock:
            if pid not in self._locks:
                self._locks[pid] = threading.RLock()
            return self._locks[pid]

    @contextmanager
    def lock_products(self, pids: Iterable[int]) -> Iterator[None]:
        """
        Acceso exclusivo al stock de varios productos.
        Los locks se toman en orden de id y se liberan en toda salida.

        Uso:
            with catalog_service.lock_products([1, 4]):
                ...
        """
        with ExitStack() as stack:
            for pid in sorted(set(pids)):
                stack.enter_context(self._get_lock(pid))
            yield

    # =========================================================================
    # LECTURAS
    # =========================================================================

    def _fetch(self, fn, *args):
        try:
            return fn(*args)
        except (OSError, ValueError) as e:
            raise CatalogUnavailable(f'Catálogo no disponible: {e}') from e

    def get_product(self, pid: int) -> Optional[Product]:
        """Producto actual o None si no existe."""
        return self._fetch(self.catalog_repo.get_product, pid)

    def require_product(self, pid: int) -> Product:
        """
        Producto actual.

        Raises:
            ProductNotFound: si el id no existe en el catálogo
        """
        product = self.get_product(pid)
        if product is None:
            raise ProductNotFound(f'Producto {pid} no encontrado', product_id=pid)
        return product

    def get_stock(self, pid: int) -> int:
        """Stock actual; un producto que ya no existe cuenta como 0."""
        stock = self._fetch(self.catalog_repo.get_stock, pid)
        return stock if stock is not None else 0

    @profile_function(name="Cargar catálogo")
    def get_all_products(self) -> List[Product]:
        return self._fetch(self.catalog_repo.get_all_products)

    def get_products_by_category(self, category: str) -> List[Product]:
        return self._fetch(self.catalog_repo.get_products_by_category, category)

    def search(self, query: str) -> List[Product]:
        """Búsqueda del header (por nombre o SKU exacto)."""
        return self._fetch(self.catalog_repo.search_by_name, query)

    # =========================================================================
    # ESCRITURAS
    # =========================================================================

    def decrement_stock(self, pid: int, quantity: int) -> int:
        """
        Descuenta stock de un producto.
        Debe llamarse dentro de lock_products().

        Returns:
            Stock resultante
        """
        with self._get_lock(pid):
            current = self.get_stock(pid)
            new_stock = max(0, current - quantity)
            self._fetch(self.catalog_repo.set_stock, pid, new_stock)
            return new_stock

