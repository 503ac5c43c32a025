# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Los servicios dependen de estos protocolos, no de las clases JSON.
# Permite:
#   - Reemplazar el catálogo JSON por un backend remoto
#   - Usar dobles en memoria en los tests
#
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from storefront.models import Product


@runtime_checkable
class ICatalogRepository(Protocol):
    """
    Colaborador de catálogo: fuente de productos y stock.
    Consultable por id y por categoría.
    """

    def get_product(self, pid: int) -> Optional[Product]:
        """Obtiene un producto por ID."""
        ...

    def get_stock(self, pid: int) -> Optional[int]:
        """Stock actual de un producto (None si no existe)."""
        ...

    def get_all_products(self) -> List[Product]:
        """Todos los productos del catálogo."""
        ...

    def get_products_by_category(self, category: str) -> List[Product]:
        """Productos de una categoría (sin distinguir mayúsculas)."""
        ...

    def set_stock(self, pid: int, stock: int) -> bool:
        """Fija el stock de un producto."""
        ...

    def search_by_name(self, query: str) -> List[Product]:
        """Búsqueda parcial por nombre."""
        ...


@runtime_checkable
class ISalesRepository(Protocol):
    """Libro de ventas confirmadas (comprobantes)."""

    def load(self) -> List[Dict[str, Any]]:
        ...

    def create_sale(self, sale_data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def get_by_receipt(self, receipt: str) -> Optional[Dict[str, Any]]:
        ...

    def get_next_receipt_number(self) -> str:
        ...


@runtime_checkable
class IAuditRepository(Protocol):
    """Registro de auditoría."""

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        ...

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class ISettingsRepository(Protocol):
    """Configuración editable de la tienda."""

    def get_setting(self, key: str, default: Any = None) -> Any:
        ...

    def set_setting(self, key: str, value: Any) -> None:
        ...

    def get_low_stock_threshold(self, default: int) -> int:
        ...
