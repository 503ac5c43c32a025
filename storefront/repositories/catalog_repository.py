# ==============================================================================
# REPOSITORIO DE CATÁLOGO
# ==============================================================================
# Encapsula todo el acceso a catalog.json
# El catálogo se almacena como diccionario: {product_id: {datos_producto}}
# No hay caché: cada lectura refleja el último estado del archivo, así el
# checkout nunca evalúa stock con un valor viejo.
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from storefront.models import Product
from storefront.repositories.base import DictRepository


class CatalogRepository(DictRepository):
    """
    Repositorio JSON del catálogo de productos.

    Formato de datos en catalog.json:
    {
        "1": {
            "sku": "P0001",
            "name": "Jack Daniel's 750ml",
            "category": "Whiskey",
            "price": 45.0,
            "stock": 12
        },
        "2": {...}
    }

    Nota: Las claves son strings en JSON pero se manejan como int.
    """

    strict = True

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Carpeta de datos
        """
        file_path = os.path.join(base_path, 'catalog.json')
        super().__init__(file_path)

    def _to_products(self, raw: Dict[str, Any]) -> List[Product]:
        products = []
        for key, value in raw.items():
            try:
                products.append(Product.from_dict(int(key), value))
            except (ValueError, TypeError):
                # Claves no numéricas no son productos
                continue
        return products

    def get_all_products(self) -> List[Product]:
        """
        Obtiene todos los productos ordenados por ID.

        Returns:
            Lista de productos
        """
        return sorted(self._to_products(self.get_all()), key=lambda p: p.id)

    def get_product(self, pid: int) -> Optional[Product]:
        """
        Obtiene un producto por su ID.

        Args:
            pid: ID del producto

        Returns:
            Producto o None si no existe
        """
        data = self.get_by_id(pid)
        if data is None:
            return None
        return Product.from_dict(pid, data)

    def get_stock(self, pid: int) -> Optional[int]:
        """Stock actual del producto, None si no existe."""
        product = self.get_product(pid)
        return product.stock if product else None

    def get_products_by_category(self, category: str) -> List[Product]:
        """
        Filtra productos por categoría (sin distinguir mayúsculas).

        Args:
            category: Nombre de categoría

        Returns:
            Lista de productos de la categoría
        """
        wanted = (category or '').strip().lower()
        return [
            p for p in self.get_all_products()
            if p.category.strip().lower() == wanted
        ]

    def search_by_name(self, query: str) -> List[Product]:
        """
        Busca productos por nombre (búsqueda parcial).

        Args:
            query: Texto a buscar

        Returns:
            Lista de productos que coinciden
        """
        query_lower = (query or '').strip().lower()
        if not query_lower:
            return self.get_all_products()
        return [
            p for p in self.get_all_products()
            if query_lower in p.name.lower() or query_lower == p.sku.lower()
        ]

    def save_product(self, product: Product) -> None:
        """Crea o reemplaza un producto."""
        with self._file_lock:
            data = self.get_all()
            data[str(product.id)] = product.to_dict()
            self.save_all(data)

    def set_stock(self, pid: int, stock: int) -> bool:
        """
        Fija el stock de un producto.

        Args:
            pid: ID del producto
            stock: Nuevo stock (nunca negativo)

        Returns:
            True si se actualizó, False si el producto no existe
        """
        with self._file_lock:
            data = self.get_all()
            key = str(pid)
            if key not in data:
                return False
            data[key]['stock'] = max(0, int(stock))
            self.save_all(data)
            return True

