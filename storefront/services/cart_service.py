# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza la lógica del carrito de compras de un visitante.
# El carrito vive en el StoreSession del visitante (ver app_container.py).
# ==============================================================================

from typing import Any, Dict, List

from storefront.models import CartLine, Product
from storefront.services.errors import CartError


def validate_quantity(quantity: Any, allow_zero_or_less: bool = False) -> int:
    """
    Valida que la cantidad sea un entero (y positivo, salvo que se permita).

    Raises:
        CartError: si la cantidad no es válida
    """
    # bool es subclase de int pero no es una cantidad
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise CartError('La cantidad debe ser un número entero.')
    if not allow_zero_or_less and quantity <= 0:
        raise CartError('La cantidad debe ser mayor a 0.')
    return quantity


class CartStore:
    """
    Carrito de un visitante.

    Responsabilidades:
    - Agregar/eliminar líneas (una por producto)
    - Cambiar cantidades
    - Calcular totales (siempre recalculados)

    Invariantes: nunca hay una línea con cantidad <= 0 ni dos líneas con
    el mismo product.id. Si una operación falla, el carrito no cambia.
    """

    def __init__(self):
        # product_id -> CartLine, en orden de inserción
        self._lines: Dict[int, CartLine] = {}

    def add(self, product: Product, quantity: int = 1) -> None:
        """
        Agrega un producto. Si ya existe, incrementa su cantidad.

        Args:
            product: Producto a agregar
            quantity: Cantidad (entero > 0)

        Raises:
            CartError: si la cantidad no es válida
        """
        quantity = validate_quantity(quantity)

        existing = self._lines.get(product.id)
        if existing:
            existing.quantity += quantity
            existing.product = product
        else:
            self._lines[product.id] = CartLine(product=product, quantity=quantity)

    def remove(self, product_id: int) -> None:
        """Elimina la línea del producto (no hace nada si no existe)."""
        self._lines.pop(product_id, None)

    def set_quantity(self, product_id: int, quantity: int) -> None:
        """
        Cambia la cantidad de una línea. Con quantity <= 0 equivale a remove.

        Raises:
            CartError: si la cantidad no es un entero
        """
        quantity = validate_quantity(quantity, allow_zero_or_less=True)

        if quantity <= 0:
            self.remove(product_id)
            return

        line = self._lines.get(product_id)
        if line:
            line.quantity = quantity

    def lines(self) -> List[CartLine]:
        """Líneas del carrito en orden de inserción (copias)."""
        return [
            CartLine(product=line.product, quantity=line.quantity)
            for line in self._lines.values()
        ]

    def total(self) -> float:
        """Suma de cantidad * precio unitario."""
        return round(
            sum(line.quantity * line.product.unit_price for line in self._lines.values()),
            2
        )

    def total_items(self) -> int:
        """Suma de cantidades."""
        return sum(line.quantity for line in self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def clear(self) -> None:
        """Vacía el carrito."""
        self._lines.clear()

    def summary(self) -> Dict[str, Any]:
        """
        Carrito con totales calculados (formato de la API).

        Returns:
            Dict con items, total_items, total, items_count
        """
        return {
            'items': [line.to_dict() for line in self._lines.values()],
            'total_items': self.total_items(),
            'total': self.total(),
            'items_count': len(self._lines)
        }
