# ==============================================================================
# REPOSITORIO DE VENTAS
# ==============================================================================
# Encapsula todo el acceso a sales.json
# Cada checkout confirmado deja un comprobante: [{venta1}, {venta2}, ...]
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from storefront.repositories.base import ListRepository


class SalesRepository(ListRepository):
    """
    Repositorio del libro de ventas.

    Formato de datos en sales.json:
    [
        {
            "receipt": "R0001",
            "mode": "CART",
            "ts": "2026-01-01T10:00:00+00:00",
            "items": [...],
            "total": 90.0
        }
    ]
    """

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Carpeta de datos
        """
        file_path = os.path.join(base_path, 'sales.json')
        super().__init__(file_path)

    def load(self) -> List[Dict[str, Any]]:
        """Carga todas las ventas."""
        return self.get_all()

    def get_by_receipt(self, receipt: str) -> Optional[Dict[str, Any]]:
        """
        Busca una venta por número de comprobante.

        Args:
            receipt: Número de comprobante (ej: "R0001")

        Returns:
            Datos de la venta o None
        """
        return self.find_by('receipt', receipt)

    def create_sale(self, sale_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Registra una venta nueva asignándole el siguiente comprobante.
        Numerar y guardar ocurren bajo el mismo lock: dos ventas
        simultáneas nunca comparten número.

        Args:
            sale_data: Datos de la venta (sin 'receipt')

        Returns:
            Venta registrada, con su número de comprobante
        """
        with self._file_lock:
            record = {'receipt': self.get_next_receipt_number()}
            record.update((k, v) for k, v in sale_data.items() if k != 'receipt')
            self.append(record)
            return record

    def get_next_receipt_number(self) -> str:
        """
        Genera el siguiente número de comprobante.
        Formato: RXXXX donde XXXX es número secuencial.
        """
        max_num = 0
        for sale in self.load():
            receipt = sale.get('receipt', '')
            if receipt.startswith('R'):
                try:
                    max_num = max(max_num, int(receipt[1:]))
                except ValueError:
                    continue
        return f"R{max_num + 1:04d}"
