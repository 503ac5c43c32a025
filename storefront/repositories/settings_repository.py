# ==============================================================================
# REPOSITORIO DE CONFIGURACIÓN DE LA TIENDA
# ==============================================================================
# Encapsula todo el acceso a store_settings.json
# Guarda ajustes editables desde administración (umbral de stock bajo, etc.)
# ==============================================================================

import os
from typing import Any, Dict

from storefront.repositories.base import DictRepository


class SettingsRepository(DictRepository):
    """
    Repositorio de ajustes de la tienda.

    Formato de datos en store_settings.json:
    {
        "low_stock_threshold": 10
    }
    """

    def __init__(self, base_path: str):
        file_path = os.path.join(base_path, 'store_settings.json')
        super().__init__(file_path)

    def load(self) -> Dict[str, Any]:
        return self.get_all()

    def get_setting(self, key: str, default: Any = None) -> Any:
        """
        Obtiene un ajuste.

        Args:
            key: Clave del ajuste
            default: Valor por defecto si no existe

        Returns:
            Valor del ajuste
        """
        return self.load().get(key, default)

    def set_setting(self, key: str, value: Any) -> None:
        """Establece un ajuste."""
        with self._file_lock:
            settings = self.load()
            settings[key] = value
            self.save_all(settings)

    # =========================================================================
    # Ajustes comunes
    # =========================================================================

    def get_low_stock_threshold(self, default: int) -> int:
        """Umbral de stock bajo; ignora valores no numéricos o negativos."""
        try:
            value = int(self.get_setting('low_stock_threshold', default))
        except (TypeError, ValueError):
            return default
        return value if value >= 0 else default

    def set_low_stock_threshold(self, value: int) -> None:
        self.set_setting('low_stock_threshold', max(0, int(value)))
