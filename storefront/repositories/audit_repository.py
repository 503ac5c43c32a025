# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Encapsula todo el acceso a audit.json
# La auditoría se almacena como lista, más reciente primero.
# ==============================================================================

import os
from typing import Any, Dict, List
from datetime import datetime

from storefront.repositories.base import ListRepository


class AuditRepository(ListRepository):
    """
    Repositorio del log de auditoría.

    Formato de datos en audit.json:
    [
        {
            "type": "CHECKOUT",
            "user": "visitante:3f2a...",
            "message": "Checkout R0001 confirmado - Total: 90.00",
            "timestamp": "2026-01-01 10:00:00",
            "related_id": "R0001",
            "details": {...}
        }
    ]
    """

    # Límite de registros para evitar archivos muy grandes
    MAX_LOGS = 10000

    def __init__(self, base_path: str):
        file_path = os.path.join(base_path, 'audit.json')
        super().__init__(file_path)

    def load(self) -> List[Dict[str, Any]]:
        """Carga todos los logs (más recientes primero)."""
        return sorted(
            self.get_all(),
            key=lambda x: x.get('timestamp', ''),
            reverse=True
        )

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un nuevo evento de auditoría.

        Args:
            log_type: Tipo de evento (VERIFICACION, CHECKOUT, STOCK, ...)
            user: Quién realizó la acción
            message: Mensaje descriptivo
            related_id: ID relacionado (comprobante, SKU, ...)
            details: Detalles adicionales
        """
        log_entry = {
            'type': log_type,
            'user': user or 'sistema',
            'message': message,
            'timestamp': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            'related_id': related_id,
            'details': details or {}
        }

        with self._file_lock:
            logs = self.get_all()
            logs.insert(0, log_entry)
            self.save_all(logs[:self.MAX_LOGS])

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Obtiene los logs más recientes."""
        return self.load()[:limit]

    def get_logs_by_type(self, log_type: str) -> List[Dict[str, Any]]:
        """Filtra logs por tipo."""
        return [log for log in self.load() if log.get('type') == log_type]
