# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Centraliza el registro de eventos de la tienda con mensajes legibles.
# Regla: todo checkout confirmado queda auditado.
# ==============================================================================

from typing import Any, Dict, List

from storefront.models import AuditType
from storefront.repositories.interfaces import IAuditRepository


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    Categorías: VERIFICACION, CARRITO, CHECKOUT, STOCK, SISTEMA
    """

    def __init__(self, audit_repo: IAuditRepository):
        self.audit_repo = audit_repo

    def log(
        self,
        log_type: AuditType,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un evento genérico.

        Args:
            log_type: Tipo de evento
            user: Visitante o usuario que realizó la acción
            message: Mensaje descriptivo
            related_id: ID relacionado (comprobante, SKU, ...)
            details: Detalles adicionales
        """
        self.audit_repo.log(log_type.value, user, message, related_id, details)

    def log_age_verified(self, visitor: str) -> None:
        self.log(
            AuditType.VERIFICACION,
            visitor,
            f"Edad verificada para {visitor}"
        )

    def log_age_rejected(self, visitor: str) -> None:
        self.log(
            AuditType.VERIFICACION,
            visitor,
            f"Verificación de edad rechazada para {visitor}"
        )

    def log_checkout_confirmed(
        self,
        visitor: str,
        receipt: str,
        mode: str,
        total: float,
        items_count: int
    ) -> None:
        """
        Registra un checkout confirmado.

        Args:
            visitor: Visitante que compró
            receipt: Número de comprobante
            mode: BUY_NOW o CART
            total: Total cobrado
            items_count: Cantidad de líneas
        """
        message = (
            f"Checkout {receipt} confirmado por {visitor} - "
            f"Total: {total:.2f} - {items_count} items - Modo: {mode}"
        )
        self.log(
            AuditType.CHECKOUT,
            visitor,
            message,
            receipt,
            {'total': total, 'mode': mode, 'items_count': items_count}
        )

    def log_checkout_rejected(self, visitor: str, code: str, message: str) -> None:
        self.log(
            AuditType.CHECKOUT,
            visitor,
            f"Checkout rechazado ({code}): {message}",
            details={'code': code}
        )

    def log_stock_decrement(self, visitor: str, sku: str, before: int, after: int) -> None:
        self.log(
            AuditType.STOCK,
            visitor,
            f"Stock {sku}: {before} → {after}",
            sku,
            {'before': before, 'after': after}
        )

    def get_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        return self.audit_repo.get_recent_logs(limit)
