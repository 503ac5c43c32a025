# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos de la tienda
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Son independientes de Flask y del mecanismo de persistencia (JSON).
# ==============================================================================

from .entities import (
    # Catálogo
    Product,

    # Carrito y checkout
    CartLine,
    BuyNowItem,
    IntentItem,
    CheckoutIntent,
    CheckoutHandle,
    CheckoutMode,
    Receipt,

    # Verificación de edad
    VerificationState,
    AgeProof,
    PageConfig,

    # Dashboards
    SalesDataItem,
    StockDataItem,

    # Contratos de UI
    CheckoutModalProps,
    HeaderProps,

    # Auditoría
    AuditType,
)

__all__ = [
    'Product',
    'CartLine',
    'BuyNowItem',
    'IntentItem',
    'CheckoutIntent',
    'CheckoutHandle',
    'CheckoutMode',
    'Receipt',
    'VerificationState',
    'AgeProof',
    'PageConfig',
    'SalesDataItem',
    'StockDataItem',
    'CheckoutModalProps',
    'HeaderProps',
    'AuditType',
]
