# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la tienda.
#
# PRINCIPIOS:
# 1. Los servicios no dependen de Flask: las rutas les pasan lo que necesitan
# 2. Aplican reglas de negocio y validaciones
# 3. Los errores se lanzan como excepciones de errors.py; las rutas
#    los convierten en JSON
# 4. Los servicios dependen de interfaces de repositorios
#
# ESTRUCTURA:
# ├── errors.py             → Taxonomía de errores recuperables
# ├── catalog_service.py    → Productos, stock, locks por producto
# ├── age_gate_service.py   → Gate de verificación de edad
# ├── cart_service.py       → Carrito de compras
# ├── checkout_service.py   → Checkout (carrito / comprar ahora)
# ├── dashboard_service.py  → Proyecciones de stock y ventas
# └── audit_service.py      → Registro de eventos
# ==============================================================================

from storefront.services.errors import (
    StorefrontError,
    VerificationError,
    CartError,
    CheckoutError,
    CatalogUnavailable,
    ProductNotFound,
)
from storefront.services.catalog_service import CatalogService
from storefront.services.audit_service import AuditService
from storefront.services.age_gate_service import AgeVerificationGate
from storefront.services.cart_service import CartStore
from storefront.services.checkout_service import CheckoutSession
from storefront.services.dashboard_service import DashboardService, chart_payload

__all__ = [
    'StorefrontError',
    'VerificationError',
    'CartError',
    'CheckoutError',
    'CatalogUnavailable',
    'ProductNotFound',
    'CatalogService',
    'AuditService',
    'AgeVerificationGate',
    'CartStore',
    'CheckoutSession',
    'DashboardService',
    'chart_payload',
]
