# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia (archivos JSON).
#
# ESTRUCTURA:
# ├── interfaces.py           → Protocolos (contratos que usan los servicios)
# ├── base.py                 → Clases base JSON (DictRepository, ListRepository)
# ├── catalog_repository.py   → Acceso a catalog.json (productos y stock)
# ├── sales_repository.py     → Acceso a sales.json (comprobantes)
# ├── audit_repository.py     → Acceso a audit.json
# └── settings_repository.py  → Acceso a store_settings.json
# ==============================================================================

from .interfaces import (
    ICatalogRepository,
    ISalesRepository,
    IAuditRepository,
    ISettingsRepository,
)

from .base import BaseRepository, DictRepository, ListRepository
from .catalog_repository import CatalogRepository
from .sales_repository import SalesRepository
from .audit_repository import AuditRepository
from .settings_repository import SettingsRepository

__all__ = [
    # Interfaces
    'ICatalogRepository',
    'ISalesRepository',
    'IAuditRepository',
    'ISettingsRepository',

    # Clases base
    'BaseRepository',
    'DictRepository',
    'ListRepository',

    # Implementaciones JSON
    'CatalogRepository',
    'SalesRepository',
    'AuditRepository',
    'SettingsRepository',
]
