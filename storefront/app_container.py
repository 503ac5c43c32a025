# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto central para obtener repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (se pueden pasar repositorios en memoria)
#   - Cambiar el catálogo JSON por otro backend sin tocar servicios
#
# Dos alcances:
#   - Proceso: repositorios, catálogo, auditoría, dashboards (AppContainer)
#   - Visitante: gate de edad, carrito y checkout (StoreSession)
#
# Cada StoreSession se crea una sola vez por sesión y se pasa explícitamente
# a quien la necesite (rutas, servicios); no hay acceso global a ella.
# ==============================================================================

import threading
import time
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

from storefront import config
from storefront.repositories import (
    CatalogRepository,
    SalesRepository,
    AuditRepository,
    SettingsRepository,
)
from storefront.services import (
    AgeVerificationGate,
    AuditService,
    CartStore,
    CatalogService,
    CheckoutSession,
    DashboardService,
)


@dataclass
class StoreSession:
    """
    Contexto de un visitante.
    Una única instancia por sesión de cada servicio con estado.
    """
    session_id: str
    gate: AgeVerificationGate
    cart: CartStore
    checkout: CheckoutSession
    last_seen: float = 0.0


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada repositorio y servicio de proceso.

    Uso:
        container = AppContainer(base_path='/ruta/datos')
        store = container.get_session(sid)
        store.cart.add(product, 2)
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None, **kwargs):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(
        self,
        base_path: str = None,
        minimum_age: int = None,
        low_stock_threshold: int = None,
        session_ttl: int = None
    ):
        """
        Args:
            base_path: Carpeta de datos (catalog.json, sales.json, ...)
            minimum_age: Edad mínima (default: config.MINIMUM_AGE)
            low_stock_threshold: Umbral de stock bajo (default: config)
            session_ttl: Segundos sin actividad tras los que se descarta
                un StoreSession (default: vida de la cookie de sesión)
        """
        if self._initialized:
            return

        self._base_path = base_path or config.DATA_DIR
        self.minimum_age = minimum_age if minimum_age is not None else config.MINIMUM_AGE
        self.low_stock_threshold = (
            low_stock_threshold if low_stock_threshold is not None
            else config.LOW_STOCK_THRESHOLD
        )

        # Repositorios (lazy loading)
        self._catalog_repo: Optional[CatalogRepository] = None
        self._sales_repo: Optional[SalesRepository] = None
        self._audit_repo: Optional[AuditRepository] = None
        self._settings_repo: Optional[SettingsRepository] = None

        # Servicios de proceso (lazy loading)
        self._catalog_service: Optional[CatalogService] = None
        self._audit_service: Optional[AuditService] = None
        self._dashboard_service: Optional[DashboardService] = None

        # Sesiones de visitantes: {session_id: StoreSession}
        self._sessions: Dict[str, StoreSession] = {}
        self._sessions_lock = threading.Lock()
        self.session_ttl = (
            session_ttl if session_ttl is not None
            else config.SESSION_SETTINGS['PERMANENT_SESSION_LIFETIME']
        )
        self._next_purge = 0.0
        self._clock = time.monotonic

        self._initialized = True

    @property
    def base_path(self) -> str:
        return self._base_path

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def catalog_repo(self) -> CatalogRepository:
        """Repositorio de catálogo (singleton)."""
        if self._catalog_repo is None:
            self._catalog_repo = CatalogRepository(self._base_path)
        return self._catalog_repo

    @property
    def sales_repo(self) -> SalesRepository:
        """Repositorio de ventas (singleton)."""
        if self._sales_repo is None:
            self._sales_repo = SalesRepository(self._base_path)
        return self._sales_repo

    @property
    def audit_repo(self) -> AuditRepository:
        """Repositorio de auditoría (singleton)."""
        if self._audit_repo is None:
            self._audit_repo = AuditRepository(self._base_path)
        return self._audit_repo

    @property
    def settings_repo(self) -> SettingsRepository:
        """Repositorio de ajustes (singleton)."""
        if self._settings_repo is None:
            self._settings_repo = SettingsRepository(self._base_path)
        return self._settings_repo

    # =========================================================================
    # SERVICIOS DE PROCESO
    # =========================================================================

    @property
    def catalog_service(self) -> CatalogService:
        """Servicio de catálogo (singleton, dueño de los locks de stock)."""
        if self._catalog_service is None:
            self._catalog_service = CatalogService(self.catalog_repo)
        return self._catalog_service

    @property
    def audit_service(self) -> AuditService:
        """Servicio de auditoría (singleton)."""
        if self._audit_service is None:
            self._audit_service = AuditService(self.audit_repo)
        return self._audit_service

    @property
    def dashboard_service(self) -> DashboardService:
        """Servicio de dashboards (singleton)."""
        if self._dashboard_service is None:
            self._dashboard_service = DashboardService(
                self.catalog_service,
                self.sales_repo,
                self.settings_repo,
                self.low_stock_threshold
            )
        return self._dashboard_service

    # =========================================================================
    # SESIONES DE VISITANTES
    # =========================================================================

    def _build_session(self, session_id: str) -> StoreSession:
        visitor = f"visitante:{session_id[:8]}"
        cart = CartStore()
        return StoreSession(
            session_id=session_id,
            gate=AgeVerificationGate(
                minimum_age=self.minimum_age,
                audit_service=self.audit_service,
                visitor=visitor
            ),
            cart=cart,
            checkout=CheckoutSession(
                cart,
                self.catalog_service,
                self.sales_repo,
                self.audit_service,
                visitor=visitor
            )
        )

    def new_session_id(self) -> str:
        return uuid.uuid4().hex

    def get_session(self, session_id: str) -> StoreSession:
        """
        Obtiene el contexto del visitante, creándolo la primera vez.
        Las sesiones sin actividad por más de session_ttl se descartan.

        Args:
            session_id: ID de sesión (guardado en la cookie firmada)

        Returns:
            StoreSession del visitante
        """
        now = self._clock()
        with self._sessions_lock:
            if now >= self._next_purge:
                self._purge_expired(now)
                # Barrido como mucho una vez por minuto
                self._next_purge = now + min(60, self.session_ttl)

            store = self._sessions.get(session_id)
            if store is not None and now - store.last_seen > self.session_ttl:
                del self._sessions[session_id]
                store = None
            if store is None:
                store = self._build_session(session_id)
                self._sessions[session_id] = store
            store.last_seen = now
            return store

    def _purge_expired(self, now: float) -> None:
        expired = [
            sid for sid, store in self._sessions.items()
            if now - store.last_seen > self.session_ttl
        ]
        for sid in expired:
            del self._sessions[sid]

    def end_session(self, session_id: str) -> None:
        """Descarta el contexto del visitante (fin de la sesión)."""
        with self._sessions_lock:
            self._sessions.pop(session_id, None)

    @property
    def active_sessions(self) -> int:
        with self._sessions_lock:
            return len(self._sessions)

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        Útil para testing o para recargar datos.
        """
        self._catalog_repo = None
        self._sales_repo = None
        self._audit_repo = None
        self._settings_repo = None

        self._catalog_service = None
        self._audit_service = None
        self._dashboard_service = None

        with self._sessions_lock:
            self._sessions.clear()

    @classmethod
    def get_instance(cls, base_path: str = None) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            base_path: Carpeta de datos (solo se usa en la primera llamada)
        """
        if cls._instance is None:
            return cls(base_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


def get_container(base_path: str = None) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Args:
        base_path: Carpeta de datos

    Returns:
        Instancia del contenedor
    """
    return AppContainer.get_instance(base_path)
