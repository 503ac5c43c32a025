# ==============================================================================
# SERVICIO DE CHECKOUT
# ==============================================================================
# Unifica las dos entradas de compra en una sola intención:
#   - Checkout estándar desde el carrito (modo CART)
#   - "Comprar ahora" de un solo producto (modo BUY_NOW)
# Un buy-now presente SIEMPRE reemplaza al carrito en ese checkout; el
# carrito no se consulta ni se vacía.
#
# confirm() es el único punto que descuenta stock y emite comprobante.
# Es todo-o-nada: si algún item excede el stock no se descuenta nada.
# ==============================================================================

import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from storefront.models import (
    BuyNowItem,
    CheckoutHandle,
    CheckoutIntent,
    CheckoutModalProps,
    CheckoutMode,
    IntentItem,
    Product,
    Receipt,
)
from storefront.repositories.interfaces import ISalesRepository
from storefront.services.audit_service import AuditService
from storefront.services.cart_service import CartStore, validate_quantity
from storefront.services.catalog_service import CatalogService
from storefront.services.errors import CheckoutError
from storefront.performance_logger import profile_function


class CheckoutSession:
    """
    Sesión de checkout de un visitante.

    Responsabilidades:
    - Abrir/cerrar el modal de checkout (con o sin buy-now)
    - Resolver la intención de compra contra stock vivo
    - Confirmar la compra dentro de una sección crítica por producto

    Uso:
        handle = checkout.open()                 # desde el carrito
        handle = checkout.open(BuyNowItem(p, 1)) # comprar ahora
        intent = checkout.resolve_intent(handle)
        receipt = checkout.confirm(handle)
        checkout.close(handle)
    """

    def __init__(
        self,
        cart: CartStore,
        catalog_service: CatalogService,
        sales_repo: ISalesRepository,
        audit_service: AuditService = None,
        visitor: str = ''
    ):
        """
        Args:
            cart: Carrito del visitante
            catalog_service: Acceso a precios y stock vivos
            sales_repo: Libro de ventas donde se registran los comprobantes
            audit_service: Servicio de auditoría (opcional)
            visitor: Identificador del visitante para auditoría
        """
        self.cart = cart
        self.catalog_service = catalog_service
        self.sales_repo = sales_repo
        self.audit_service = audit_service
        self.visitor = visitor
        self._handle: Optional[CheckoutHandle] = None
        # Un confirm a la vez por sesión (doble envío del mismo formulario)
        self._confirm_lock = threading.RLock()

    # =========================================================================
    # APERTURA / CIERRE
    # =========================================================================

    def open(self, buy_now_item: Optional[BuyNowItem] = None) -> CheckoutHandle:
        """
        Abre un checkout. Solo hay un checkout abierto por sesión:
        abrir otro libera el anterior.

        Args:
            buy_now_item: Override de compra directa (None = carrito)

        Returns:
            Manejador del checkout

        Raises:
            CartError: si la cantidad del buy-now no es un entero > 0
        """
        if buy_now_item is not None:
            validate_quantity(buy_now_item.quantity)

        if self._handle is not None:
            self.close(self._handle)

        self._handle = CheckoutHandle(
            handle_id=uuid.uuid4().hex,
            buy_now_item=buy_now_item
        )
        return self._handle

    def close(self, handle: CheckoutHandle) -> None:
        """Libera el manejador y descarta el buy-now. El carrito no cambia."""
        handle.closed = True
        handle.buy_now_item = None
        handle.stock_snapshot = None
        if self._handle is handle:
            self._handle = None

    def current_handle(self) -> Optional[CheckoutHandle]:
        """Checkout abierto, si existe."""
        return self._handle

    def get_handle(self, handle_id: str) -> Optional[CheckoutHandle]:
        if self._handle is not None and self._handle.handle_id == handle_id:
            return self._handle
        return None

    def modal_props(self, handle: Optional[CheckoutHandle] = None) -> CheckoutModalProps:
        """
        Props del modal para el manejador dado (default: el abierto).
        on_close libera ese manejador; el buy-now solo se expone si sigue abierto.
        """
        handle = handle or self._handle
        if handle is None or handle.closed:
            return CheckoutModalProps(open=False, on_close=lambda: None)
        return CheckoutModalProps(
            open=True,
            on_close=lambda: self.close(handle),
            buy_now_item=handle.buy_now_item
        )

    def _ensure_open(self, handle: CheckoutHandle) -> None:
        if handle is None or handle.closed:
            raise CheckoutError(
                'El checkout ya fue cerrado.',
                code=CheckoutError.HANDLE_CLOSED
            )

    # =========================================================================
    # RESOLUCIÓN DE LA INTENCIÓN
    # =========================================================================

    def _requested(self, handle: CheckoutHandle) -> Tuple[CheckoutMode, List[Tuple[Product, int]]]:
        """Modo y pares (producto, cantidad) que pide el checkout."""
        if handle.buy_now_item is not None:
            item = handle.buy_now_item
            return CheckoutMode.BUY_NOW, [(item.product, item.quantity)]
        return CheckoutMode.CART, [
            (line.product, line.quantity) for line in self.cart.lines()
        ]

    def _build_intent(self, handle: CheckoutHandle) -> CheckoutIntent:
        """Arma la intención leyendo precio y stock vivos del catálogo."""
        mode, requested = self._requested(handle)

        items = []
        for product, quantity in requested:
            live = self.catalog_service.get_product(product.id)
            stock = live.stock if live is not None else 0
            items.append(IntentItem(
                product=live if live is not None else product,
                quantity=quantity,
                available_stock=stock,
                over_stock=quantity > stock
            ))

        return CheckoutIntent(mode=mode, items=items)

    @staticmethod
    def _snapshot(intent: CheckoutIntent) -> Dict[int, int]:
        return {item.product.id: item.available_stock for item in intent.items}

    def resolve_intent(self, handle: CheckoutHandle) -> CheckoutIntent:
        """
        Resuelve la intención de compra.
        Los items que exceden el stock quedan marcados over_stock (no se
        recortan). El stock visto se guarda en el manejador para detectar
        cambios al confirmar.

        Raises:
            CheckoutError: HANDLE_CLOSED si el manejador fue liberado
            CatalogUnavailable: si el catálogo no responde
        """
        self._ensure_open(handle)
        intent = self._build_intent(handle)
        handle.stock_snapshot = self._snapshot(intent)
        return intent

    # =========================================================================
    # CONFIRMACIÓN
    # =========================================================================

    @profile_function(name="Confirmar checkout")
    def confirm(self, handle: CheckoutHandle) -> Receipt:
        """
        Confirma la compra.
        Toma acceso exclusivo al stock de los productos afectados durante
        la verificación y el descuento.

        Returns:
            Comprobante de la venta

        Raises:
            CheckoutError: EMPTY_INTENT, STALE_QUANTITY u OVER_STOCK
            CatalogUnavailable: si el catálogo no responde
        """
        with self._confirm_lock:
            return self._confirm(handle)

    def _confirm(self, handle: CheckoutHandle) -> Receipt:
        self._ensure_open(handle)

        _, requested = self._requested(handle)
        pids = {product.id for product, _ in requested}

        with self.catalog_service.lock_products(pids):
            # El manejador o el carrito pudieron cambiar mientras se esperaba
            # el lock: solo se confirma lo que quedó protegido por él
            self._ensure_open(handle)
            mode, requested = self._requested(handle)
            if {product.id for product, _ in requested} != pids:
                raise self._reject(CheckoutError(
                    'El pedido cambió mientras se confirmaba. Revísalo de nuevo.',
                    code=CheckoutError.STALE_QUANTITY
                ))

            intent = self._build_intent(handle)

            if intent.is_empty:
                raise self._reject(CheckoutError(
                    'No hay productos para comprar.',
                    code=CheckoutError.EMPTY_INTENT
                ))

            live = self._snapshot(intent)
            seen = handle.stock_snapshot
            if seen is None:
                # Sin resolve previo: la lectura actual es la referencia
                seen = live

            changed = [
                pid for pid, stock in live.items()
                if pid not in seen or seen[pid] != stock
            ]
            if changed:
                raise self._reject(CheckoutError(
                    'El stock cambió desde que revisaste tu pedido. Revísalo de nuevo.',
                    code=CheckoutError.STALE_QUANTITY,
                    product_ids=changed
                ))

            over = [item for item in intent.items if item.over_stock]
            if over:
                raise self._reject(CheckoutError(
                    '; '.join(
                        f"Stock insuficiente para {item.product.name}. "
                        f"Solicitado: {item.quantity}, Disponible: {item.available_stock}"
                        for item in over
                    ),
                    code=CheckoutError.OVER_STOCK,
                    product_ids=[item.product.id for item in over]
                ))

            # A partir de aquí el stock se descuenta: ya no hay cancelación
            for item in intent.items:
                after = self.catalog_service.decrement_stock(item.product.id, item.quantity)
                if self.audit_service:
                    self.audit_service.log_stock_decrement(
                        self.visitor, item.product.sku, item.available_stock, after
                    )

            sale_data = {
                'mode': intent.mode.value,
                'items': [item.to_dict() for item in intent.items],
                'total': intent.total,
                'ts': datetime.now(timezone.utc).isoformat(),
                'visitor': self.visitor
            }
            # El repositorio asigna el número de comprobante al registrar
            receipt = Receipt.from_dict(self.sales_repo.create_sale(sale_data))

        if self.audit_service:
            self.audit_service.log_checkout_confirmed(
                self.visitor, receipt.receipt, receipt.mode.value,
                receipt.total, len(receipt.items)
            )

        # Limpiar carrito solo si la venta salió del carrito
        if mode == CheckoutMode.CART:
            self.cart.clear()

        self.close(handle)
        return receipt

    def _reject(self, error: CheckoutError) -> CheckoutError:
        if self.audit_service:
            self.audit_service.log_checkout_rejected(self.visitor, error.code, error.message)
        return error
