# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto de la tienda.
# Diseñadas para ser independientes del mecanismo de persistencia.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from enum import Enum
from datetime import date, datetime


# ==============================================================================
# ENUMERACIONES
# ==============================================================================

class CheckoutMode(str, Enum):
    """Origen de la intención de compra."""
    BUY_NOW = "BUY_NOW"   # Compra directa de un solo producto
    CART = "CART"         # Checkout estándar desde el carrito


class AuditType(str, Enum):
    """Tipos de eventos de auditoría."""
    VERIFICACION = "VERIFICACION"
    CARRITO = "CARRITO"
    CHECKOUT = "CHECKOUT"
    STOCK = "STOCK"
    SISTEMA = "SISTEMA"


# ==============================================================================
# CATÁLOGO
# ==============================================================================

@dataclass
class Product:
    """
    Producto del catálogo.
    Lo administra el catálogo; el núcleo de checkout solo lo lee.

    Attributes:
        id: Identificador único del producto
        sku: Código SKU
        name: Nombre visible
        category: Categoría (Whiskey, Vodka, ...)
        price: Precio unitario
        stock: Unidades disponibles
        description: Descripción corta
        image: Nombre del archivo de imagen
    """
    id: int
    sku: str
    name: str
    category: str = ''
    price: float = 0.0
    stock: int = 0
    description: str = ''
    image: str = 'default.png'

    @property
    def unit_price(self) -> float:
        return self.price

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia JSON."""
        return {
            'sku': self.sku,
            'name': self.name,
            'category': self.category,
            'price': self.price,
            'stock': self.stock,
            'description': self.description,
            'image': self.image,
        }

    @classmethod
    def from_dict(cls, pid: int, data: Dict[str, Any]) -> 'Product':
        """Crea instancia desde diccionario (formato de catalog.json)."""
        return cls(
            id=int(pid),
            sku=data.get('sku', ''),
            name=data.get('name', ''),
            category=data.get('category', ''),
            price=float(data.get('price', 0.0) or 0.0),
            stock=max(0, int(data.get('stock', 0) or 0)),
            description=data.get('description', ''),
            image=data.get('image', 'default.png')
        )


# ==============================================================================
# CARRITO Y CHECKOUT
# ==============================================================================

@dataclass
class CartLine:
    """Línea del carrito. Única por product.id dentro de un carrito."""
    product: Product
    quantity: int

    @property
    def subtotal(self) -> float:
        return round(self.quantity * self.product.unit_price, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product.id,
            'sku': self.product.sku,
            'name': self.product.name,
            'quantity': self.quantity,
            'unit_price': self.product.unit_price,
            'subtotal': self.subtotal
        }


@dataclass
class BuyNowItem:
    """
    Item de "comprar ahora".
    Es transitorio: vive mientras el modal de checkout está abierto.
    """
    product: Product
    quantity: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product.id,
            'name': self.product.name,
            'quantity': self.quantity
        }


@dataclass
class IntentItem:
    """
    Item resuelto de una intención de compra, con precio y stock vivos.

    Attributes:
        product: Producto leído del catálogo al momento de resolver
        quantity: Cantidad solicitada
        available_stock: Stock conocido al resolver
        over_stock: True si quantity > available_stock (no se recorta)
    """
    product: Product
    quantity: int
    available_stock: int
    over_stock: bool = False

    @property
    def subtotal(self) -> float:
        return round(self.quantity * self.product.unit_price, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product.id,
            'sku': self.product.sku,
            'name': self.product.name,
            'quantity': self.quantity,
            'unit_price': self.product.unit_price,
            'subtotal': self.subtotal,
            'available_stock': self.available_stock,
            'over_stock': self.over_stock
        }


@dataclass
class CheckoutIntent:
    """
    Compra resuelta. Nunca mezcla modos: o es BUY_NOW o es CART.
    Se deriva bajo demanda, nunca se almacena.
    """
    mode: CheckoutMode
    items: List[IntentItem] = field(default_factory=list)

    @property
    def total(self) -> float:
        return round(sum(item.subtotal for item in self.items), 2)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def has_over_stock(self) -> bool:
        return any(item.over_stock for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mode': self.mode.value,
            'items': [item.to_dict() for item in self.items],
            'total': self.total,
            'total_items': self.total_items,
            'has_over_stock': self.has_over_stock
        }


@dataclass
class CheckoutHandle:
    """
    Manejador de una sesión de checkout abierta.

    Attributes:
        handle_id: Identificador del manejador
        buy_now_item: Override de compra directa (None = usar carrito)
        opened_at: Momento de apertura
        stock_snapshot: Stock por producto visto en el último resolve
        closed: True una vez liberado
    """
    handle_id: str
    buy_now_item: Optional[BuyNowItem] = None
    opened_at: datetime = field(default_factory=datetime.now)
    stock_snapshot: Optional[Dict[int, int]] = None
    closed: bool = False


@dataclass
class Receipt:
    """Comprobante emitido por un checkout confirmado."""
    receipt: str
    mode: CheckoutMode
    items: List[Dict[str, Any]]
    total: float
    ts: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'receipt': self.receipt,
            'mode': self.mode.value,
            'items': self.items,
            'total': self.total,
            'ts': self.ts
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Receipt':
        try:
            mode = CheckoutMode(data.get('mode', 'CART'))
        except ValueError:
            mode = CheckoutMode.CART
        return cls(
            receipt=data.get('receipt', ''),
            mode=mode,
            items=data.get('items', []),
            total=float(data.get('total', 0) or 0),
            ts=data.get('ts', '')
        )


# ==============================================================================
# VERIFICACIÓN DE EDAD
# ==============================================================================

@dataclass
class VerificationState:
    """Estado de verificación de edad de la sesión (solo en memoria)."""
    verified: bool = False
    timestamp: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'verified': self.verified,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None
        }


@dataclass
class AgeProof:
    """Prueba presentada por el visitante: su fecha de nacimiento."""
    birth_date: Optional[date] = None


@dataclass
class PageConfig:
    """Configuración por página consumida por el gate de edad."""
    name: str
    require_age_verification: bool = True


# ==============================================================================
# DASHBOARDS (proyecciones de solo lectura)
# ==============================================================================

@dataclass(frozen=True)
class SalesDataItem:
    """Ventas agregadas de un mes."""
    month: str
    sales: float

    def to_dict(self) -> Dict[str, Any]:
        return {'month': self.month, 'sales': self.sales}


@dataclass(frozen=True)
class StockDataItem:
    """
    Conteo de productos por estado de stock dentro de una categoría.
    in_stock + low_stock + out_of_stock == productos rastreados de la categoría.
    """
    category: str
    in_stock: int = 0
    low_stock: int = 0
    out_of_stock: int = 0

    @property
    def total(self) -> int:
        return self.in_stock + self.low_stock + self.out_of_stock

    def to_dict(self) -> Dict[str, Any]:
        # Claves en camelCase: las consume el widget de gráficos
        return {
            'category': self.category,
            'inStock': self.in_stock,
            'lowStock': self.low_stock,
            'outOfStock': self.out_of_stock
        }


# ==============================================================================
# CONTRATOS DE UI
# ==============================================================================
# Las plantillas y el JS del modal reciben estos contratos. Los callbacks son
# funciones de Python: en el header devuelven la URL de la acción.

@dataclass
class CheckoutModalProps:
    """Props del modal de checkout."""
    open: bool
    on_close: Callable[[], None]
    buy_now_item: Optional[BuyNowItem] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'open': self.open,
            'buyNowItem': self.buy_now_item.to_dict() if self.buy_now_item else None
        }


@dataclass
class HeaderProps:
    """Props del header de la tienda."""
    search_query: str
    on_search_change: Callable[[str], str]
    on_checkout: Optional[Callable[[], str]] = None
    on_login_click: Optional[Callable[[], str]] = None
