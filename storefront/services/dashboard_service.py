# ==============================================================================
# SERVICIO DE DASHBOARDS - Proyecciones de stock y ventas
# ==============================================================================
# Funciones de solo lectura que alimentan los gráficos del panel:
#   - StockDataItem por categoría (en stock / stock bajo / agotado)
#   - SalesDataItem por mes (cronológico)
#   - Resumen de totales y productos por categoría
#
# REGLA DE STOCK (umbral configurable, no por producto):
#   stock == 0                 → agotado
#   0 < stock <= umbral        → stock bajo
#   stock > umbral             → en stock
# ==============================================================================

from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from storefront.models import Product, SalesDataItem, StockDataItem
from storefront.repositories.interfaces import ISalesRepository, ISettingsRepository
from storefront.services.catalog_service import CatalogService
from storefront.performance_logger import profile_function


def normalize_category(category: str) -> str:
    """Primera letra en mayúscula, resto en minúscula ('WHISKEY' → 'Whiskey')."""
    category = (category or '').strip()
    if not category:
        return 'Unknown'
    return category[0].upper() + category[1:].lower()


def chart_payload(data: Optional[Sequence[Any]] = None) -> Dict[str, List[Dict[str, Any]]]:
    """
    Payload para los widgets de gráficos.
    Sin datos → lista vacía (el widget muestra estado vacío, no error).
    """
    return {'data': [item.to_dict() for item in (data or [])]}


class DashboardService:
    """
    Servicio de proyecciones para el panel.

    No tiene capacidad de escritura: solo lee catálogo y libro de ventas.
    """

    def __init__(
        self,
        catalog_service: CatalogService,
        sales_repo: ISalesRepository,
        settings_repo: ISettingsRepository = None,
        default_threshold: int = 10
    ):
        """
        Args:
            catalog_service: Acceso al catálogo
            sales_repo: Libro de ventas
            settings_repo: Ajustes de tienda (umbral editable)
            default_threshold: Umbral si no hay ajuste guardado
        """
        self.catalog_service = catalog_service
        self.sales_repo = sales_repo
        self.settings_repo = settings_repo
        self.default_threshold = default_threshold

    # =========================================================================
    # STOCK
    # =========================================================================

    @property
    def low_stock_threshold(self) -> int:
        if self.settings_repo is None:
            return self.default_threshold
        return self.settings_repo.get_low_stock_threshold(self.default_threshold)

    @staticmethod
    def classify(stock: int, threshold: int) -> str:
        """Estado de stock de un producto: 'out', 'low' o 'in'."""
        if stock <= 0:
            return 'out'
        if stock <= threshold:
            return 'low'
        return 'in'

    def _read_products_consistently(self) -> List[Product]:
        """
        Lee el catálogo sin intercalarse con un confirm en curso:
        toma los mismos locks por producto que el checkout.
        """
        pids = [p.id for p in self.catalog_service.get_all_products()]
        with self.catalog_service.lock_products(pids):
            return self.catalog_service.get_all_products()

    @profile_function(name="Calcular stock por categoría")
    def stock_by_category(self) -> List[StockDataItem]:
        """
        Agrega productos por categoría según su estado de stock.

        Returns:
            Un StockDataItem por categoría, ordenado por total descendente
        """
        threshold = self.low_stock_threshold
        counts = defaultdict(lambda: {'in': 0, 'low': 0, 'out': 0})

        for product in self._read_products_consistently():
            category = normalize_category(product.category)
            counts[category][self.classify(product.stock, threshold)] += 1

        items = [
            StockDataItem(
                category=category,
                in_stock=data['in'],
                low_stock=data['low'],
                out_of_stock=data['out']
            )
            for category, data in counts.items()
        ]
        items.sort(key=lambda item: (-item.total, item.category))
        return items

    def low_stock_alerts(self) -> List[Dict[str, Any]]:
        """
        Productos agotados o con stock bajo, menor stock primero.

        Returns:
            Lista de {id, sku, name, category, stock, status}
        """
        threshold = self.low_stock_threshold
        alerts = []
        for product in self.catalog_service.get_all_products():
            status = self.classify(product.stock, threshold)
            if status == 'in':
                continue
            alerts.append({
                'id': product.id,
                'sku': product.sku,
                'name': product.name,
                'category': normalize_category(product.category),
                'stock': product.stock,
                'status': 'OUT_OF_STOCK' if status == 'out' else 'LOW_STOCK'
            })
        alerts.sort(key=lambda a: (a['stock'], a['id']))
        return alerts

    def products_by_category(self) -> List[Dict[str, Any]]:
        """
        Cantidad de productos por categoría, fusionando variantes de
        mayúsculas ('gin' y 'GIN' cuentan como 'Gin').

        Returns:
            Lista de {name, value}, mayor cantidad primero
        """
        merged = defaultdict(int)
        for product in self.catalog_service.get_all_products():
            merged[normalize_category(product.category)] += 1

        rows = [{'name': name, 'value': value} for name, value in merged.items()]
        rows.sort(key=lambda row: (-row['value'], row['name']))
        return rows

    # =========================================================================
    # VENTAS
    # =========================================================================

    def _parse_date(self, date_str: str) -> Optional[datetime]:
        """
        Parsea una fecha ISO. Retorna None si no puede parsear.
        """
        if not date_str:
            return None
        try:
            parsed = datetime.fromisoformat(date_str.replace('Z', '+00:00'))
        except (ValueError, TypeError, AttributeError):
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @staticmethod
    def _month_window(months: int, today: date) -> List[tuple]:
        """Últimos `months` meses como (año, mes), el más antiguo primero."""
        year, month = today.year, today.month
        window = []
        for _ in range(max(0, months)):
            window.append((year, month))
            month -= 1
            if month == 0:
                year, month = year - 1, 12
        return list(reversed(window))

    @profile_function(name="Calcular ventas por mes")
    def sales_by_month(self, months: int = 6, today: Optional[date] = None) -> List[SalesDataItem]:
        """
        Ventas confirmadas agrupadas por mes, cronológicas y con ceros
        para meses sin ventas.

        Args:
            months: Cantidad de meses hasta el actual inclusive
            today: Fecha de referencia (default: hoy UTC)

        Returns:
            Lista de SalesDataItem
        """
        today = today or datetime.now(timezone.utc).date()
        window = self._month_window(months, today)
        totals = defaultdict(float)

        for sale in self.sales_repo.load():
            sale_date = self._parse_date(sale.get('ts'))
            if sale_date is None:
                continue
            try:
                totals[(sale_date.year, sale_date.month)] += float(sale.get('total', 0) or 0)
            except (TypeError, ValueError):
                continue

        return [
            SalesDataItem(
                month=date(year, month, 1).strftime('%b %Y'),
                sales=round(totals.get((year, month), 0.0), 2)
            )
            for year, month in window
        ]

    # =========================================================================
    # RESUMEN
    # =========================================================================

    @profile_function(name="Calcular resumen del panel")
    def summary(self) -> Dict[str, Any]:
        """
        Tarjetas de totales del panel.

        Returns:
            Dict con totalProducts, outOfStock, lowStock, totalSales
            (cantidad de ventas) y totalRevenue
        """
        threshold = self.low_stock_threshold
        products = self._read_products_consistently()
        statuses = [self.classify(p.stock, threshold) for p in products]

        sales = self.sales_repo.load()
        revenue = 0.0
        for sale in sales:
            try:
                revenue += float(sale.get('total', 0) or 0)
            except (TypeError, ValueError):
                continue

        return {
            'totalProducts': len(products),
            'outOfStock': statuses.count('out'),
            'lowStock': statuses.count('low'),
            'totalSales': len(sales),
            'totalRevenue': round(revenue, 2)
        }
