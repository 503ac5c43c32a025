# ==============================================================================
# CONFIGURACIÓN DE LA TIENDA
# ==============================================================================
# Valores leídos de variables de entorno con defaults de desarrollo.
# En producción definir al menos STOREFRONT_SECRET_KEY:
#   export STOREFRONT_SECRET_KEY="clave_larga_y_aleatoria"
# ==============================================================================

import os


def _env_int(name: str, default: int) -> int:
    """Lee un entero del entorno; si no es válido usa el default."""
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


BASE = os.path.dirname(os.path.abspath(__file__))

# True = advertencias si falta la clave secreta
PRODUCTION_MODE = os.environ.get('STOREFRONT_PRODUCTION', '0') == '1'

DEFAULT_SECRET = "storefront_dev_secret_key_change_in_production"
SECRET_KEY = os.environ.get('STOREFRONT_SECRET_KEY')

# Carpeta con catalog.json, sales.json, audit.json, store_settings.json
DATA_DIR = os.environ.get('STOREFRONT_DATA_DIR') or os.path.join(BASE, 'data')

# Edad mínima para ver contenido comercial
MINIMUM_AGE = _env_int('STOREFRONT_MINIMUM_AGE', 18)

# Un producto es "stock bajo" cuando 0 < stock <= umbral
LOW_STOCK_THRESHOLD = _env_int('STOREFRONT_LOW_STOCK_THRESHOLD', 10)

# Meses mostrados en el gráfico de ventas
SALES_CHART_MONTHS = _env_int('STOREFRONT_SALES_CHART_MONTHS', 6)

# Cookies de sesión (mismos criterios que un despliegue HTTP local)
SESSION_SETTINGS = dict(
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SECURE=False,
    SESSION_COOKIE_SAMESITE='Lax',
    PERMANENT_SESSION_LIFETIME=86400,  # 24 horas
)
