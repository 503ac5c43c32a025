from flask import Flask, render_template, request, redirect, url_for, session
from functools import wraps
import datetime
import uuid

from storefront import config

# Sistema de profiling interno
from storefront.performance_logger import init_profiling

# ═══════════════════════════════════════════════════════════════════════════
# CONTENEDOR DE DEPENDENCIAS - Servicios y Repositorios
# ═══════════════════════════════════════════════════════════════════════════
# Las rutas solo traducen HTTP ↔ servicios. La lógica vive en services/.
# El contexto de cada visitante (gate, carrito, checkout) es un StoreSession
# que se obtiene con get_store_session() y se pasa a quien lo necesite.
# ═══════════════════════════════════════════════════════════════════════════
from storefront.app_container import get_container
from storefront.models import AgeProof, BuyNowItem, HeaderProps, PageConfig
from storefront.services import StorefrontError, chart_payload

app = Flask(__name__)
app.config['DATA_DIR'] = config.DATA_DIR

# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZAR SISTEMA DE PROFILING
# ═══════════════════════════════════════════════════════════════════════════
# Mide rendimiento de rutas y funciones. Logs en logs/
# Para desactivar: STOREFRONT_PROFILING=0
init_profiling(app)

# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN DE SESIONES
# ═══════════════════════════════════════════════════════════════════════════════
# SECRET_KEY: En producción DEBE definirse via variable de entorno
# Comando: export STOREFRONT_SECRET_KEY="tu_clave_secreta_muy_larga_y_aleatoria"
if config.PRODUCTION_MODE and not config.SECRET_KEY:
    print("[ADVERTENCIA] PRODUCTION_MODE activo sin STOREFRONT_SECRET_KEY definida")
    print("[ADVERTENCIA] Define la variable de entorno para mayor seguridad")

app.secret_key = config.SECRET_KEY or config.DEFAULT_SECRET

# Configuración de cookies de sesión
app.config.update(**config.SESSION_SETTINGS)


# ═══════════════════════════════════════════════════════════════════════════════
# PÁGINAS - Configuración por página para el gate de edad
# ═══════════════════════════════════════════════════════════════════════════════
# Todas las páginas exigen verificación salvo login y términos.
PAGES = {
    'home': PageConfig('home'),
    'offers': PageConfig('offers'),
    'products': PageConfig('products'),
    'categories': PageConfig('categories'),
    'about': PageConfig('about'),
    'brand': PageConfig('brand'),
    'dashboard': PageConfig('dashboard'),
    'login': PageConfig('login', require_age_verification=False),
    'terms': PageConfig('terms', require_age_verification=False),
}

# Toda API comercial se evalúa como una página con verificación obligatoria
COMMERCE_API = PageConfig('api')


def container():
    return get_container(app.config['DATA_DIR'])


def get_store_session():
    """
    Contexto del visitante actual.
    El ID vive en la cookie de sesión firmada; el estado, en memoria.
    """
    sid = session.get('sid')
    if not sid:
        sid = container().new_session_id()
        session.permanent = True
        session['sid'] = sid
    return container().get_session(sid)


def to_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def parse_birth_date(value):
    """Fecha de nacimiento YYYY-MM-DD; None si falta o es inválida."""
    try:
        return datetime.date.fromisoformat((value or '').strip())
    except (TypeError, ValueError):
        return None


def json_body():
    """Cuerpo JSON como dict; cualquier otra cosa cuenta como vacío."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def error_response(e):
    return e.to_dict(), e.status_code


def age_gate_required(page_name):
    """
    Renderiza el aviso de verificación en lugar de la página mientras el
    visitante no haya verificado su edad.
    """
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            store = get_store_session()
            page = PAGES[page_name]
            if not store.gate.should_render(page):
                return render_template(
                    'age_prompt.html',
                    page=page,
                    next_url=request.path,
                    minimum_age=store.gate.minimum_age
                )
            return f(store, *args, **kwargs)
        return wrapper
    return deco


def age_verified_api(f):
    """Variante JSON del gate: 403 sin datos comerciales."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        store = get_store_session()
        if not store.gate.should_render(COMMERCE_API):
            return {
                "ok": False,
                "error": "Verificación de edad requerida",
                "code": "AGE_VERIFICATION_REQUIRED"
            }, 403
        return f(store, *args, **kwargs)
    return wrapper


def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


@app.context_processor
def inject_csrf_token():
    return {'csrf_token': generate_csrf_token()}


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method == 'POST':
            token = session.get('csrf_token')
            form_token = (
                request.form.get('csrf_token') or
                request.headers.get('X-CSRF-Token') or
                request.headers.get('X-CSRFToken')
            )
            if not form_token and request.is_json:
                json_data = json_body()
                form_token = json_data.get('csrf_token')

            if not token or not form_token or token != form_token:
                if request.path.startswith('/api/'):
                    return {"ok": False, "error": "CSRF token inválido", "code": "CSRF"}, 403
                return redirect(url_for('home'))
        return f(*args, **kwargs)
    return wrapper


@app.errorhandler(StorefrontError)
def handle_storefront_error(e):
    """Errores de negocio no atrapados en la ruta → JSON con su código."""
    return error_response(e)


@app.after_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    # HSTS solo con HTTPS real
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════════
# PÁGINAS
# ═══════════════════════════════════════════════════════════════════════════════

def header_props(search_query=''):
    """Props del header: cada callback devuelve la URL de su acción."""
    return HeaderProps(
        search_query=search_query,
        on_search_change=lambda q: url_for('products', q=q) if q else url_for('products'),
        on_checkout=lambda: url_for('api_checkout_open'),
        on_login_click=lambda: url_for('login')
    )


def render_page(store, page_name, search_query='', **context):
    return render_template(
        'page.html',
        page=PAGES[page_name],
        header=header_props(search_query),
        cart=store.cart.summary(),
        **context
    )


@app.route("/")
@age_gate_required('home')
def home(store):
    return render_page(store, 'home')


@app.route("/offers")
@age_gate_required('offers')
def offers(store):
    return render_page(store, 'offers', products=container().catalog_service.get_all_products())


@app.route("/products")
@age_gate_required('products')
def products(store):
    query = (request.args.get('q') or '').strip()
    return render_page(
        store, 'products',
        search_query=query,
        products=container().catalog_service.search(query)
    )


@app.route("/categories")
@age_gate_required('categories')
def categories(store):
    category = (request.args.get('c') or '').strip()
    catalog = container().catalog_service
    items = catalog.get_products_by_category(category) if category else catalog.get_all_products()
    return render_page(store, 'categories', category=category, products=items)


@app.route("/about")
@age_gate_required('about')
def about(store):
    return render_page(store, 'about')


@app.route("/brand")
@age_gate_required('brand')
def brand(store):
    return render_page(store, 'brand')


@app.route("/dashboard")
@age_gate_required('dashboard')
def dashboard(store):
    dashboards = container().dashboard_service
    return render_page(
        store, 'dashboard',
        stock_chart=chart_payload(dashboards.stock_by_category()),
        sales_chart=chart_payload(dashboards.sales_by_month(config.SALES_CHART_MONTHS)),
        alerts=dashboards.low_stock_alerts(),
        summary=dashboards.summary(),
        category_chart={'data': dashboards.products_by_category()}
    )


@app.route("/login")
def login():
    store = get_store_session()
    return render_page(store, 'login')


@app.route("/terms")
def terms():
    store = get_store_session()
    return render_page(store, 'terms')


# ═══════════════════════════════════════════════════════════════════════════════
# VERIFICACIÓN DE EDAD
# ═══════════════════════════════════════════════════════════════════════════════

def _safe_next(next_url):
    # Solo rutas locales
    if next_url and next_url.startswith('/') and not next_url.startswith('//'):
        return next_url
    return url_for('home')


@app.route("/age/verify", methods=["POST"])
@verify_csrf
def age_verify():
    """Formulario del aviso de verificación."""
    store = get_store_session()
    proof = AgeProof(birth_date=parse_birth_date(request.form.get('birth_date')))
    next_url = _safe_next(request.form.get('next'))
    try:
        store.gate.verify(proof)
    except StorefrontError as e:
        return render_template(
            'age_denied.html',
            error=e.message,
            next_url=next_url,
            minimum_age=store.gate.minimum_age
        ), 403
    return redirect(next_url)


@app.route("/api/age/verify", methods=["POST"])
@verify_csrf
def api_age_verify():
    """
    Verificar edad.
    Espera JSON con: birth_date (YYYY-MM-DD)
    """
    data = json_body()
    store = get_store_session()
    proof = AgeProof(birth_date=parse_birth_date(data.get('birth_date')))
    try:
        state = store.gate.verify(proof)
    except StorefrontError as e:
        return error_response(e)
    return {"ok": True, "state": state.to_dict()}


@app.route("/api/age/status", methods=["GET"])
def api_age_status():
    store = get_store_session()
    return {
        "ok": True,
        "state": store.gate.current_state().to_dict(),
        "csrf_token": generate_csrf_token()
    }


# ═══════════════════════════════════════════════════════════════════════════════
# CARRITO
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/cart", methods=["GET"])
@age_verified_api
def api_cart(store):
    """Ver contenido actual del carrito"""
    return {"ok": True, "cart": store.cart.summary()}


@app.route("/api/cart/add", methods=["POST"])
@verify_csrf
@age_verified_api
def api_cart_add(store):
    """
    Agregar producto al carrito.
    Espera JSON con: product_id, quantity (default 1)
    """
    data = json_body()
    if not data:
        return {"ok": False, "error": "Datos no recibidos o formato inválido"}, 400

    product_id = to_int(data.get("product_id"))
    if product_id is None:
        return {"ok": False, "error": "ID de producto inválido"}, 400

    try:
        product = container().catalog_service.require_product(product_id)
        store.cart.add(product, data.get("quantity", 1))
    except StorefrontError as e:
        return error_response(e)

    return {"ok": True, "mensaje": f"{product.name} agregado al carrito", "cart": store.cart.summary()}


@app.route("/api/cart/remove", methods=["POST"])
@verify_csrf
@age_verified_api
def api_cart_remove(store):
    """Eliminar un producto del carrito"""
    data = json_body()
    if not data:
        return {"ok": False, "error": "Datos no recibidos"}, 400

    product_id = to_int(data.get("product_id"))
    if product_id is None:
        return {"ok": False, "error": "ID de producto inválido"}, 400

    store.cart.remove(product_id)
    return {"ok": True, "mensaje": "Producto eliminado del carrito", "cart": store.cart.summary()}


@app.route("/api/cart/quantity", methods=["POST"])
@verify_csrf
@age_verified_api
def api_cart_quantity(store):
    """Cambiar la cantidad de una línea (<= 0 la elimina)"""
    data = json_body()
    if not data:
        return {"ok": False, "error": "Datos no recibidos"}, 400

    product_id = to_int(data.get("product_id"))
    if product_id is None:
        return {"ok": False, "error": "ID de producto inválido"}, 400

    try:
        store.cart.set_quantity(product_id, data.get("quantity"))
    except StorefrontError as e:
        return error_response(e)

    return {"ok": True, "cart": store.cart.summary()}


@app.route("/api/cart/clear", methods=["POST"])
@verify_csrf
@age_verified_api
def api_cart_clear(store):
    """Vaciar el carrito"""
    store.cart.clear()
    return {"ok": True, "mensaje": "Carrito vaciado", "cart": store.cart.summary()}


# ═══════════════════════════════════════════════════════════════════════════════
# CHECKOUT
# ═══════════════════════════════════════════════════════════════════════════════

def _current_handle(store):
    """Manejador abierto indicado por handle_id (query o JSON)."""
    data = json_body()
    handle_id = data.get('handle_id') or request.args.get('handle_id')
    if not handle_id:
        return store.checkout.current_handle()
    return store.checkout.get_handle(handle_id)


@app.route("/api/checkout/open", methods=["POST"])
@verify_csrf
@age_verified_api
def api_checkout_open(store):
    """
    Abrir el checkout.
    JSON opcional: {"buy_now": {"product_id": 2, "quantity": 1}}
    Sin buy_now, el checkout usa el carrito.
    """
    data = json_body()
    buy_now = data.get('buy_now')
    if buy_now is not None and not isinstance(buy_now, dict):
        return {"ok": False, "error": "buy_now debe ser un objeto {product_id, quantity}"}, 400

    try:
        buy_now_item = None
        if buy_now:
            product_id = to_int(buy_now.get('product_id'))
            if product_id is None:
                return {"ok": False, "error": "ID de producto inválido"}, 400
            product = container().catalog_service.require_product(product_id)
            buy_now_item = BuyNowItem(product=product, quantity=buy_now.get('quantity', 1))

        handle = store.checkout.open(buy_now_item)
        intent = store.checkout.resolve_intent(handle)
    except StorefrontError as e:
        return error_response(e)

    return {
        "ok": True,
        "handle_id": handle.handle_id,
        "intent": intent.to_dict(),
        "modal": store.checkout.modal_props(handle).to_dict()
    }


@app.route("/api/checkout/intent", methods=["GET"])
@age_verified_api
def api_checkout_intent(store):
    """Resolver la intención de compra contra stock vivo"""
    try:
        intent = store.checkout.resolve_intent(_current_handle(store))
    except StorefrontError as e:
        return error_response(e)
    return {"ok": True, "intent": intent.to_dict()}


@app.route("/api/checkout/confirm", methods=["POST"])
@verify_csrf
@age_verified_api
def api_checkout_confirm(store):
    """
    Confirmar la compra. SIEMPRE devuelve JSON.

    Respuesta:
    - ok: true/false
    - receipt: "RXXXX"
    - code: EMPTY_INTENT / STALE_QUANTITY / OVER_STOCK / ... (si falla)
    """
    try:
        receipt = store.checkout.confirm(_current_handle(store))
    except StorefrontError as e:
        return error_response(e)

    return {
        "ok": True,
        "receipt": receipt.receipt,
        "total": receipt.total,
        "mode": receipt.mode.value,
        "sale": receipt.to_dict(),
        "mensaje": f"Compra {receipt.receipt} confirmada",
        "cart": store.cart.summary()
    }


@app.route("/api/checkout/close", methods=["POST"])
@verify_csrf
@age_verified_api
def api_checkout_close(store):
    """Cerrar el modal de checkout (el carrito no cambia)"""
    handle = _current_handle(store)
    if handle is not None:
        store.checkout.modal_props(handle).on_close()
    return {
        "ok": True,
        "modal": store.checkout.modal_props().to_dict(),
        "cart": store.cart.summary()
    }


# ═══════════════════════════════════════════════════════════════════════════════
# DASHBOARDS Y BÚSQUEDA
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/dashboard/stock", methods=["GET"])
@age_verified_api
def api_dashboard_stock(store):
    try:
        data = container().dashboard_service.stock_by_category()
    except StorefrontError as e:
        return error_response(e)
    return {"ok": True, **chart_payload(data)}


@app.route("/api/dashboard/sales", methods=["GET"])
@age_verified_api
def api_dashboard_sales(store):
    months = to_int(request.args.get('months'), config.SALES_CHART_MONTHS)
    months = max(1, min(months, 36))
    data = container().dashboard_service.sales_by_month(months)
    return {"ok": True, **chart_payload(data)}


@app.route("/api/dashboard/alerts", methods=["GET"])
@age_verified_api
def api_dashboard_alerts(store):
    dashboards = container().dashboard_service
    try:
        alerts = dashboards.low_stock_alerts()
    except StorefrontError as e:
        return error_response(e)
    return {"ok": True, "threshold": dashboards.low_stock_threshold, "alerts": alerts}


@app.route("/api/dashboard/summary", methods=["GET"])
@age_verified_api
def api_dashboard_summary(store):
    """Totales del panel y productos por categoría"""
    dashboards = container().dashboard_service
    try:
        summary = dashboards.summary()
        by_category = dashboards.products_by_category()
    except StorefrontError as e:
        return error_response(e)
    return {"ok": True, "summary": summary, "productsByCategory": by_category}


@app.route("/api/products/search", methods=["GET"])
@age_verified_api
def api_products_search(store):
    """Búsqueda del header por nombre o SKU"""
    query = (request.args.get('q') or '').strip()
    try:
        results = container().catalog_service.search(query)
    except StorefrontError as e:
        return error_response(e)
    return {
        "ok": True,
        "query": query,
        "products": [dict(id=p.id, **p.to_dict()) for p in results]
    }


if __name__ == "__main__":
    import os
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '127.0.0.1')
    PORT = int(os.environ.get('FLASK_PORT', 5000))

    if not DEBUG:
        print(f"\n{'='*50}")
        print(f"  Tienda iniciada en http://{HOST}:{PORT}")
        print(f"{'='*50}\n")

    app.run(host=HOST, port=PORT, debug=DEBUG)
