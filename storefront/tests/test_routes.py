import re


def csrf_token(client):
    r = client.get('/api/age/status')
    assert r.status_code == 200
    return r.get_json()['csrf_token']


def post_json(client, url, payload=None):
    return client.post(url, json=payload or {}, headers={'X-CSRF-Token': csrf_token(client)})


def verify_age(client, birth_date='1990-01-01'):
    r = post_json(client, '/api/age/verify', {'birth_date': birth_date})
    assert r.status_code == 200
    assert r.get_json()['state']['verified'] is True


# ═══════════════════════════════════════════════════════════════════════════
# GATE DE EDAD
# ═══════════════════════════════════════════════════════════════════════════

def test_commerce_pages_show_prompt_before_verification(client):
    for path in ['/', '/offers', '/products', '/categories', '/about', '/brand', '/dashboard']:
        r = client.get(path)
        html = r.get_data(as_text=True)
        assert r.status_code == 200, path
        assert 'Verificación de edad' in html, path
        assert 'Whiskey Reserva' not in html, path


def test_login_and_terms_render_without_verification(client):
    for path, name in [('/login', 'login'), ('/terms', 'terms')]:
        r = client.get(path)
        html = r.get_data(as_text=True)
        assert r.status_code == 200
        assert f'class="page-{name}"' in html
        assert 'Verificación de edad' not in html


def test_commerce_api_blocked_before_verification(client):
    for path in ['/api/cart', '/api/dashboard/stock', '/api/dashboard/sales',
                 '/api/dashboard/alerts', '/api/products/search?q=whiskey',
                 '/api/dashboard/summary']:
        r = client.get(path)
        assert r.status_code == 403, path
        body = r.get_json()
        assert body['ok'] is False
        assert body['code'] == 'AGE_VERIFICATION_REQUIRED'
        assert 'data' not in body

    r = post_json(client, '/api/cart/add', {'product_id': 1, 'quantity': 1})
    assert r.status_code == 403


def test_age_prompt_form_verifies_and_redirects(client):
    html = client.get('/offers').get_data(as_text=True)
    m = re.search(r'name="csrf_token" value="([0-9a-f]+)"', html)
    assert m, 'no csrf token in age prompt'

    r = client.post('/age/verify', data={
        'birth_date': '1990-05-01',
        'next': '/offers',
        'csrf_token': m.group(1)
    })
    assert r.status_code == 302
    assert r.headers['Location'].endswith('/offers')

    html = client.get('/offers').get_data(as_text=True)
    assert 'Whiskey Reserva' in html
    assert 'Verificación de edad' not in html


def test_underage_form_shows_denied_page_and_stays_unverified(client):
    html = client.get('/').get_data(as_text=True)
    token = re.search(r'name="csrf_token" value="([0-9a-f]+)"', html).group(1)

    r = client.post('/age/verify', data={'birth_date': '2015-01-01', 'next': '/', 'csrf_token': token})

    assert r.status_code == 403
    assert 'Acceso denegado' in r.get_data(as_text=True)
    assert client.get('/api/age/status').get_json()['state']['verified'] is False
    assert 'Verificación de edad' in client.get('/').get_data(as_text=True)


def test_api_verify_rejects_invalid_proof(client):
    r = post_json(client, '/api/age/verify', {'birth_date': 'ayer'})

    assert r.status_code == 400
    assert r.get_json()['code'] == 'INVALID_PROOF'


def test_post_without_csrf_token_is_rejected(client):
    r = client.post('/api/age/verify', json={'birth_date': '1990-01-01'})

    assert r.status_code == 403
    assert r.get_json()['ok'] is False


# ═══════════════════════════════════════════════════════════════════════════
# CARRITO Y CHECKOUT
# ═══════════════════════════════════════════════════════════════════════════

def test_cart_checkout_flow(client):
    verify_age(client)

    r = post_json(client, '/api/cart/add', {'product_id': 1, 'quantity': 2})
    assert r.status_code == 200
    assert r.get_json()['cart']['total'] == 20.0

    cart = client.get('/api/cart').get_json()['cart']
    assert cart['total_items'] == 2

    r = post_json(client, '/api/checkout/open')
    body = r.get_json()
    assert r.status_code == 200
    assert body['intent']['mode'] == 'CART'
    assert body['intent']['total'] == 20.0

    r = client.get('/api/checkout/intent', query_string={'handle_id': body['handle_id']})
    assert r.get_json()['intent']['total_items'] == 2

    r = post_json(client, '/api/checkout/confirm', {'handle_id': body['handle_id']})
    result = r.get_json()
    assert r.status_code == 200
    assert result['ok'] is True
    assert result['receipt'] == 'R0001'
    assert result['cart']['items'] == []

    products = client.get('/api/products/search', query_string={'q': 'P0001'}).get_json()['products']
    assert products[0]['stock'] == 3

    sales = client.get('/api/dashboard/sales').get_json()['data']
    assert len(sales) == 6
    assert sales[-1]['sales'] == 20.0


def test_buy_now_does_not_touch_cart(client):
    verify_age(client)
    post_json(client, '/api/cart/add', {'product_id': 1, 'quantity': 2})

    r = post_json(client, '/api/checkout/open', {'buy_now': {'product_id': 2, 'quantity': 1}})
    intent = r.get_json()['intent']
    assert intent['mode'] == 'BUY_NOW'
    assert [(i['product_id'], i['quantity']) for i in intent['items']] == [(2, 1)]
    modal = r.get_json()['modal']
    assert modal['open'] is True
    assert modal['buyNowItem']['product_id'] == 2

    r = post_json(client, '/api/checkout/close', {'handle_id': r.get_json()['handle_id']})
    cart = r.get_json()['cart']
    assert r.get_json()['modal'] == {'open': False, 'buyNowItem': None}
    assert [(i['product_id'], i['quantity']) for i in cart['items']] == [(1, 2)]


def test_confirm_over_stock_returns_conflict(client):
    verify_age(client)
    post_json(client, '/api/cart/add', {'product_id': 3, 'quantity': 2})
    handle_id = post_json(client, '/api/checkout/open').get_json()['handle_id']

    r = post_json(client, '/api/checkout/confirm', {'handle_id': handle_id})

    assert r.status_code == 409
    assert r.get_json()['code'] == 'OVER_STOCK'
    products = client.get('/api/products/search', query_string={'q': 'P0003'}).get_json()['products']
    assert products[0]['stock'] == 1


def test_confirm_empty_cart(client):
    verify_age(client)
    handle_id = post_json(client, '/api/checkout/open').get_json()['handle_id']

    r = post_json(client, '/api/checkout/confirm', {'handle_id': handle_id})

    assert r.status_code == 409
    assert r.get_json()['code'] == 'EMPTY_INTENT'


def test_confirm_without_open_checkout(client):
    verify_age(client)

    r = post_json(client, '/api/checkout/confirm')

    assert r.status_code == 409
    assert r.get_json()['code'] == 'HANDLE_CLOSED'


def test_cart_quantity_and_remove(client):
    verify_age(client)
    post_json(client, '/api/cart/add', {'product_id': 1, 'quantity': 1})
    post_json(client, '/api/cart/add', {'product_id': 2, 'quantity': 1})

    r = post_json(client, '/api/cart/quantity', {'product_id': 1, 'quantity': 4})
    assert r.get_json()['cart']['total_items'] == 5

    r = post_json(client, '/api/cart/quantity', {'product_id': 2, 'quantity': 0})
    assert r.get_json()['cart']['items_count'] == 1

    r = post_json(client, '/api/cart/remove', {'product_id': 1})
    assert r.get_json()['cart']['items'] == []


def test_cart_add_invalid_quantity(client):
    verify_age(client)

    r = post_json(client, '/api/cart/add', {'product_id': 1, 'quantity': 0})

    assert r.status_code == 400
    assert r.get_json()['code'] == 'INVALID_QUANTITY'
    assert client.get('/api/cart').get_json()['cart']['items'] == []


def test_cart_add_rejects_non_object_body(client):
    verify_age(client)

    r = client.post('/api/cart/add', json=[1, 2], headers={'X-CSRF-Token': csrf_token(client)})

    assert r.status_code == 400
    assert r.get_json()['ok'] is False


def test_checkout_open_rejects_non_object_buy_now(client):
    verify_age(client)

    for buy_now in [5, 'P0001', [1, 1]]:
        r = post_json(client, '/api/checkout/open', {'buy_now': buy_now})
        assert r.status_code == 400, buy_now
        assert r.get_json()['ok'] is False


def test_cart_add_unknown_product(client):
    verify_age(client)

    r = post_json(client, '/api/cart/add', {'product_id': 999, 'quantity': 1})

    assert r.status_code == 404
    assert r.get_json()['code'] == 'PRODUCT_NOT_FOUND'


def test_catalog_unavailable_returns_503(client, break_catalog):
    verify_age(client)
    break_catalog()

    r = client.get('/api/products/search', query_string={'q': 'whiskey'})

    assert r.status_code == 503
    assert r.get_json()['code'] == 'CATALOG_UNAVAILABLE'


def test_sessions_are_isolated(client, data_dir):
    verify_age(client)
    post_json(client, '/api/cart/add', {'product_id': 1, 'quantity': 1})

    from storefront.main import app
    with app.test_client() as other:
        assert other.get('/api/cart').status_code == 403
        verify_age(other)
        assert other.get('/api/cart').get_json()['cart']['items'] == []


# ═══════════════════════════════════════════════════════════════════════════
# DASHBOARDS
# ═══════════════════════════════════════════════════════════════════════════

def test_dashboard_stock_api(client):
    verify_age(client)

    data = client.get('/api/dashboard/stock').get_json()['data']

    assert data[0] == {'category': 'Whiskey', 'inStock': 1, 'lowStock': 1, 'outOfStock': 0}
    assert {row['category'] for row in data} == {'Whiskey', 'Gin', 'Rum', 'Vodka'}


def test_dashboard_alerts_api(client):
    verify_age(client)

    body = client.get('/api/dashboard/alerts').get_json()

    assert body['threshold'] == 10
    assert body['alerts'][0]['sku'] == 'P0004'
    assert body['alerts'][0]['status'] == 'OUT_OF_STOCK'


def test_dashboard_page_renders_after_verification(client):
    verify_age(client)

    html = client.get('/dashboard').get_data(as_text=True)

    assert 'class="page-dashboard"' in html
    assert 'Whiskey: 1 / 1 / 0' in html


def test_security_headers(client):
    r = client.get('/login')

    assert r.headers['X-Frame-Options'] == 'DENY'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'


def test_dashboard_summary_api(client):
    verify_age(client)
    post_json(client, '/api/cart/add', {'product_id': 2, 'quantity': 1})
    handle_id = post_json(client, '/api/checkout/open').get_json()['handle_id']
    post_json(client, '/api/checkout/confirm', {'handle_id': handle_id})

    body = client.get('/api/dashboard/summary').get_json()

    assert body['summary'] == {
        'totalProducts': 5,
        'outOfStock': 1,
        'lowStock': 3,
        'totalSales': 1,
        'totalRevenue': 5.0,
    }
    assert body['productsByCategory'][0] == {'name': 'Whiskey', 'value': 2}


# ═══════════════════════════════════════════════════════════════════════════
# HEADER
# ═══════════════════════════════════════════════════════════════════════════

def test_products_header_keeps_search_query(client):
    verify_age(client)

    html = client.get('/products', query_string={'q': 'ron'}).get_data(as_text=True)

    assert 'action="/products"' in html
    assert 'name="q" value="ron"' in html
    assert 'data-action="/api/checkout/open"' in html
    assert 'class="login" href="/login"' in html
    assert 'Ron Añejo' in html
    assert 'Whiskey Reserva' not in html


def test_header_search_is_empty_on_other_pages(client):
    verify_age(client)

    html = client.get('/offers').get_data(as_text=True)

    assert 'name="q" value=""' in html
