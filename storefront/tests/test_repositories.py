import json
import threading

import pytest

from storefront.services import CatalogUnavailable, ProductNotFound


def test_catalog_reads_products_sorted(catalog_repo):
    products = catalog_repo.get_all_products()

    assert [p.id for p in products] == [1, 2, 3, 4, 5]
    assert products[0].name == 'Whiskey Reserva'


def test_catalog_category_filter_ignores_case(catalog_repo):
    assert [p.id for p in catalog_repo.get_products_by_category('WHISKEY')] == [1, 5]


def test_catalog_search_by_name_or_sku(catalog_repo):
    assert [p.id for p in catalog_repo.search_by_name('whiskey')] == [1, 5]
    assert [p.id for p in catalog_repo.search_by_name('p0003')] == [3]
    assert len(catalog_repo.search_by_name('')) == 5


def test_set_stock_never_negative(catalog_repo, data_dir):
    assert catalog_repo.set_stock(2, -5) is True
    assert catalog_repo.get_stock(2) == 0

    with open(data_dir / 'catalog.json', encoding='utf-8') as f:
        assert json.load(f)['2']['stock'] == 0


def test_set_stock_unknown_product(catalog_repo):
    assert catalog_repo.set_stock(99, 3) is False
    assert catalog_repo.get_stock(99) is None


def test_corrupt_catalog_raises_instead_of_emptying(catalog_repo, break_catalog):
    break_catalog()

    with pytest.raises(ValueError):
        catalog_repo.get_all_products()


def test_catalog_service_maps_read_failures(catalog_service, break_catalog):
    break_catalog()

    with pytest.raises(CatalogUnavailable):
        catalog_service.get_all_products()


def test_require_product_unknown(catalog_service):
    with pytest.raises(ProductNotFound) as exc:
        catalog_service.require_product(404)

    assert exc.value.status_code == 404


def test_missing_product_stock_counts_as_zero(catalog_service):
    assert catalog_service.get_stock(99) == 0


def test_receipt_numbering(sales_repo):
    assert sales_repo.get_next_receipt_number() == 'R0001'

    sales_repo.save_all([{'receipt': 'R0009', 'total': 1}, {'receipt': 'X12', 'total': 1}])
    sale = sales_repo.create_sale({'receipt': 'R0001', 'total': 2})

    assert sale['receipt'] == 'R0010'
    assert sales_repo.get_by_receipt('R0010')['total'] == 2
    assert sales_repo.get_by_receipt('R0001') is None


def test_concurrent_sales_get_distinct_receipts(sales_repo):
    start = threading.Barrier(8)
    receipts = []

    def sell():
        start.wait()
        receipts.append(sales_repo.create_sale({'total': 1})['receipt'])

    threads = [threading.Thread(target=sell) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(receipts) == [f'R{n:04d}' for n in range(1, 9)]
    assert len(sales_repo.load()) == 8


def test_low_stock_threshold_setting(settings_repo):
    assert settings_repo.get_low_stock_threshold(10) == 10

    settings_repo.set_low_stock_threshold(4)
    assert settings_repo.get_low_stock_threshold(10) == 4

    settings_repo.set_setting('low_stock_threshold', -1)
    assert settings_repo.get_low_stock_threshold(10) == 10


def test_audit_log_most_recent_first(audit_service, audit_repo):
    audit_service.log_age_verified('v1')
    audit_service.log_checkout_rejected('v1', 'OVER_STOCK', 'sin stock')

    logs = audit_service.get_recent(10)

    assert [log['type'] for log in logs] == ['CHECKOUT', 'VERIFICACION']
    assert logs[0]['details'] == {'code': 'OVER_STOCK'}
