import json
import os

import pytest

from storefront import performance_logger
from storefront.app_container import AppContainer
from storefront.main import app
from storefront.repositories import (
    AuditRepository,
    CatalogRepository,
    SalesRepository,
    SettingsRepository,
)
from storefront.services import AuditService, CartStore, CatalogService, CheckoutSession


# id: (sku, nombre, categoría, precio, stock)
CATALOG = {
    "1": {"sku": "P0001", "name": "Whiskey Reserva", "category": "whiskey", "price": 10.0, "stock": 5},
    "2": {"sku": "P0002", "name": "Vodka Clásico", "category": "Vodka", "price": 5.0, "stock": 3},
    "3": {"sku": "P0003", "name": "Ron Añejo", "category": "RUM", "price": 7.5, "stock": 1},
    "4": {"sku": "P0004", "name": "Gin Botánico", "category": "gin", "price": 12.0, "stock": 0},
    "5": {"sku": "P0005", "name": "Whiskey Malta", "category": "Whiskey", "price": 30.0, "stock": 40},
}


@pytest.fixture(autouse=True)
def _logs_in_tmp(tmp_path, monkeypatch):
    monkeypatch.setattr(performance_logger, 'LOGS_DIR', str(tmp_path / 'logs'))


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / 'data'
    path.mkdir()
    with open(path / 'catalog.json', 'w', encoding='utf-8') as f:
        json.dump(CATALOG, f)
    return path


@pytest.fixture
def break_catalog(data_dir):
    """Función que deja catalog.json ilegible."""
    def _break():
        with open(os.path.join(str(data_dir), 'catalog.json'), 'w', encoding='utf-8') as f:
            f.write('{no es json')
    return _break


@pytest.fixture
def catalog_repo(data_dir):
    return CatalogRepository(str(data_dir))


@pytest.fixture
def sales_repo(data_dir):
    return SalesRepository(str(data_dir))


@pytest.fixture
def audit_repo(data_dir):
    return AuditRepository(str(data_dir))


@pytest.fixture
def settings_repo(data_dir):
    return SettingsRepository(str(data_dir))


@pytest.fixture
def catalog_service(catalog_repo):
    return CatalogService(catalog_repo)


@pytest.fixture
def audit_service(audit_repo):
    return AuditService(audit_repo)


@pytest.fixture
def cart():
    return CartStore()


@pytest.fixture
def checkout(cart, catalog_service, sales_repo, audit_service):
    return CheckoutSession(cart, catalog_service, sales_repo, audit_service, visitor='test')


@pytest.fixture
def client(data_dir):
    AppContainer.reset_instance()
    app.config['TESTING'] = True
    app.config['DATA_DIR'] = str(data_dir)
    with app.test_client() as c:
        yield c
    AppContainer.reset_instance()
