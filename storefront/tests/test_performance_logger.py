import os

from storefront import performance_logger
from storefront.models import BuyNowItem


def test_profiled_checkout_is_counted(checkout, catalog_service):
    performance_logger.reset_stats()

    checkout.confirm(checkout.open(BuyNowItem(product=catalog_service.require_product(1), quantity=1)))

    stats = performance_logger.get_function_stats()
    assert stats['Confirmar checkout']['calls'] == 1


def test_requests_are_logged_with_readable_names(client):
    client.get('/login')

    log_file = os.path.join(performance_logger.LOGS_DIR, performance_logger.PERFORMANCE_LOG)
    with open(log_file, encoding='utf-8') as f:
        content = f.read()
    assert 'Acción: Ver login' in content
