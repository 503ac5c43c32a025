import pytest

from storefront.app_container import AppContainer


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def container(data_dir):
    AppContainer.reset_instance()
    c = AppContainer(base_path=str(data_dir), session_ttl=10)
    c._clock = FakeClock()
    yield c
    AppContainer.reset_instance()


def test_same_sid_returns_same_session(container):
    first = container.get_session('a' * 32)

    assert container.get_session('a' * 32) is first
    assert container.active_sessions == 1


def test_idle_sessions_are_evicted(container):
    container.get_session('idle')
    container._clock.now += 5
    container.get_session('busy')

    container._clock.now += 8
    container.get_session('busy')

    assert container.active_sessions == 1
    assert 'idle' not in container._sessions


def test_activity_keeps_session_alive(container):
    store = container.get_session('sid')
    for _ in range(5):
        container._clock.now += 9
        assert container.get_session('sid') is store

    assert container.active_sessions == 1


def test_expired_sid_gets_fresh_state(container, catalog_service):
    store = container.get_session('sid')
    store.cart.add(catalog_service.require_product(1), 2)

    container._clock.now += 11
    fresh = container.get_session('sid')

    assert fresh is not store
    assert fresh.cart.is_empty()
    assert not fresh.gate.current_state().verified


def test_end_session_discards_state(container):
    container.get_session('sid')

    container.end_session('sid')

    assert container.active_sessions == 0


def test_default_ttl_follows_cookie_lifetime(data_dir):
    from storefront import config

    AppContainer.reset_instance()
    try:
        c = AppContainer(base_path=str(data_dir))
        assert c.session_ttl == config.SESSION_SETTINGS['PERMANENT_SESSION_LIFETIME']
    finally:
        AppContainer.reset_instance()
