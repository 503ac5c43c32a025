from datetime import date

import pytest

from storefront.main import PAGES
from storefront.models import AgeProof, PageConfig
from storefront.services import AgeVerificationGate, VerificationError

TODAY = date(2026, 6, 15)


def test_new_session_is_unverified():
    gate = AgeVerificationGate()

    state = gate.current_state()

    assert state.verified is False
    assert state.timestamp is None


def test_is_required_follows_page_flag():
    assert AgeVerificationGate.is_required(PageConfig('home'))
    assert not AgeVerificationGate.is_required(PageConfig('terms', require_age_verification=False))


def test_only_login_and_terms_skip_the_gate():
    exempt = {name for name, page in PAGES.items() if not AgeVerificationGate.is_required(page)}
    assert exempt == {'login', 'terms'}


def test_should_render_before_and_after_verification():
    gate = AgeVerificationGate()

    assert not gate.should_render(PAGES['offers'])
    assert gate.should_render(PAGES['login'])
    assert gate.should_render(PAGES['terms'])

    gate.verify(AgeProof(date(1990, 1, 1)), today=TODAY)

    assert gate.should_render(PAGES['offers'])
    assert gate.should_render(PAGES['dashboard'])


def test_verify_sets_verified_with_timestamp():
    gate = AgeVerificationGate()

    state = gate.verify(AgeProof(date(1990, 1, 1)), today=TODAY)

    assert state.verified
    assert state.timestamp is not None


def test_verify_is_idempotent():
    gate = AgeVerificationGate()
    first = gate.verify(AgeProof(date(1990, 1, 1)), today=TODAY)

    # Una prueba inválida no revoca ni refresca la verificación
    second = gate.verify(AgeProof(None), today=TODAY)

    assert second == first
    assert gate.current_state().timestamp == first.timestamp


@pytest.mark.parametrize('birth_date', [
    date(2008, 6, 16),   # cumple 18 mañana
    date(2020, 1, 1),
    date(2027, 1, 1),    # fecha futura
    None,
])
def test_invalid_proof_leaves_state_unchanged(birth_date):
    gate = AgeVerificationGate(minimum_age=18)

    with pytest.raises(VerificationError) as exc:
        gate.verify(AgeProof(birth_date), today=TODAY)

    assert exc.value.code == VerificationError.INVALID_PROOF
    assert gate.current_state().verified is False


def test_birthday_today_is_accepted():
    gate = AgeVerificationGate(minimum_age=18)

    state = gate.verify(AgeProof(date(2008, 6, 15)), today=TODAY)

    assert state.verified


def test_minimum_age_is_configurable():
    gate = AgeVerificationGate(minimum_age=21)

    with pytest.raises(VerificationError):
        gate.verify(AgeProof(date(2006, 1, 1)), today=TODAY)

    assert gate.verify(AgeProof(date(2005, 1, 1)), today=TODAY).verified


def test_current_state_is_a_copy():
    gate = AgeVerificationGate()

    gate.current_state().verified = True

    assert gate.current_state().verified is False


def test_verification_is_audited(audit_service, audit_repo):
    gate = AgeVerificationGate(audit_service=audit_service, visitor='v1')

    with pytest.raises(VerificationError):
        gate.verify(AgeProof(date(2015, 1, 1)), today=TODAY)
    gate.verify(AgeProof(date(1990, 1, 1)), today=TODAY)

    logs = audit_repo.get_logs_by_type('VERIFICACION')
    assert len(logs) == 2
    assert all(log['user'] == 'v1' for log in logs)
