"""Unit tests for auth/otp.py -- the per-user TOTP state machine.

Covers:
- generate(): secret format, provisioning URI, enabled+unverified state
- verify(): correct code marks verified; wrong or stale code leaves state untouched
- validate_for_login(): NotVerified before verification, whatever the code
- disable(): resets all fields and is idempotent
"""

import re
import time

import pyotp
import pytest

from auth import otp
from auth.errors import InvalidCode, NotVerified, OtpNotEnabled
from auth.store import UserStore
from auth.tokens import hash_password


def _wrong_code(secret: str) -> str:
    """A 6-digit code outside the accepted window around now."""
    totp = pyotp.TOTP(secret)
    now = time.time()
    accepted = {totp.at(now + step * 30) for step in (-2, -1, 0, 1, 2)}
    candidate = 0
    while f"{candidate:06d}" in accepted:
        candidate += 1
    return f"{candidate:06d}"


@pytest.fixture
def store(engine):
    return UserStore(engine)


@pytest.fixture
def user(store):
    return store.register_user("erin", "erin@example.com", hash_password("erinpass"))


def test_secret_format():
    secret = otp.new_base32_secret()
    # 21 bytes -> 34 base32 characters once padding is stripped
    assert re.fullmatch(r"[A-Z2-7]{34}", secret)
    assert otp.new_base32_secret() != secret


def test_generate_persists_unverified_secret(store, user):
    enrollment = otp.generate_secret(user, store)

    assert enrollment.otp_auth_url == (
        f"otpauth://totp/NoteAPI:erin@example.com?secret={enrollment.otp_base32}&issuer=NoteAPI"
    )
    stored = store.get_by_id(user.id)
    assert stored.otp_enabled is True
    assert stored.otp_verified is False
    assert stored.otp_base32 == enrollment.otp_base32
    assert stored.otp_auth_url == enrollment.otp_auth_url


def test_verify_correct_code(store, user):
    enrollment = otp.generate_secret(user, store)
    code = pyotp.TOTP(enrollment.otp_base32).now()

    updated = otp.verify_code(store.get_by_id(user.id), code, store)
    assert updated.otp_verified is True
    assert updated.otp_enabled is True


def test_verify_wrong_code_leaves_state(store, user):
    enrollment = otp.generate_secret(user, store)
    with pytest.raises(InvalidCode):
        otp.verify_code(store.get_by_id(user.id), _wrong_code(enrollment.otp_base32), store)
    assert store.get_by_id(user.id).otp_verified is False


@pytest.mark.parametrize("candidate", ["", "12345", "1234567", "abcdef", " 12345", "\uff11\uff12\uff13\uff14\uff15\uff16"])
def test_verify_rejects_malformed_codes(store, user, candidate):
    otp.generate_secret(user, store)
    with pytest.raises(InvalidCode):
        otp.verify_code(store.get_by_id(user.id), candidate, store)


def test_verify_rejects_full_width_current_code(store, user):
    enrollment = otp.generate_secret(user, store)
    code = pyotp.TOTP(enrollment.otp_base32).now()
    full_width = "".join(chr(0xFF10 + int(d)) for d in code)

    with pytest.raises(InvalidCode):
        otp.verify_code(store.get_by_id(user.id), full_width, store)
    assert store.get_by_id(user.id).otp_verified is False


def test_verify_with_stale_snapshot_keeps_newer_secret(store, user):
    first = otp.generate_secret(user, store)
    snapshot = store.get_by_id(user.id)
    second = otp.generate_secret(snapshot, store)

    with pytest.raises(InvalidCode):
        otp.verify_code(snapshot, pyotp.TOTP(first.otp_base32).now(), store)

    stored = store.get_by_id(user.id)
    assert stored.otp_base32 == second.otp_base32
    assert stored.otp_auth_url == second.otp_auth_url
    assert stored.otp_verified is False


def test_verify_after_disable_is_rejected(store, user):
    enrollment = otp.generate_secret(user, store)
    snapshot = store.get_by_id(user.id)
    otp.disable(snapshot, store)

    with pytest.raises(InvalidCode):
        otp.verify_code(snapshot, pyotp.TOTP(enrollment.otp_base32).now(), store)
    stored = store.get_by_id(user.id)
    assert stored.otp_enabled is False
    assert stored.otp_base32 is None


def test_verify_without_secret(store, user):
    with pytest.raises(OtpNotEnabled):
        otp.verify_code(user, "123456", store)


def test_validate_before_verify_is_not_verified(store, user):
    enrollment = otp.generate_secret(user, store)
    correct = pyotp.TOTP(enrollment.otp_base32).now()
    with pytest.raises(NotVerified):
        otp.validate_for_login(store.get_by_id(user.id), correct)


def test_validate_after_verify(store, user):
    enrollment = otp.generate_secret(user, store)
    totp = pyotp.TOTP(enrollment.otp_base32)
    verified = otp.verify_code(store.get_by_id(user.id), totp.now(), store)

    assert otp.validate_for_login(verified, totp.now()) is True
    with pytest.raises(InvalidCode):
        otp.validate_for_login(verified, _wrong_code(enrollment.otp_base32))


def test_regenerate_requires_new_verification(store, user):
    first = otp.generate_secret(user, store)
    otp.verify_code(store.get_by_id(user.id), pyotp.TOTP(first.otp_base32).now(), store)

    second = otp.generate_secret(store.get_by_id(user.id), store)
    stored = store.get_by_id(user.id)
    assert second.otp_base32 != first.otp_base32
    assert stored.otp_verified is False


@pytest.mark.parametrize("verify_first", [False, True])
def test_disable_is_idempotent(store, user, verify_first):
    enrollment = otp.generate_secret(user, store)
    if verify_first:
        otp.verify_code(store.get_by_id(user.id), pyotp.TOTP(enrollment.otp_base32).now(), store)

    once = otp.disable(store.get_by_id(user.id), store)
    twice = otp.disable(store.get_by_id(user.id), store)
    for state in (once, twice):
        assert state.otp_enabled is False
        assert state.otp_verified is False
        assert state.otp_base32 is None
        assert state.otp_auth_url is None
