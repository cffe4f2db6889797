from fitnext.app.core.access_policy import Role
from fitnext.app.core.security import (
    Authenticated,
    Expired,
    Unauthenticated,
    create_access_token,
    get_password_hash,
    validate_bearer,
    verify_password,
)


def test_password_hashing_not_plain():
    plain = "password123"
    hashed = get_password_hash(plain)
    assert hashed and hashed != plain


def test_verify_password():
    hashed = get_password_hash("secret-pass")
    assert verify_password("secret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)


def test_verify_password_handles_missing_or_corrupt_hash():
    assert not verify_password("anything", None)
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_token_round_trip_carries_identity_and_roles():
    token = create_access_token(7, "amy@example.com", {Role.MEMBER, Role.TRAINER})
    result = validate_bearer(token)
    assert isinstance(result, Authenticated)
    assert result.person_id == 7
    assert result.email == "amy@example.com"
    assert result.roles == frozenset({Role.MEMBER, Role.TRAINER})


def test_expired_token_is_reported_as_expired():
    token = create_access_token(7, "amy@example.com", {Role.MEMBER}, expires_minutes=-1)
    assert isinstance(validate_bearer(token), Expired)


def test_garbage_or_missing_token_is_unauthenticated():
    assert isinstance(validate_bearer("not.a.jwt"), Unauthenticated)
    assert isinstance(validate_bearer(None), Unauthenticated)
    assert isinstance(validate_bearer(""), Unauthenticated)
