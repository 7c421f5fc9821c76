"""Tests for login, registration, password reset and nonce helpers."""
import string
from datetime import date

import pytest

from daybook.core.errors import AuthError, ValidationError
from daybook.features.auth.service import (
    NONCE_LENGTH,
    AuthService,
    generate_nonce,
    sha256_nonce,
)
from daybook.features.documents.store import PROFILE_COLLECTION
from daybook.models.entitlement import Tier
from daybook.tests.mocks import FakeAuthProvider


@pytest.fixture
def provider():
    return FakeAuthProvider()


@pytest.fixture
def auth(provider, store):
    return AuthService(provider, store)


def _registration(**overrides):
    fields = dict(
        firstname="Alex",
        surname="Doe",
        email="alex@example.com",
        password="secret1",
        confirm_password="secret1",
        date_of_birth=date(1990, 5, 17),
        country_of_residence="United Kingdom",
        mailing_list=True,
    )
    fields.update(overrides)
    return fields


@pytest.mark.asyncio
@pytest.mark.parametrize("email,password", [("", "pw"), ("a@b.com", ""), ("   ", "   ")])
async def test_login_requires_all_fields(auth, email, password):
    with pytest.raises(ValidationError) as exc_info:
        await auth.login(email, password)
    assert exc_info.value.message == "Please fill in all fields."


@pytest.mark.asyncio
async def test_login_rejects_malformed_email(auth):
    with pytest.raises(ValidationError) as exc_info:
        await auth.login("not-an-email", "pw")
    assert exc_info.value.message == "Please enter a valid email."


@pytest.mark.asyncio
async def test_unverified_login_signs_out_and_resends(auth, provider):
    provider.add_user("new@example.com", "secret1", verified=False)

    with pytest.raises(AuthError) as exc_info:
        await auth.login("new@example.com", "secret1")

    assert exc_info.value.code == "email_unverified"
    assert exc_info.value.message == "Verify your email to Log In."
    assert provider.signed_out == 1
    assert provider.verification_sent == ["new@example.com"]


@pytest.mark.asyncio
async def test_verified_login_returns_session_with_stored_tier(auth, provider, store):
    user = provider.add_user("paid@example.com", "secret1")
    await store.set(user.id, PROFILE_COLLECTION, user.id, {"subscriptionStatus": "premium"})

    session = await auth.login("paid@example.com", "secret1")

    assert session.user_id == user.id
    assert session.tier == Tier.PREMIUM
    assert session.is_signed_in


@pytest.mark.asyncio
async def test_wrong_password_surfaces_provider_error(auth, provider):
    provider.add_user("me@example.com", "secret1")
    with pytest.raises(AuthError):
        await auth.login("me@example.com", "wrong")


@pytest.mark.asyncio
async def test_register_writes_basic_profile(auth, provider, store):
    profile = await auth.register(**_registration())

    doc = await store.get(profile.id, PROFILE_COLLECTION, profile.id)
    assert doc.data["subscriptionStatus"] == "basic"
    assert doc.data["firstname"] == "Alex"
    assert doc.data["mailingList"] is True
    assert doc.data["dateOfBirth"] == "17/05/1990"
    assert provider.signed_out == 1
    assert provider.verification_sent == ["alex@example.com"]


@pytest.mark.asyncio
async def test_register_password_mismatch(auth, store):
    with pytest.raises(ValidationError) as exc_info:
        await auth.register(**_registration(confirm_password="different"))
    assert "does not match" in exc_info.value.message


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["firstname", "surname", "country_of_residence"])
async def test_register_requires_fields(auth, field):
    with pytest.raises(ValidationError):
        await auth.register(**_registration(**{field: ""}))


@pytest.mark.asyncio
async def test_register_requires_date_of_birth(auth):
    with pytest.raises(ValidationError):
        await auth.register(**_registration(date_of_birth=None))


@pytest.mark.asyncio
async def test_register_short_password(auth, provider):
    with pytest.raises(ValidationError):
        await auth.register(**_registration(password="abc", confirm_password="abc"))
    assert provider.users == {}


@pytest.mark.asyncio
async def test_password_reset(auth, provider):
    message = await auth.send_password_reset(" me@example.com ")
    assert provider.reset_sent == ["me@example.com"]
    assert message == "An email has been sent to me@example.com to reset your password."


@pytest.mark.asyncio
async def test_logout_signs_out_session(auth, provider, basic_session):
    await auth.logout(basic_session)
    assert provider.signed_out == 1
    assert not basic_session.is_signed_in


def test_generate_nonce_length_and_charset():
    nonce = generate_nonce()
    allowed = set(string.ascii_letters + string.digits + "-._")
    assert len(nonce) == NONCE_LENGTH
    assert set(nonce) <= allowed
    assert generate_nonce() != nonce


def test_generate_nonce_failure_is_fatal(monkeypatch):
    def broken_choice(_seq):
        raise OSError("no entropy")

    monkeypatch.setattr("daybook.features.auth.service.secrets.choice", broken_choice)
    with pytest.raises(RuntimeError):
        generate_nonce()


def test_sha256_nonce():
    assert sha256_nonce("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
