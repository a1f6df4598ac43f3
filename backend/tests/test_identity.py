# tests/test_identity.py
from __future__ import annotations

import pytest
from fastapi import HTTPException

from hostadmin.core.errors import IdentityAlreadyExists, InvalidCredentials
from hostadmin.core.security import create_access_token, decode_access_token, hash_password, verify_password
from hostadmin.create_admin import parse_args


def test_password_hashing():
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("s3cret-pass", None)
    assert not verify_password("s3cret-pass", "plain-text-not-a-hash")


def test_access_token_carries_uid():
    token = create_access_token("admin-uid-1")
    assert decode_access_token(token) == "admin-uid-1"
    assert decode_access_token(f"  {token}\n") == "admin-uid-1"


@pytest.mark.parametrize("token", ["", "not-a-jwt", "Bearer abc.def.ghi"])
def test_unusable_access_token_is_401(token):
    with pytest.raises(HTTPException) as exc:
        decode_access_token(token)
    assert exc.value.status_code == 401


def test_expired_access_token_is_401():
    token = create_access_token("admin-uid-1", expires_minutes=-1)
    with pytest.raises(HTTPException) as exc:
        decode_access_token(token)
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_create_and_authenticate(identity_store):
    created = await identity_store.create_identity(" Amy@Example.com ", "host-password")
    assert created.email == "amy@example.com"
    assert identity_store.current_identity is None

    signed_in = await identity_store.authenticate_with_password("amy@example.com", "host-password")
    assert signed_in == created
    assert identity_store.current_identity == created


@pytest.mark.asyncio
async def test_duplicate_email_rejected(identity_store):
    await identity_store.create_identity("amy@example.com", "host-password")
    with pytest.raises(IdentityAlreadyExists):
        await identity_store.create_identity("AMY@example.com", "another-password")


@pytest.mark.asyncio
async def test_unknown_email_is_invalid_credentials(identity_store):
    with pytest.raises(InvalidCredentials):
        await identity_store.authenticate_with_password("nobody@example.com", "whatever")


@pytest.mark.asyncio
async def test_listeners_receive_changes_until_unsubscribed(identity_store):
    await identity_store.create_identity("amy@example.com", "host-password")
    seen = []

    async def listener(identity):
        seen.append(identity.uid if identity else None)

    unsubscribe = identity_store.on_identity_changed(listener)
    identity = await identity_store.authenticate_with_password("amy@example.com", "host-password")
    await identity_store.sign_out()
    unsubscribe()
    await identity_store.authenticate_with_password("amy@example.com", "host-password")

    assert seen == [identity.uid, None]


def test_create_admin_args():
    args = parse_args(["ops@example.com", "long-enough"])
    assert (args.email, args.password) == ("ops@example.com", "long-enough")
    with pytest.raises(SystemExit):
        parse_args(["ops@example.com", "short"])
