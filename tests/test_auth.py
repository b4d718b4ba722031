from datetime import timedelta

import pytest
from bson import ObjectId

from auth import create_access_token, gravatar_url, hash_password, read_claim, verify_password
from config import ConfigError, load_settings
from database import serialize_doc
from responses import Unauthenticated


def test_claim_round_trip():
    uid = str(ObjectId())
    token = create_access_token({"id": uid, "email": "a@example.com"})
    assert read_claim(f"Bearer {token}") == {"id": uid, "email": "a@example.com"}


def test_expired_token_is_rejected():
    token = create_access_token({"id": str(ObjectId()), "email": "a@example.com"}, timedelta(seconds=-5))
    with pytest.raises(Unauthenticated):
        read_claim(f"Bearer {token}")


@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "Bearer abc.def.ghi"])
def test_malformed_headers_are_rejected(header):
    with pytest.raises(Unauthenticated):
        read_claim(header)


def test_claim_without_id_is_rejected():
    token = create_access_token({"email": "a@example.com"})
    with pytest.raises(Unauthenticated):
        read_claim(f"Bearer {token}")


def test_passwords_are_salted():
    first, second = hash_password("Str0ng!Pass"), hash_password("Str0ng!Pass")
    assert first != second
    assert verify_password("Str0ng!Pass", first)
    assert not verify_password("str0ng!pass", first)


def test_gravatar_is_derived_from_normalized_email():
    url = gravatar_url(" Alice@Example.com ")
    assert url == gravatar_url("alice@example.com")
    assert url.startswith("https://www.gravatar.com/avatar/")
    assert url.endswith("?s=200&r=pg&d=mm")


def test_missing_configuration_is_reported(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    with pytest.raises(ConfigError) as exc:
        load_settings()
    assert exc.value.missing == ["PORT", "JWT_SECRET"]


def test_serialize_doc_hides_password_and_stringifies_ids():
    oid, ref = ObjectId(), ObjectId()
    doc = {"_id": oid, "password": "hash", "userObj": {"_id": ref, "password": "hash"}, "tags": [ref]}
    assert serialize_doc(doc) == {"id": str(oid), "userObj": {"id": str(ref)}, "tags": [str(ref)]}
