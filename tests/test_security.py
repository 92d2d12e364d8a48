import base64
import json

from legal_eye_api.app.core.config import Settings
from legal_eye_api.app.core.security import CredentialService, hash_password, verify_password


def _service(secret="test-secret", minutes=60):
    return CredentialService(Settings(secret_key=secret, access_token_expire_minutes=minutes))


def test_password_hash_round_trip():
    hashed = hash_password("password1")
    assert hashed.startswith("pbkdf2_sha256$100000$")
    assert verify_password("password1", hashed)
    assert not verify_password("password2", hashed)


def test_password_hash_is_salted():
    assert hash_password("password1") != hash_password("password1")


def test_malformed_hash_never_matches():
    assert not verify_password("password1", None)
    assert not verify_password("password1", "")
    assert not verify_password("password1", "not-a-hash")
    assert not verify_password("password1", "md5$1$00$00")
    assert not verify_password("password1", "pbkdf2_sha256$1000$zz$zz")


def test_token_carries_user_id_and_expiry():
    service = _service()
    claims = service.decode_access_token(service.issue_for_user(42))
    assert claims["sub"] == "42"
    assert claims["exp"] - claims["iat"] == 60 * 60


def test_expired_token_is_rejected():
    service = _service()
    token = service.create_access_token({"sub": "1"}, expires_delta=-10)
    assert service.decode_access_token(token) is None


def test_token_signed_with_other_secret_is_rejected():
    token = _service(secret="one").issue_for_user(1)
    assert _service(secret="two").decode_access_token(token) is None


def test_tampered_payload_is_rejected():
    service = _service()
    header, _, signature = service.issue_for_user(1).split(".")
    forged = base64.urlsafe_b64encode(json.dumps({"sub": "2", "exp": 9999999999}).encode()).rstrip(b"=").decode()
    assert service.decode_access_token(f"{header}.{forged}.{signature}") is None


def test_garbage_tokens_are_rejected():
    service = _service()
    assert service.decode_access_token("") is None
    assert service.decode_access_token("a.b") is None
    assert service.decode_access_token("a.b.c") is None


def test_unsigned_algorithm_is_rejected():
    service = _service()
    _, payload, signature = service.issue_for_user(1).split(".")
    header = base64.urlsafe_b64encode(json.dumps({"alg": "none", "typ": "JWT"}).encode()).rstrip(b"=").decode()
    assert service.decode_access_token(f"{header}.{payload}.{signature}") is None
