"""
Security helpers for password hashing and session tokens.

Session tokens are compact JSON Web Tokens signed with HMAC-SHA256
(``header.payload.signature``, each part base64url encoded) carrying
the user id in ``sub`` and an expiration timestamp in ``exp``.  The
signing secret and lifetime come from a :class:`~.config.Settings`
instance handed to :class:`CredentialService` at startup.

Passwords are hashed with PBKDF2-HMAC-SHA256 using a random 16-byte
salt and a fixed iteration count.  The stored string records the
algorithm and iteration count next to the salt and digest so the cost
can be raised later without invalidating existing hashes.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings

logger = logging.getLogger(__name__)

PASSWORD_HASH_ALGORITHM = "pbkdf2_sha256"
PASSWORD_HASH_ITERATIONS = 100_000


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    Returns ``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PASSWORD_HASH_ITERATIONS)
    return f"{PASSWORD_HASH_ALGORITHM}${PASSWORD_HASH_ITERATIONS}${salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a stored hash string.

    Recomputes the digest with the stored salt and iteration count and
    compares in constant time.  Malformed hashes never match.
    """
    if not hashed_password:
        return False
    try:
        algorithm, iterations, salt_hex, hash_hex = hashed_password.split("$", 3)
        if algorithm != PASSWORD_HASH_ALGORITHM:
            return False
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
        dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(dk, stored_hash)


class CredentialService:
    """Issues and verifies signed, time-limited session tokens."""

    def __init__(self, settings: Settings) -> None:
        self.secret_key = settings.secret_key
        self.algorithm = settings.algorithm
        self.expires_in = settings.access_token_expire_minutes * 60

    def create_access_token(self, data: Dict[str, Any], expires_delta: Optional[int] = None) -> str:
        """Create a signed token with the given claims.

        ``expires_delta`` is the lifetime in seconds; it defaults to the
        configured access token lifetime.
        """
        to_encode = data.copy()
        now = int(time.time())
        to_encode["iat"] = now
        to_encode["exp"] = now + (expires_delta if expires_delta is not None else self.expires_in)
        header = {"alg": self.algorithm, "typ": "JWT"}
        header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
        payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        signature_b64 = _b64_url_encode(_sign(signing_input, self.secret_key))
        return f"{header_b64}.{payload_b64}.{signature_b64}"

    def issue_for_user(self, user_id: int) -> str:
        """Issue a session token bound to ``user_id``."""
        return self.create_access_token({"sub": str(user_id)})

    def decode_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Verify a token and return its claims, or ``None`` if invalid or expired."""
        parts = token.split(".")
        if len(parts) != 3:
            return None
        header_b64, payload_b64, signature_b64 = parts
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        try:
            header = json.loads(_b64_url_decode(header_b64))
            actual_sig = _b64_url_decode(signature_b64)
            data = json.loads(_b64_url_decode(payload_b64))
        except (ValueError, UnicodeDecodeError):
            return None
        if not isinstance(header, dict) or header.get("alg") != self.algorithm:
            return None
        if not hmac.compare_digest(_sign(signing_input, self.secret_key), actual_sig):
            return None
        if not isinstance(data, dict):
            return None
        exp = data.get("exp")
        if not isinstance(exp, int) or exp < int(time.time()):
            return None
        return data


security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """Dependency that resolves the bearer token to a user record.

    Missing, malformed, badly signed or expired tokens raise 401, as do
    tokens whose user no longer exists or has been deactivated.
    """
    if credentials is None:
        raise _unauthorized("Not authorized, no token")
    credential_service: CredentialService = request.app.state.credentials
    payload = credential_service.decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Not authorized, token failed")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Not authorized, token failed")

    with request.app.state.db.cursor() as cursor:
        row = cursor.execute(
            "SELECT id, name, email, phone, role, is_active FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()
    if not row:
        raise _unauthorized("User no longer exists")
    if not row["is_active"]:
        raise _unauthorized("User account is deactivated")
    return {
        "id": row["id"],
        "name": row["name"],
        "email": row["email"],
        "phone": row["phone"],
        "role": row["role"],
    }


def require_roles(*roles: str) -> Callable[..., Dict[str, Any]]:
    """Dependency factory allowing only users whose role is in ``roles``.

    Use as ``Depends(require_roles("lawyer", "admin"))``.
    """

    def _role_dependency(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if current_user.get("role") not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {current_user.get('role')} is not authorized to access this route",
            )
        return current_user

    return _role_dependency


def get_credentials(request: Request) -> CredentialService:
    """Dependency returning the application's :class:`CredentialService`."""
    return request.app.state.credentials
