"""
Business logic for users and credentials.

Registration, login, profile maintenance and password changes/resets.
Passwords are hashed with :func:`core.security.hash_password`; login
failures never reveal whether the email exists.  Password reset
tokens are random, single-use and expire after the configured window;
they are stored in ``password_resets`` independently of the session
token signing key.
"""

import logging
import secrets
import sqlite3
from typing import Optional

from ..core.db import Database
from ..core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationFailed
from ..core.security import hash_password, verify_password
from ..schemas.user import ProfileUpdate, UserRead, UserRegister

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, name, email, phone, role, is_active, address, profile_image, created_at"
INVALID_CREDENTIALS = "Invalid credentials"


class UserService:
    """Service for user accounts and authentication."""

    @classmethod
    async def create_user(
        cls,
        db: Database,
        data: UserRegister,
        role: Optional[str] = None,
    ) -> UserRead:
        """Register a new user.

        ``role`` overrides the role from the payload; it is used by the
        command line to create administrators.  Raises
        :class:`ConflictError` if the email is already registered.
        """
        role = role or data.role
        with db.cursor() as cursor:
            existing = cursor.execute(
                "SELECT id FROM users WHERE email = ?", (data.email,)
            ).fetchone()
            if existing:
                raise ConflictError("User already exists with this email")
            try:
                cursor.execute(
                    "INSERT INTO users (name, email, password, phone, role) VALUES (?, ?, ?, ?, ?)",
                    (data.name, data.email, hash_password(data.password), data.phone, role),
                )
            except sqlite3.IntegrityError:
                raise ConflictError("User already exists with this email")
            user_id = cursor.lastrowid
            row = cursor.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
        logger.info("Registered %s user %s (%s)", role, user_id, data.email)
        return cls._row_to_user(row)

    @classmethod
    async def authenticate(cls, db: Database, email: str, password: str) -> UserRead:
        """Return the user for valid credentials.

        Unknown email, deactivated account and wrong password all raise
        the same :class:`AuthenticationError`.
        """
        with db.cursor() as cursor:
            row = cursor.execute(
                f"SELECT {USER_COLUMNS}, password FROM users WHERE email = ?",
                (email,),
            ).fetchone()
        if not row or not row["is_active"] or not verify_password(password, row["password"]):
            logger.info("Failed login attempt for %s", email)
            raise AuthenticationError(INVALID_CREDENTIALS)
        return cls._row_to_user(row)

    @classmethod
    async def get_user_by_id(cls, db: Database, user_id: int) -> UserRead:
        with db.cursor() as cursor:
            row = cursor.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
        if not row:
            raise NotFoundError("User not found")
        return cls._row_to_user(row)

    @classmethod
    async def update_profile(cls, db: Database, user_id: int, data: ProfileUpdate) -> UserRead:
        """Update name, phone, address and profile image.

        Only fields present in the payload are written.  Ownership is
        checked by the endpoint.
        """
        updates = data.model_dump(exclude_unset=True)
        with db.cursor() as cursor:
            row = cursor.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                raise NotFoundError("User not found")
            if updates:
                fields = ", ".join(f"{key} = ?" for key in updates)
                cursor.execute(
                    f"UPDATE users SET {fields}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*updates.values(), user_id),
                )
            updated = cursor.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
        logger.info("Updated profile of user %s: %s", user_id, sorted(updates))
        return cls._row_to_user(updated)

    @classmethod
    async def change_password(
        cls, db: Database, user_id: int, current_password: str, new_password: str
    ) -> None:
        """Replace the password after re-verifying the current one."""
        with db.cursor() as cursor:
            row = cursor.execute("SELECT password FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                raise NotFoundError("User not found")
            if not verify_password(current_password, row["password"]):
                raise AuthenticationError("Current password is incorrect")
            cursor.execute(
                "UPDATE users SET password = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (hash_password(new_password), user_id),
            )
        logger.info("User %s changed their password", user_id)

    @classmethod
    async def create_password_reset(cls, db: Database, email: str, expire_minutes: int) -> str:
        """Create a single-use reset token for ``email`` and return it.

        Delivering the token (e.g. by email) is left to the caller.
        """
        token = secrets.token_urlsafe(32)
        with db.cursor() as cursor:
            row = cursor.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
            if not row:
                raise NotFoundError("No user found with this email")
            cursor.execute(
                "INSERT INTO password_resets (email, token, expires_at) "
                "VALUES (?, ?, datetime('now', ?))",
                (email, token, f"+{int(expire_minutes)} minutes"),
            )
        logger.info("Password reset requested for user %s", row["id"])
        return token

    @classmethod
    async def reset_password(cls, db: Database, token: str, new_password: str) -> None:
        """Redeem a reset token: set the new password and delete the token row."""
        with db.cursor() as cursor:
            reset = cursor.execute(
                "SELECT id, email FROM password_resets "
                "WHERE token = ? AND expires_at > datetime('now')",
                (token,),
            ).fetchone()
            if not reset:
                raise ValidationFailed("Invalid or expired token")
            cursor.execute(
                "UPDATE users SET password = ?, updated_at = CURRENT_TIMESTAMP WHERE email = ?",
                (hash_password(new_password), reset["email"]),
            )
            cursor.execute("DELETE FROM password_resets WHERE id = ?", (reset["id"],))
        logger.info("Password reset completed for %s", reset["email"])

    @classmethod
    async def set_password(cls, db: Database, email: str, new_password: str) -> None:
        """Overwrite a user's password without verification (operator use)."""
        with db.cursor() as cursor:
            cursor.execute(
                "UPDATE users SET password = ?, updated_at = CURRENT_TIMESTAMP WHERE email = ?",
                (hash_password(new_password), email),
            )
            if cursor.rowcount == 0:
                raise NotFoundError(f"No user found with email: {email}")

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> UserRead:
        return UserRead(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            role=row["role"],
            address=row["address"],
            profile_image=row["profile_image"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
        )
