"""
API endpoints for registration, login and account maintenance.

Successful register and login calls return the user together with a
freshly issued session token.  The password reset token is returned
in the response body because no mail delivery is wired in.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status

from legal_eye_api.app.core.db import Database, get_db
from legal_eye_api.app.core.errors import PermissionDenied
from legal_eye_api.app.core.responses import success_response
from legal_eye_api.app.core.security import CredentialService, get_credentials, get_current_user
from legal_eye_api.app.schemas.user import (
    AuthResult,
    ChangePassword,
    ForgotPassword,
    ProfileUpdate,
    ResetPassword,
    UserLogin,
    UserRegister,
)
from legal_eye_api.app.services.user_service import UserService

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register a new user")
async def register(
    data: UserRegister,
    db: Database = Depends(get_db),
    credentials: CredentialService = Depends(get_credentials),
):
    user = await UserService.create_user(db, data)
    result = AuthResult(user=user, token=credentials.issue_for_user(user.id))
    return success_response(result, "User registered successfully", status.HTTP_201_CREATED)


@router.post("/login", summary="Log in with email and password")
async def login(
    data: UserLogin,
    db: Database = Depends(get_db),
    credentials: CredentialService = Depends(get_credentials),
):
    user = await UserService.authenticate(db, data.email, data.password)
    result = AuthResult(user=user, token=credentials.issue_for_user(user.id))
    return success_response(result, "Login successful")


@router.get("/profile", summary="Profile of the current user")
async def get_profile(
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    return success_response(await UserService.get_user_by_id(db, current_user["id"]))


@router.get("/profile/{user_id}", summary="Public profile of a user")
async def get_user_profile(
    user_id: int,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    return success_response(await UserService.get_user_by_id(db, user_id))


@router.put("/profile/{user_id}", summary="Update own profile")
async def update_profile(
    user_id: int,
    data: ProfileUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """Users may only change their own profile."""
    if current_user["id"] != user_id:
        raise PermissionDenied("Not authorized to update this profile")
    user = await UserService.update_profile(db, user_id, data)
    return success_response(user, "Profile updated successfully")


@router.post("/change-password", summary="Change the password of the current user")
async def change_password(
    data: ChangePassword,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    await UserService.change_password(db, current_user["id"], data.current_password, data.new_password)
    return success_response(message="Password changed successfully")


@router.post("/forgot-password", summary="Request a password reset token")
async def forgot_password(
    data: ForgotPassword,
    request: Request,
    db: Database = Depends(get_db),
):
    expire_minutes = request.app.state.settings.password_reset_expire_minutes
    token = await UserService.create_password_reset(db, data.email, expire_minutes)
    return success_response({"resetToken": token}, "Password reset token generated")


@router.post("/reset-password", summary="Set a new password with a reset token")
async def reset_password(data: ResetPassword, db: Database = Depends(get_db)):
    await UserService.reset_password(db, data.token, data.new_password)
    return success_response(message="Password reset successful")
