"""
Account endpoints: registration, login, profile and password recovery.

The password hash and reset-token fields never appear in a response;
repositories strip them before rows reach this module.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from pydantic import Field, field_validator, model_validator

from api.auth import CurrentUser
from api.deps import AppSettings, Issuer, MailerDep, StoreClient
from api.rate_limit import login_limiter
from api.schemas import CamelModel, Email, MessageResponse, Name, check_password_strength
from streamia_backend.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from streamia_backend.mail.mailer import MailDeliveryError, Mailer
from streamia_backend.mail.templates import password_reset_email, welcome_email
from streamia_backend.repositories.accounts import (
    delete_account,
    find_account_by_email,
    find_account_by_id,
    find_account_by_reset_token,
    insert_account,
    set_password_hash,
    store_reset_token,
    to_public_account,
    update_account,
)
from streamia_backend.security.passwords import (
    generate_reset_token,
    hash_password,
    hash_reset_token,
    reset_token_expiry,
    verify_password,
)
from streamia_backend.utils.clock import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a password reset link has been sent"


# --- Pydantic models ---


class Account(CamelModel):
    id: str
    first_name: str
    last_name: str
    age: int | None = None
    email: str
    created_at: str | None = None
    updated_at: str | None = None


class RegisterRequest(CamelModel):
    first_name: Name
    last_name: Name
    age: int = Field(ge=13, le=150)
    email: Email
    password: str
    confirm_password: str

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password_strength(value)

    @model_validator(mode="after")
    def _passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(CamelModel):
    email: Email
    password: str = Field(min_length=1)


class UpdateProfileRequest(CamelModel):
    first_name: Name | None = None
    last_name: Name | None = None
    age: int | None = Field(default=None, ge=13, le=150)
    email: Email | None = None


class DeleteAccountRequest(CamelModel):
    password: str = Field(min_length=1)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password_strength(value)

    @model_validator(mode="after")
    def _passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ForgotPasswordRequest(CamelModel):
    email: Email


class ResetPasswordRequest(CamelModel):
    token: str = Field(min_length=1)
    new_password: str
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password_strength(value)

    @model_validator(mode="after")
    def _passwords_match(self) -> "ResetPasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class AccountEnvelope(CamelModel):
    message: str | None = None
    user: Account


class LoginResponse(CamelModel):
    message: str
    token: str
    user: Account


# --- Helpers ---


def send_welcome_email(mailer: Mailer, email: str, first_name: str, frontend_url: str) -> None:
    """Background task; a failed welcome email never affects registration."""
    subject, html, text = welcome_email(first_name, frontend_url)
    try:
        mailer.send(email, subject, html, text)
    except MailDeliveryError as e:
        logger.error(f"Failed to send welcome email to {email}: {e}")


# --- Endpoints ---


@router.post("/register", response_model=AccountEnvelope, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    db: StoreClient,
    settings: AppSettings,
    mailer: MailerDep,
    background_tasks: BackgroundTasks,
) -> dict:
    """Create an account. Public endpoint."""
    if find_account_by_email(db, payload.email) is not None:
        raise ConflictError("This email is already used")

    try:
        account = insert_account(
            db,
            first_name=payload.first_name,
            last_name=payload.last_name,
            age=payload.age,
            email=payload.email,
            password_hash=hash_password(payload.password),
        )
    except ConflictError:
        raise ConflictError("This email is already used") from None

    logger.info(f"Registered account {account['id']}")
    background_tasks.add_task(send_welcome_email, mailer, account["email"], account["first_name"], settings.frontend_url)
    return {"message": "Account created successfully", "user": account}


@router.post("/login", response_model=LoginResponse, dependencies=[Depends(login_limiter)])
def login(payload: LoginRequest, db: StoreClient, issuer: Issuer) -> dict:
    """Exchange email and password for a session token. Throttled per client."""
    account = find_account_by_email(db, payload.email, include_secrets=True)
    if account is None or not verify_password(payload.password, account.get("password_hash")):
        raise AuthError("Email or password incorrect")

    token = issuer.issue(str(account["id"]), account["email"])
    return {"message": "Login successful", "token": token, "user": to_public_account(account)}


@router.post("/logout", response_model=MessageResponse)
def logout() -> dict:
    """Tokens are stateless; the client discards its copy."""
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=AccountEnvelope, response_model_exclude_none=True)
def get_profile(user: CurrentUser, db: StoreClient) -> dict:
    account = find_account_by_id(db, user.account_id)
    if account is None:
        raise NotFoundError("User not found")
    return {"user": account}


@router.put("/me", response_model=AccountEnvelope)
def update_profile(payload: UpdateProfileRequest, user: CurrentUser, db: StoreClient) -> dict:
    patch = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in patch:
        existing = find_account_by_email(db, patch["email"])
        if existing is not None and str(existing["id"]) != user.account_id:
            raise ConflictError("This email is already registered")

    if not patch:
        account = find_account_by_id(db, user.account_id)
    else:
        try:
            account = update_account(db, user.account_id, patch)
        except ConflictError:
            raise ConflictError("This email is already registered") from None

    if account is None:
        raise NotFoundError("User not found")
    return {"message": "Profile updated", "user": account}


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_profile(payload: DeleteAccountRequest, user: CurrentUser, db: StoreClient) -> Response:
    """Irreversible; requires the current password in the body."""
    account = find_account_by_id(db, user.account_id, include_secrets=True)
    if account is None:
        raise NotFoundError("User not found")
    if not verify_password(payload.password, account.get("password_hash")):
        raise AuthError("Incorrect password")

    delete_account(db, user.account_id)
    logger.info(f"Deleted account {user.account_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/change-password", response_model=MessageResponse)
def change_password(payload: ChangePasswordRequest, user: CurrentUser, db: StoreClient) -> dict:
    account = find_account_by_id(db, user.account_id, include_secrets=True)
    if account is None:
        raise NotFoundError("User not found")
    if not verify_password(payload.current_password, account.get("password_hash")):
        raise AuthError("Current password is incorrect")

    set_password_hash(db, user.account_id, hash_password(payload.new_password))
    return {"message": "Password updated successfully"}


@router.post("/forgot-password", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
def forgot_password(
    payload: ForgotPasswordRequest,
    db: StoreClient,
    settings: AppSettings,
    mailer: MailerDep,
) -> dict:
    """
    Start a password reset.

    The response is the same whether or not the email is registered.
    A mail failure for a registered email is reported (503) since the user has
    no other way to recover the account.
    """
    account = find_account_by_email(db, payload.email)
    if account is None:
        return {"message": FORGOT_PASSWORD_MESSAGE}

    token = generate_reset_token()
    expires_at = reset_token_expiry(utc_now())
    store_reset_token(db, account["id"], hash_reset_token(token), expires_at.isoformat())

    reset_url = f"{settings.frontend_url}/reset-password/{token}"
    subject, html, text = password_reset_email(account["first_name"], reset_url)
    try:
        mailer.send(account["email"], subject, html, text)
    except MailDeliveryError as e:
        raise UpstreamUnavailableError("Unable to send the password reset email, please try again later") from e

    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, db: StoreClient) -> dict:
    account = find_account_by_reset_token(db, hash_reset_token(payload.token), now_iso=utc_now().isoformat())
    if account is None:
        raise ValidationError("Invalid or expired token")

    set_password_hash(db, account["id"], hash_password(payload.new_password))
    logger.info(f"Password reset completed for account {account['id']}")
    return {"message": "Password updated successfully"}
