"""Shopper authentication models"""

from typing import Any, Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class SignupRequest(BaseModel):
    email: str = ""
    password: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: Optional[str] = None
    username: Optional[str] = None


class ShopperUser(BaseModel):
    """Logged-in shopper as returned to the client"""
    id: Any = None
    email: str
    first_name: str = ""
    last_name: str = ""
    display_name: str
    avatar: Optional[str] = None


class AuthResponse(BaseModel):
    success: bool
    user: ShopperUser


class OtpRequest(BaseModel):
    phone: str


class OtpVerifyRequest(BaseModel):
    phone: str
    token: str


class PasswordRecoveryRequest(BaseModel):
    email: str


class PasswordUpdateRequest(BaseModel):
    access_token: str
    password: str


class IdentitySession(BaseModel):
    """Session issued by the identity provider"""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: Optional[str] = None
    user: Optional[dict] = None
