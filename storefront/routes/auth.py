"""Shopper authentication routes

Two login paths:
- /api/auth/login and /signup exchange credentials for a commerce backend
  JWT and keep it in the HTTP-only auth cookie.
- /api/auth/identity/* forward to the identity provider (password, OAuth,
  phone OTP) and return its session to the client.
"""

import logging
from typing import Any, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from ..core.exceptions import WooCommerceError
from ..core.session import AuthCookie, clear_auth_cookie, read_auth_cookie, set_auth_cookie
from ..models.auth import (
    AuthResponse,
    IdentitySession,
    LoginRequest,
    OtpRequest,
    OtpVerifyRequest,
    PasswordRecoveryRequest,
    PasswordUpdateRequest,
    ShopperUser,
    SignupRequest,
)
from ..services.checkout import PHONE_RE
from ..services.identity import IdentityProviderClient, get_identity_client
from ..services.woocommerce import WooCommerceClient, get_woocommerce_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])
callback_router = APIRouter(tags=["Auth"])

EMAIL_EXISTS_CODE = "registration-error-email-exists"


def _jwt_user(token_data: dict) -> dict[str, Any]:
    """User fields from a JWT plugin response (nested or flat layout)"""
    user = dict(token_data.get("user") or {})
    user.setdefault("email", token_data.get("user_email"))
    user.setdefault("display_name", token_data.get("user_display_name"))
    return user


def shopper_user(customer: Optional[dict], jwt_user: dict, email: str) -> ShopperUser:
    """Merge backend customer and JWT user data, customer first"""
    customer = customer or {}
    full_name = f"{customer.get('first_name') or ''} {customer.get('last_name') or ''}".strip()
    return ShopperUser(
        id=customer.get("id") or jwt_user.get("id") or jwt_user.get("ID"),
        email=customer.get("email") or jwt_user.get("email") or email,
        first_name=customer.get("first_name") or jwt_user.get("first_name") or "",
        last_name=customer.get("last_name") or jwt_user.get("last_name") or "",
        display_name=full_name or jwt_user.get("display_name") or jwt_user.get("name") or email,
        avatar=customer.get("avatar_url") or jwt_user.get("avatar_url"),
    )


async def _issue_token(client: WooCommerceClient, email: str, password: str) -> dict:
    try:
        token_data = await client.create_token(email, password)
    except WooCommerceError as e:
        if e.status_code >= 500:
            raise HTTPException(status_code=503, detail="Authentication service unavailable")
        raise HTTPException(status_code=401, detail=e.message or "Invalid email or password")
    if not token_data.get("token"):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return token_data


def _login_response(response: Response, token: str, user: ShopperUser) -> AuthResponse:
    set_auth_cookie(
        response,
        AuthCookie(token=token, id=user.id, email=user.email, name=user.display_name),
    )
    return AuthResponse(success=True, user=user)


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    response: Response,
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """Log in with email and password through the backend JWT endpoint"""
    if not request.email or not request.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    token_data = await _issue_token(client, request.email, request.password)

    customer = None
    try:
        customer = await client.find_customer_by_email(request.email)
    except WooCommerceError as e:
        logger.error(f"Failed to fetch customer details: {e.message}")

    user = shopper_user(customer, _jwt_user(token_data), request.email)
    logger.info(f"Shopper logged in: customer={user.id}")
    return _login_response(response, token_data["token"], user)


@router.post("/signup", response_model=AuthResponse)
async def signup(
    request: SignupRequest,
    response: Response,
    client: WooCommerceClient = Depends(get_woocommerce_client),
):
    """Create a backend customer, then log them in"""
    if not request.email or not request.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    customer_data: dict[str, Any] = {
        "email": request.email,
        "password": request.password,
        "first_name": request.first_name,
        "last_name": request.last_name,
    }
    if request.username:
        customer_data["username"] = request.username
    if request.phone:
        customer_data["billing"] = {"phone": request.phone}

    try:
        customer = await client.create_customer(customer_data)
    except WooCommerceError as e:
        if e.details.get("code") == EMAIL_EXISTS_CODE:
            raise HTTPException(status_code=400, detail="An account with this email already exists")
        raise

    try:
        token_data = await _issue_token(client, request.email, request.password)
    except HTTPException as e:
        logger.error(f"JWT login failed after signup: {e.detail}")
        return JSONResponse(
            status_code=400,
            content={
                "error": "Account created but login failed. Please try logging in.",
                "requires_login": True,
            },
        )

    user = shopper_user(customer, _jwt_user(token_data), request.email)
    logger.info(f"Shopper signed up: customer={user.id}")
    return _login_response(response, token_data["token"], user)


@router.post("/logout")
async def logout(response: Response):
    """Log out and clear the auth cookie"""
    clear_auth_cookie(response)
    return {"success": True}


@router.get("/me")
async def me(request: Request):
    """Current logged-in shopper, or null"""
    cookie = read_auth_cookie(request)
    if cookie is None:
        return {"user": None}
    return {"user": {"id": cookie.id, "email": cookie.email, "name": cookie.name}}


# ==================== Identity provider ====================


@router.post("/identity/sign-in", response_model=IdentitySession)
async def identity_sign_in(
    request: LoginRequest,
    identity: IdentityProviderClient = Depends(get_identity_client),
):
    if not request.email or not request.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    return await identity.sign_in_with_password(request.email, request.password)


@router.post("/identity/sign-up")
async def identity_sign_up(
    request: SignupRequest,
    identity: IdentityProviderClient = Depends(get_identity_client),
):
    if not request.email or not request.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    return await identity.sign_up(
        request.email,
        request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        phone=request.phone,
    )


@router.get("/identity/oauth/{provider}")
async def identity_oauth(
    provider: str,
    next: str = Query("/"),
    identity: IdentityProviderClient = Depends(get_identity_client),
):
    """Redirect the browser to the provider's OAuth consent page"""
    return RedirectResponse(identity.oauth_authorize_url(provider, next_path=next), status_code=302)


@router.post("/identity/otp")
async def identity_send_otp(
    request: OtpRequest,
    identity: IdentityProviderClient = Depends(get_identity_client),
):
    if not PHONE_RE.match(request.phone):
        raise HTTPException(status_code=400, detail="Please enter a valid 10-digit phone number")
    await identity.send_otp(request.phone)
    return {"success": True}


@router.post("/identity/otp/verify", response_model=IdentitySession)
async def identity_verify_otp(
    request: OtpVerifyRequest,
    identity: IdentityProviderClient = Depends(get_identity_client),
):
    return await identity.verify_otp(request.phone, request.token)


@router.post("/identity/refresh", response_model=IdentitySession)
async def identity_refresh(
    refresh_token: str = Body(..., embed=True),
    identity: IdentityProviderClient = Depends(get_identity_client),
):
    return await identity.refresh_session(refresh_token)


@router.post("/identity/recover")
async def identity_reset_password(
    request: PasswordRecoveryRequest,
    identity: IdentityProviderClient = Depends(get_identity_client),
):
    await identity.reset_password(request.email)
    return {"success": True}


@router.post("/identity/password")
async def identity_update_password(
    request: PasswordUpdateRequest,
    identity: IdentityProviderClient = Depends(get_identity_client),
):
    await identity.update_password(request.access_token, request.password)
    return {"success": True}


@router.post("/identity/sign-out")
async def identity_sign_out(
    access_token: str = Body(..., embed=True),
    identity: IdentityProviderClient = Depends(get_identity_client),
):
    await identity.sign_out(access_token)
    return {"success": True}


@callback_router.get("/auth/callback")
async def auth_callback(next: str = Query("/")):
    """Return point after OAuth sign-in; redirects to a local path"""
    if not next.startswith("/") or next.startswith("//"):
        next = "/"
    return RedirectResponse(next, status_code=302)
