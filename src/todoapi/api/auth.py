"""Auth API — registration, login, current identity.

Learn: Routes for user authentication:
- POST /auth/register → create an account, get a token right away
- POST /auth/login → email/password → token
- GET /auth/me → who the presented token says you are

Failures are raised as domain exceptions (WeakPasswordError,
DuplicateEmailError, InvalidCredentialsError) and turned into 400/401
responses by the handlers in todoapi.errors.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from todoapi.auth.credentials import CredentialStore
from todoapi.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_token_service,
)
from todoapi.auth.gateway import AuthGateway
from todoapi.auth.jwt import TokenService
from todoapi.db.engine import get_db
from todoapi.schemas.auth import (
    LoginRequest,
    MeResponse,
    RegisterRequest,
    TokenResponse,
)

router = APIRouter(prefix="/auth")


def _gateway(
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthGateway:
    return AuthGateway(CredentialStore(db), tokens)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=TokenResponse)
async def register(body: RegisterRequest, gateway: AuthGateway = Depends(_gateway)):
    """Create a new account and return a token for it."""
    token = await gateway.register(body.email, body.password)
    return TokenResponse(token=token)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, gateway: AuthGateway = Depends(_gateway)):
    """Login with email and password → token."""
    token = await gateway.login(body.email, body.password)
    return TokenResponse(token=token)


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=MeResponse)
async def get_me(identity: CurrentIdentity = Depends(get_current_user)):
    """Identity claims carried by the presented token."""
    return MeResponse(id=identity.user_id, email=identity.email)
