"""Cookie-based login, refresh rotation, logout, recovery, and the auth dependencies."""

import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from cragdesk.core.config import Settings
from cragdesk.core.database import get_db
from cragdesk.core.errors import Forbidden, InvalidCredentials, MalformedRequest
from cragdesk.models import User
from cragdesk.schemas.auth import (
    ChangePasswordRequest,
    Claims,
    LoginRequest,
    OkResponse,
    RecoveryRequest,
    RecoveryResponse,
    RegisterRequest,
    UserEnvelope,
    UserOut,
)
from cragdesk.services import AuthComponents
from cragdesk.services.credentials import run_legacy_migration
from cragdesk.services.refresh_tokens import TokenMetadata

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)

REFRESH_TOKEN_HEADER = "X-Refresh-Token"


def get_auth(request: Request) -> AuthComponents:
    """Dependency: the auth components built at startup from the app's Settings."""
    return request.app.state.auth


# -- Cookies and request context -----------------------------------------------


def _cookie_options(settings: Settings) -> dict:
    return {
        "httponly": True,
        "samesite": settings.COOKIE_SAMESITE,
        "secure": settings.cookie_secure,
        "path": "/",
    }


def set_auth_cookies(response: Response, settings: Settings, access_token: str, refresh_token: str) -> None:
    options = _cookie_options(settings)
    response.set_cookie(
        settings.ACCESS_COOKIE_NAME,
        access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        **options,
    )
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME,
        refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **options,
    )


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    options = _cookie_options(settings)
    response.delete_cookie(settings.ACCESS_COOKIE_NAME, **options)
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, **options)


def get_client_ip(request: Request) -> str | None:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    if request.client:
        return request.client.host
    return None


def request_metadata(request: Request, device_info: str | None = None) -> TokenMetadata:
    return TokenMetadata(
        device_info=device_info,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )


def presented_refresh_secret(request: Request, settings: Settings) -> str | None:
    """Refresh secret from the cookie, or the header for non-browser clients."""
    return request.cookies.get(settings.REFRESH_COOKIE_NAME) or request.headers.get(REFRESH_TOKEN_HEADER)


def start_session(
    response: Response,
    request: Request,
    db: Session,
    auth: AuthComponents,
    user: User,
    device_info: str | None = None,
) -> None:
    """Mint an access token and a fresh refresh session and set both cookies."""
    access_token = auth.issuer.issue(Claims.from_user(user))
    refresh_token = auth.refresh_tokens.create(db, user.id, request_metadata(request, device_info))
    set_auth_cookies(response, auth.settings, access_token, refresh_token)


# -- Dependencies ----------------------------------------------------------------


def get_current_account(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> User:
    """Dependency: require a valid access token (cookie or Bearer) and load the user. 401 otherwise."""
    token = request.cookies.get(auth.settings.ACCESS_COOKIE_NAME)
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        raise InvalidCredentials("Not authenticated")
    claims = auth.issuer.validate(token)
    if claims is None:
        raise InvalidCredentials("Invalid or expired token")
    user = auth.users.get(db, claims.user_id)
    if user is None:
        raise InvalidCredentials("Invalid or expired token")
    return user


def get_current_user(
    account: Annotated[User, Depends(get_current_account)],
) -> Claims:
    """Dependency for any route that needs "caller is authenticated". Admin flag is read fresh from the DB."""
    return Claims.from_user(account)


def require_admin(
    current_user: Annotated[Claims, Depends(get_current_user)],
) -> Claims:
    """Dependency: require an authenticated global admin. Raises 403 for everyone else."""
    if not current_user.is_global_admin:
        raise Forbidden("Admin access required")
    return current_user


# -- Routes ----------------------------------------------------------------------


@router.post("/register", response_model=UserEnvelope)
def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> UserEnvelope:
    """
    Create an account and sign it in.
    A duplicate username gets 409; this is the one response that reveals whether a name exists.
    """
    user = auth.users.create(db, body.username, body.password, full_name=body.full_name)
    start_session(response, request, db, auth, user, body.device_info)
    return UserEnvelope(user=UserOut.model_validate(user))


@router.post("/login", response_model=UserEnvelope)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> UserEnvelope:
    """
    Verify credentials and set the access and refresh cookies.
    Every failure is the same generic 401. A legacy-hash match is upgraded after the response.
    """
    verification = auth.verifier.verify(db, body.username, body.password)
    user = verification.user
    if verification.legacy_match:
        background_tasks.add_task(
            run_legacy_migration,
            request.app.state.session_factory,
            auth.verifier,
            user.id,
            body.password,
        )
    start_session(response, request, db, auth, user, body.device_info)
    return UserEnvelope(user=UserOut.model_validate(user))


@router.post("/logout", response_model=OkResponse)
def logout(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> OkResponse:
    """Delete the session behind the presented refresh secret (if any) and clear both cookies."""
    row = auth.refresh_tokens.resolve(db, presented_refresh_secret(request, auth.settings))
    if row is not None:
        auth.refresh_tokens.revoke(db, row)
    clear_auth_cookies(response, auth.settings)
    return OkResponse()


@router.post("/refresh", response_model=UserEnvelope)
def refresh(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> UserEnvelope:
    """Rotate the refresh secret and re-issue the access cookie. 401 if missing, invalid or expired."""
    raw_secret = presented_refresh_secret(request, auth.settings)
    if not raw_secret:
        raise InvalidCredentials("Refresh token required")
    rotation = auth.refresh_tokens.rotate(db, raw_secret, request_metadata(request))
    if rotation is None:
        raise InvalidCredentials("Invalid refresh token")
    set_auth_cookies(response, auth.settings, rotation.access_token, rotation.refresh_token)
    return UserEnvelope(user=UserOut.model_validate(rotation.user))


@router.get("/me", response_model=UserEnvelope)
def me(account: Annotated[User, Depends(get_current_account)]) -> UserEnvelope:
    """Return the authenticated user's profile (no password fields)."""
    return UserEnvelope(user=UserOut.model_validate(account))


@router.post("/change-password", response_model=UserEnvelope)
def change_password(
    body: ChangePasswordRequest,
    request: Request,
    response: Response,
    account: Annotated[User, Depends(get_current_account)],
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> UserEnvelope:
    """
    Change the caller's password after re-verifying the current one.
    Every other session is signed out; this device gets a fresh pair.
    """
    try:
        auth.verifier.verify(db, account.username, body.current_password)
    except InvalidCredentials:
        raise MalformedRequest("Current password is incorrect") from None
    auth.users.set_password(db, account, body.new_password)
    auth.refresh_tokens.revoke_all_for_user(db, account.id)
    start_session(response, request, db, auth, account)
    logger.info("User id=%s changed their password", account.id)
    return UserEnvelope(user=UserOut.model_validate(account))


@router.post("/recovery", response_model=RecoveryResponse)
def recovery(
    body: RecoveryRequest,
    db: Annotated[Session, Depends(get_db)],
    auth: Annotated[AuthComponents, Depends(get_auth)],
) -> RecoveryResponse:
    """
    Create or reset the admin account with the operator RECOVERY_TOKEN.
    503 when recovery is not configured, 401 for a wrong token, 400 for a short password.
    """
    user, created = auth.recovery.reset_admin(
        db, body.admin_username, body.recovery_token, body.new_password
    )
    action = "created" if created else "reset"
    return RecoveryResponse(success=True, message=f"Admin password {action} for {user.username}")
