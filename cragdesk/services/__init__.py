"""Auth services and the component bundle the application is wired with."""

from dataclasses import dataclass

from cragdesk.core.config import Settings
from cragdesk.services.credentials import CredentialVerifier
from cragdesk.services.recovery import RecoveryService
from cragdesk.services.refresh_tokens import RefreshTokenStore
from cragdesk.services.sessions import SessionManager
from cragdesk.services.tokens import TokenIssuer
from cragdesk.services.user_store import UserStore


@dataclass(frozen=True)
class AuthComponents:
    settings: Settings
    users: UserStore
    verifier: CredentialVerifier
    issuer: TokenIssuer
    refresh_tokens: RefreshTokenStore
    sessions: SessionManager
    recovery: RecoveryService


def build_auth_components(settings: Settings) -> AuthComponents:
    """Construct every auth component from one Settings value."""
    users = UserStore(settings)
    issuer = TokenIssuer(settings)
    refresh_tokens = RefreshTokenStore(settings, issuer)
    return AuthComponents(
        settings=settings,
        users=users,
        verifier=CredentialVerifier(settings, users),
        issuer=issuer,
        refresh_tokens=refresh_tokens,
        sessions=SessionManager(refresh_tokens),
        recovery=RecoveryService(settings, users, refresh_tokens),
    )


__all__ = [
    "AuthComponents",
    "CredentialVerifier",
    "RecoveryService",
    "RefreshTokenStore",
    "SessionManager",
    "TokenIssuer",
    "UserStore",
    "build_auth_components",
]
