"""
Symmetric-key JWT authentication for the FHIR Facade.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Set, Tuple

from fastapi import Request
from jose import JWTError, jwt

from shared.errors import AuthenticationError
from shared.logging import get_logger, set_user_context

ALGORITHM = "HS256"


@dataclass(frozen=True)
class AuthContext:
    """Authenticated request context derived from a verified JWT."""

    subject: str
    roles: Set[str]
    claims: Dict[str, Any]
    token: str


class JWTAuthenticator:
    """Validates HS256 bearer tokens: signature, issuer, audience and expiry."""

    def __init__(
        self,
        signing_key: str,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
    ) -> None:
        self.signing_key = signing_key
        self.issuer = issuer
        self.audience = audience
        self.logger = get_logger("fhir.auth.jwt")

    async def authenticate(self, request: Request) -> AuthContext:
        """Authenticate the incoming request using the Authorization bearer token."""
        authorization = request.headers.get("Authorization")
        if not authorization or not authorization.startswith("Bearer "):
            raise AuthenticationError("Missing or invalid Authorization header")

        token = authorization[7:].strip()
        if not token:
            raise AuthenticationError("Authorization header contained empty bearer token")

        claims = self.validate_token(token)
        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise AuthenticationError("JWT missing subject claim")

        roles = self._extract_roles(claims)
        context = AuthContext(subject=subject, roles=roles, claims=claims, token=token)
        request.state.user_info = {"user_id": subject, "roles": sorted(roles)}
        request.state.auth_context = context
        set_user_context(subject)
        return context

    def validate_token(self, token: str) -> Dict[str, Any]:
        """Validate the JWT and return its claims."""
        options: Dict[str, Any] = {
            "verify_aud": self.audience is not None,
            "verify_iss": self.issuer is not None,
        }
        try:
            return jwt.decode(
                token,
                self.signing_key,
                algorithms=[ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                options=options,
            )
        except JWTError as exc:
            self.logger.warning("JWT validation failed", error=str(exc))
            raise AuthenticationError("JWT validation failed", details={"error": str(exc)}) from exc

    def _extract_roles(self, claims: Dict[str, Any]) -> Set[str]:
        roles: Set[str] = set()

        role = claims.get("role")
        if isinstance(role, str):
            roles.add(role)

        direct_roles = claims.get("roles")
        if isinstance(direct_roles, list):
            roles.update(item for item in direct_roles if isinstance(item, str))

        return roles


class TokenIssuer:
    """Issues short-lived tokens for the single configured credential pair."""

    def __init__(
        self,
        signing_key: str,
        issuer: str,
        audience: str,
        *,
        username: str,
        password: str,
        expiry_minutes: int = 60,
        role: str = "Admin",
    ) -> None:
        self.signing_key = signing_key
        self.issuer = issuer
        self.audience = audience
        self.username = username
        self.password = password
        self.expiry = timedelta(minutes=expiry_minutes)
        self.role = role
        self.logger = get_logger("fhir.auth.issuer")

    def verify_credentials(self, username: str, password: str) -> bool:
        username_ok = hmac.compare_digest(username.encode(), self.username.encode())
        password_ok = hmac.compare_digest(password.encode(), self.password.encode())
        return username_ok and password_ok

    def login(self, username: str, password: str) -> Tuple[str, datetime]:
        """Return ``(token, expires_at)`` or raise ``AuthenticationError``."""
        if not self.verify_credentials(username, password):
            self.logger.warning("Login rejected", username=username)
            raise AuthenticationError("Invalid credentials")

        token, expires_at = self.issue(username)
        self.logger.info("Token issued", username=username, expires_at=expires_at.isoformat())
        return token, expires_at

    def issue(self, subject: str) -> Tuple[str, datetime]:
        now = datetime.now(timezone.utc)
        expires_at = now + self.expiry
        claims = {
            "sub": subject,
            "name": subject,
            "role": self.role,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(claims, self.signing_key, algorithm=ALGORITHM), expires_at
