"""
Stateless session tokens.

Tokens are HS256 JWTs binding an account id (`sub`) and email. Signature
verification is delegated to python-jose (constant-time HMAC comparison);
expiry is checked here against an injectable clock so lifetimes can be tested
without sleeping.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from jose import JWTError, jwt

from streamia_backend.errors import ConfigurationError
from streamia_backend.settings import Settings
from streamia_backend.utils.clock import utc_now

logger = logging.getLogger(__name__)

DEFAULT_LIFETIME = timedelta(hours=2)


@dataclass(frozen=True)
class TokenClaims:
    account_id: str
    email: str


class TokenIssuer:
    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        lifetime: timedelta = DEFAULT_LIFETIME,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if not secret:
            raise ConfigurationError("Token signing key is empty")
        self._secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime
        self._clock = clock

    def issue(self, account_id: str, email: str) -> str:
        issued_at = self._clock()
        claims = {
            "sub": str(account_id),
            "email": email,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.lifetime).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims | None:
        """Return the bound claims, or None when the token is invalid or expired."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError as e:
            logger.debug(f"JWT decode error: {e}")
            return None

        account_id = payload.get("sub")
        email = payload.get("email")
        exp = payload.get("exp")
        if not account_id or not isinstance(email, str) or not isinstance(exp, (int, float)):
            return None
        if self._clock().timestamp() >= exp:
            return None
        return TokenClaims(account_id=str(account_id), email=email)


def resolve_signing_key(settings: Settings) -> str:
    """
    The configured signing key.

    Outside development a missing key is fatal; in development a random
    per-process key is generated so tokens never use a guessable default.
    """
    if settings.jwt_secret:
        return settings.jwt_secret
    if settings.is_development:
        logger.warning("JWT_SECRET is not set; using a random key for this development process")
        return secrets.token_hex(32)
    raise ConfigurationError(f"JWT_SECRET must be set when APP_ENV={settings.app_env}")


def build_token_issuer(settings: Settings) -> TokenIssuer:
    return TokenIssuer(
        resolve_signing_key(settings),
        algorithm=settings.jwt_algorithm,
        lifetime=timedelta(hours=settings.jwt_expires_hours),
    )
