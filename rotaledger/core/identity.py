"""
Identity adapter — verifies identity-provider tokens.

Tokens are issued elsewhere; this module only checks them and extracts
the external user id and email. Verification sits behind the
``IdentityVerifier`` protocol so tests and alternative providers can
swap it on ``app.state.identity``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from jose import JWTError, jwt
from jose.exceptions import JWKError

from rotaledger.core.config import Settings
from rotaledger.core.exceptions import Unauthorized, Upstream


@dataclass(frozen=True)
class VerifiedIdentity:
    uid: str
    email: str


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> VerifiedIdentity: ...


class JWTIdentityVerifier:
    """Verify signed JWTs (e.g. provider ID tokens) with a configured key."""

    def __init__(
        self,
        key: str,
        algorithms: list[str],
        audience: str | None = None,
        issuer: str | None = None,
    ) -> None:
        self._key = key
        self._algorithms = algorithms
        self._audience = audience
        self._issuer = issuer

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTIdentityVerifier":
        return cls(
            key=settings.IDENTITY_JWT_KEY,
            algorithms=settings.IDENTITY_JWT_ALGORITHMS,
            audience=settings.IDENTITY_AUDIENCE,
            issuer=settings.IDENTITY_ISSUER,
        )

    def verify(self, token: str) -> VerifiedIdentity:
        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer,
                options={"verify_aud": self._audience is not None},
            )
        except JWKError as exc:
            raise Upstream("Identity provider key is unusable") from exc
        except JWTError as exc:
            raise Unauthorized("Invalid or expired token") from exc

        # Firebase-style tokens carry the uid in both ``sub`` and ``user_id``
        uid = payload.get("sub") or payload.get("user_id")
        email = payload.get("email")
        if not uid or not email:
            raise Unauthorized("Token is missing the subject or email claim")
        return VerifiedIdentity(uid=str(uid), email=str(email).strip().lower())
