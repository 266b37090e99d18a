from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from core.config_loader import settings

bearer_scheme = HTTPBearer(auto_error=False)

SCHEDULER_ROLES = frozenset({"manager", "hr", "admin"})
ADMIN_ROLES = frozenset({"hr", "admin"})


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, resolved from the identity provider's token."""

    id: int
    org_id: int
    role: str = "employee"

    @property
    def is_scheduler(self) -> bool:
        return self.role in SCHEDULER_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def decode_access_token(token: str) -> dict[str, Any]:
    options = {"verify_aud": settings.JWT_AUDIENCE is not None}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options=options,
        )
    except JWTError as exc:
        raise HTTPException(status_code=401, detail="invalid token") from exc


def actor_from_claims(claims: dict[str, Any]) -> Actor:
    try:
        return Actor(
            id=int(claims["sub"]),
            org_id=int(claims["org_id"]),
            role=str(claims.get("role") or "employee").lower(),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=401, detail="token is missing actor claims") from exc


def get_current_active_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="not authenticated")
    return actor_from_claims(decode_access_token(credentials.credentials))
