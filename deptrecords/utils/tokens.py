"""
Подписанные токены сессии и токены обновления (JWT, python-jose).

Любая ошибка проверки (подпись, формат, срок или тип) сводится к одному
исключению, чтобы по ответу нельзя было понять причину.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from jose import JWTError, jwt

from deptrecords.config import settings
from deptrecords.errors import InternalError, InvalidRefreshTokenError, InvalidTokenError

ROLES = ("hod", "professor")
ACCESS_TYPE = "access"
REFRESH_TYPE = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    id: str
    role: str
    issued_at: datetime
    expires_at: datetime
    jti: Optional[str] = None


def _secret() -> str:
    if not settings.JWT_SECRET:
        raise InternalError("Token signing is not configured")
    return settings.JWT_SECRET


def _encode(payload: Dict[str, Any], expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = dict(payload)
    to_encode.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, _secret(), algorithm=settings.JWT_ALGORITHM)


def _decode(token: str, expected_type: str) -> TokenClaims:
    """ValueError на любой проблеме с токеном."""
    if not token or not isinstance(token, str):
        raise ValueError("empty token")
    try:
        payload = jwt.decode(token, _secret(), algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("undecodable token") from exc

    if payload.get("type") != expected_type:
        raise ValueError("wrong token type")
    principal_id = payload.get("id")
    role = payload.get("role")
    if not isinstance(principal_id, str) or not principal_id or role not in ROLES:
        raise ValueError("malformed payload")
    try:
        issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("malformed time claims") from exc

    return TokenClaims(
        id=principal_id,
        role=role,
        issued_at=issued_at,
        expires_at=expires_at,
        jti=payload.get("jti"),
    )


def create_access_token(principal_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    if role not in ROLES:
        raise ValueError(f"unknown role: {role}")
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode({"id": principal_id, "role": role, "type": ACCESS_TYPE}, expires_delta)


def decode_access_token(token: str) -> TokenClaims:
    try:
        return _decode(token, ACCESS_TYPE)
    except ValueError:
        raise InvalidTokenError() from None


def create_refresh_token(
    principal_id: str, role: str, expires_delta: Optional[timedelta] = None
) -> Tuple[str, str]:
    """Возвращает (токен, jti). jti хранится у владельца и меняется при ротации."""
    if role not in ROLES:
        raise ValueError(f"unknown role: {role}")
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    jti = uuid.uuid4().hex
    token = _encode(
        {"id": principal_id, "role": role, "type": REFRESH_TYPE, "jti": jti},
        expires_delta,
    )
    return token, jti


def decode_refresh_token(token: str) -> TokenClaims:
    try:
        claims = _decode(token, REFRESH_TYPE)
    except ValueError:
        raise InvalidRefreshTokenError() from None
    if not claims.jti:
        raise InvalidRefreshTokenError()
    return claims


def expires_within(token: str, threshold: timedelta, now: Optional[datetime] = None) -> bool:
    """
    Истекает ли токен в ближайшие `threshold` (без проверки подписи,
    для клиента, который держит токен у себя). Нечитаемый токен считается истёкшим.
    """
    try:
        exp = int(jwt.get_unverified_claims(token)["exp"])
    except (JWTError, KeyError, TypeError, ValueError):
        return True
    now = now or datetime.now(timezone.utc)
    return datetime.fromtimestamp(exp, tz=timezone.utc) <= now + threshold
