"""
Проверка доступа для каждого запроса.

Порядок: bearer-токен из заголовка -> проверка подписи и срока -> загрузка
владельца токена -> роль -> (для заведующего) подтверждённая почта.
Принадлежность конкретных записей проверяет utils/ownership.py.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from deptrecords.database import get_db
from deptrecords.errors import AuthenticationError, AuthorizationError, InvalidTokenError
from deptrecords.models import HOD, Professor
from deptrecords.utils.tokens import TokenClaims, decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class HodPrincipal:
    hod: HOD
    role: str = "hod"

    @property
    def id(self) -> str:
        return self.hod.id


@dataclass(frozen=True)
class ProfessorPrincipal:
    professor: Professor
    role: str = "professor"

    @property
    def id(self) -> str:
        return self.professor.id


Principal = Union[HodPrincipal, ProfessorPrincipal]


def load_principal(db: Session, claims: TokenClaims) -> Principal:
    if claims.role == "hod":
        hod = db.get(HOD, claims.id)
        if hod is not None:
            return HodPrincipal(hod)
    elif claims.role == "professor":
        professor = db.get(Professor, claims.id)
        if professor is not None:
            return ProfessorPrincipal(professor)
    # удалённый или несуществующий владелец токена: как будто токена нет
    raise AuthenticationError("Token is invalid or expired")


def authenticate(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided, authorization denied")
    try:
        claims = decode_access_token(credentials.credentials)
    except InvalidTokenError:
        raise AuthenticationError("Token is invalid or expired") from None
    return load_principal(db, claims)


def require_roles(*roles: str) -> Callable[..., Principal]:
    allowed = frozenset(roles)

    def dependency(principal: Principal = Depends(authenticate)) -> Principal:
        if allowed and principal.role not in allowed:
            raise AuthorizationError("Access denied for this role")
        if isinstance(principal, HodPrincipal):
            if not principal.hod.verified:
                raise AuthorizationError("Email verification required")
        elif not isinstance(principal, ProfessorPrincipal):
            raise AuthorizationError()
        return principal

    return dependency


def get_current_hod(principal: HodPrincipal = Depends(require_roles("hod"))) -> HOD:
    return principal.hod


def get_current_professor(principal: ProfessorPrincipal = Depends(require_roles("professor"))) -> Professor:
    return principal.professor