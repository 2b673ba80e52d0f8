"""
Выдача пары (токен сессии, токен обновления) и их обновление.

Сервер не хранит сессий: у владельца лежит только jti последнего выданного
токена обновления. Обновление делается как compare-and-set по этому jti: из двух
одновременных запросов с одним токеном успешен ровно один.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Type, Union

from sqlalchemy.orm import Session

from deptrecords.config import settings
from deptrecords.errors import InvalidRefreshTokenError
from deptrecords.models import HOD, Professor
from deptrecords.utils.tokens import create_access_token, create_refresh_token, decode_refresh_token

logger = logging.getLogger(__name__)

PrincipalRecord = Union[HOD, Professor]

MODELS_BY_ROLE: Dict[str, Type[PrincipalRecord]] = {
    "hod": HOD,
    "professor": Professor,
}


def _set_refresh_jti(db: Session, record: PrincipalRecord, jti: Optional[str]) -> None:
    # прямой UPDATE: не трогает version, вход не конфликтует с правкой классов
    model = type(record)
    db.query(model).filter(model.id == record.id).update(
        {model.refresh_jti: jti}, synchronize_session=False
    )
    db.commit()


def issue_session(db: Session, record: PrincipalRecord) -> Dict[str, str]:
    """Новый токен сессии и новый токен обновления; прежний токен обновления перестаёт работать."""
    refresh_token, jti = create_refresh_token(record.id, record.role)
    _set_refresh_jti(db, record, jti)
    return {
        "token": create_access_token(record.id, record.role),
        "refreshToken": refresh_token,
    }


def refresh_session(db: Session, refresh_token: str) -> Dict[str, str]:
    claims = decode_refresh_token(refresh_token)
    model = MODELS_BY_ROLE[claims.role]

    if not settings.REFRESH_TOKEN_ROTATION:
        record = db.query(model).filter(model.id == claims.id, model.refresh_jti == claims.jti).first()
        if record is None:
            raise InvalidRefreshTokenError()
        return {
            "token": create_access_token(claims.id, claims.role),
            "refreshToken": refresh_token,
        }

    new_refresh_token, new_jti = create_refresh_token(claims.id, claims.role)
    updated = (
        db.query(model)
        .filter(model.id == claims.id, model.refresh_jti == claims.jti)
        .update({model.refresh_jti: new_jti}, synchronize_session=False)
    )
    if updated != 1:
        db.rollback()
        logger.info("Rejected stale or unknown refresh token for %s %s", claims.role, claims.id)
        raise InvalidRefreshTokenError()
    db.commit()

    return {
        "token": create_access_token(claims.id, claims.role),
        "refreshToken": new_refresh_token,
    }


def revoke_refresh(db: Session, record: PrincipalRecord) -> None:
    _set_refresh_jti(db, record, None)
