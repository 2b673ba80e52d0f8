"""
Регистрация заведующего, подтверждение почты кодом и вход.

Состояния учётной записи: PendingVerification (verified=False, есть код)
-> Verified. Токены выдаются только подтверждённым учётным записям.
Ошибки входа не различают "нет такого логина" и "неверный пароль".
"""
from __future__ import annotations

import logging
from typing import Dict, Tuple
from uuid import uuid4

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from deptrecords.errors import (
    AlreadyVerifiedError,
    AuthorizationError,
    ConflictError,
    InvalidCredentialsError,
    InvalidOtpError,
    NotFoundError,
)
from deptrecords.models import HOD, Professor
from deptrecords.utils.mailer import Mailer
from deptrecords.utils.otp import generate_otp, verify_otp
from deptrecords.utils.passwords import dummy_verify
from deptrecords.utils.sessions import issue_session

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _raise_hod_conflict(db: Session, username: str, email: str) -> None:
    existing = db.query(HOD).filter(or_(HOD.email == email, HOD.username == username)).first()
    if existing is None:
        return
    if existing.email == email:
        raise ConflictError("Email already registered")
    raise ConflictError("Username already taken")


def _get_pending_hod(db: Session, email: str) -> HOD:
    hod = db.query(HOD).filter(HOD.email == _normalize_email(email)).first()
    if hod is None:
        raise NotFoundError.for_resource("HOD")
    if hod.verified:
        raise AlreadyVerifiedError()
    return hod


def register_hod(
    db: Session,
    mailer: Mailer,
    institution_name: str,
    username: str,
    email: str,
    password: str,
) -> HOD:
    email = _normalize_email(email)
    _raise_hod_conflict(db, username, email)

    otp = generate_otp()
    hod = HOD(
        id=str(uuid4()),
        institution_name=institution_name,
        username=username,
        email=email,
        password=password,
        verified=False,
        otp_code=otp.code,
        otp_expires_at=otp.expires_at,
    )
    db.add(hod)
    try:
        db.commit()
    except IntegrityError:
        # параллельная регистрация с тем же логином/почтой
        db.rollback()
        _raise_hod_conflict(db, username, email)
        raise ConflictError("Username or email already registered")
    db.refresh(hod)
    logger.info("HOD %s registered, pending verification", hod.id)

    mailer.send_otp(hod.email, otp.code, hod.institution_name)
    return hod


def verify_hod_otp(db: Session, email: str, code: str) -> Tuple[HOD, Dict[str, str]]:
    hod = _get_pending_hod(db, email)
    if not verify_otp(code, hod.otp_code, hod.otp_expires_at):
        raise InvalidOtpError()

    # код одноразовый: гасим его условным UPDATE, второй параллельный запрос получит 0 строк
    consumed = (
        db.query(HOD)
        .filter(HOD.id == hod.id, HOD.verified.is_(False), HOD.otp_code == code)
        .update(
            {HOD.verified: True, HOD.otp_code: None, HOD.otp_expires_at: None},
            synchronize_session=False,
        )
    )
    if consumed != 1:
        db.rollback()
        raise InvalidOtpError()
    db.commit()
    db.refresh(hod)
    logger.info("HOD %s verified", hod.id)

    return hod, issue_session(db, hod)


def resend_hod_otp(db: Session, mailer: Mailer, email: str) -> HOD:
    hod = _get_pending_hod(db, email)
    otp = generate_otp()
    hod.otp_code = otp.code
    hod.otp_expires_at = otp.expires_at
    db.commit()

    mailer.send_otp(hod.email, otp.code, hod.institution_name)
    return hod


def login_hod(db: Session, username: str, password: str) -> Tuple[HOD, Dict[str, str]]:
    hod = db.query(HOD).filter(HOD.username == username).first()
    if hod is None:
        dummy_verify()
        raise InvalidCredentialsError()
    if not hod.check_password(password):
        raise InvalidCredentialsError()
    if not hod.verified:
        raise AuthorizationError("Email not verified. Please verify your email first.")
    return hod, issue_session(db, hod)


def login_professor(db: Session, username: str, password: str) -> Tuple[Professor, Dict[str, str]]:
    professor = db.query(Professor).filter(Professor.username == username).first()
    if professor is None:
        dummy_verify()
        raise InvalidCredentialsError()
    if not professor.check_password(password):
        raise InvalidCredentialsError()
    return professor, issue_session(db, professor)
