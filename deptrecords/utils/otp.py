"""
Одноразовые коды подтверждения почты.

Код: строка из 6 цифр (ведущие нули сохраняются), срок жизни задаётся
OTP_EXPIRY_MINUTES. Удаление кода после успешной проверки и перезапись при
повторной отправке делает вызывающий (utils/registration.py).
"""
from __future__ import annotations

import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from deptrecords.config import settings
from deptrecords.utils.timeutils import utcnow

OTP_LENGTH = 6


@dataclass(frozen=True)
class Otp:
    code: str
    expires_at: datetime


def generate_otp(now: datetime | None = None) -> Otp:
    now = now or utcnow()
    code = f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"
    return Otp(code=code, expires_at=now + timedelta(minutes=settings.OTP_EXPIRY_MINUTES))


def verify_otp(
    submitted: str | None,
    stored: str | None,
    expires_at: datetime | None,
    now: datetime | None = None,
) -> bool:
    if not submitted or not stored or expires_at is None:
        return False
    if not isinstance(submitted, str) or not submitted.isdigit():
        return False
    if not hmac.compare_digest(submitted.encode(), stored.encode()):
        return False
    return (now or utcnow()) <= expires_at
