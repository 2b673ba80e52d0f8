"""
Отправка кодов подтверждения по почте (SMTP).

Если SMTP_HOST не задан, письмо не отправляется, в лог пишется предупреждение.
"""
from __future__ import annotations

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage

from deptrecords.config import settings
from deptrecords.errors import InternalError

logger = logging.getLogger(__name__)


class Mailer(ABC):
    @abstractmethod
    def send_otp(self, email: str, code: str, institution_name: str) -> None:
        """Отправляет код подтверждения на адрес email."""


class SmtpMailer(Mailer):
    def __init__(self, host: str, port: int, user: str = "", password: str = "",
                 use_tls: bool = True, sender: str = "", timeout: int = 10):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "SmtpMailer":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            sender=settings.EMAIL_FROM,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.host)

    def build_message(self, email: str, code: str, institution_name: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = "Your verification code"
        msg["From"] = self.sender
        msg["To"] = email
        msg.set_content(
            f"Hello {institution_name},\n\n"
            f"Your verification code is {code}.\n"
            f"It expires in {settings.OTP_EXPIRY_MINUTES} minutes.\n"
        )
        return msg

    def send_otp(self, email: str, code: str, institution_name: str) -> None:
        if not self.is_configured:
            logger.warning("SMTP is not configured, verification email to %s skipped", email)
            return

        msg = self.build_message(email, code, institution_name)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send verification email to %s: %s", email, exc)
            raise InternalError("Failed to send verification email") from exc
        logger.info("Verification email sent to %s", email)


def get_mailer() -> Mailer:
    return SmtpMailer.from_settings()
