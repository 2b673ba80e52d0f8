import os
from pathlib import Path

from dotenv import load_dotenv

# .env рядом с пакетом; переменные окружения имеют приоритет
load_dotenv(Path(__file__).with_name(".env"))


def _bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


class Settings:
    """
    Настройки сервиса из окружения.
    Читаются один раз при импорте; код обращается к атрибутам в момент вызова.
    """

    def __init__(self) -> None:
        default_db = f"sqlite:///{Path(__file__).with_name('app.db')}"
        self.DATABASE_URL: str = (os.getenv("DATABASE_URL") or "").strip() or default_db

        self.JWT_SECRET: str = os.getenv("JWT_SECRET", "")
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES: int = _int("ACCESS_TOKEN_EXPIRE_MINUTES", 7 * 24 * 60)
        self.REFRESH_TOKEN_EXPIRE_DAYS: int = _int("REFRESH_TOKEN_EXPIRE_DAYS", 30)
        self.REFRESH_TOKEN_ROTATION: bool = _bool("REFRESH_TOKEN_ROTATION", True)

        self.OTP_EXPIRY_MINUTES: int = _int("OTP_EXPIRY_MINUTES", 10)
        self.BCRYPT_ROUNDS: int = _int("BCRYPT_ROUNDS", 10)

        self.SMTP_HOST: str = os.getenv("SMTP_HOST", "")
        self.SMTP_PORT: int = _int("SMTP_PORT", 587)
        self.SMTP_USER: str = os.getenv("SMTP_USER", "")
        self.SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
        self.SMTP_USE_TLS: bool = _bool("SMTP_USE_TLS", True)
        self.EMAIL_FROM: str = os.getenv("EMAIL_FROM", "no-reply@deptrecords.local")

        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_JSON: bool = _bool("LOG_JSON", False)


settings = Settings()
