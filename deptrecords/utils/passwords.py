import logging

from passlib.context import CryptContext

from deptrecords.config import settings
from deptrecords.errors import InternalError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def get_password_hash(password: str) -> str:
    try:
        return pwd_context.hash(password)
    except (ValueError, TypeError) as exc:
        logger.error("Password hashing failed: %s", type(exc).__name__)
        raise InternalError("Password hashing failed") from exc


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return pwd_context.verify(plain_password, password_hash)
    except (ValueError, TypeError):
        # нераспознанный хеш считаем несовпадением
        return False


def dummy_verify() -> None:
    """Тратит столько же времени, сколько настоящая проверка (логин не найден)."""
    pwd_context.dummy_verify()
