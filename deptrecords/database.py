import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from deptrecords.config import settings
from deptrecords.errors import ConcurrentModificationError

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL
Base = declarative_base()

if DATABASE_URL.startswith("sqlite"):
    # in-memory SQLite должна быть одной на все сессии
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Один логический шаг: commit при успехе, rollback при любой ошибке.
    Снаружи промежуточное состояние не видно. Если строку, прочитанную
    для этого шага, успел изменить другой запрос, шаг откатывается целиком
    с ConcurrentModificationError.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.info("Concurrent modification detected: %s", exc)
        raise ConcurrentModificationError() from exc
    except Exception:
        db.rollback()
        raise
