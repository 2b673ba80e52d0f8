from sqlalchemy import Boolean, Column, DateTime, String

from deptrecords.database import Base
from deptrecords.models.mixins import PasswordMixin
from deptrecords.utils.timeutils import utcnow


class HOD(PasswordMixin, Base):
    """
    Заведующий кафедрой. Регистрируется сам, активируется кодом из письма.
    Владеет всеми созданными им классами, преподавателями и студентами.
    """
    __tablename__ = "hods"

    id = Column(String, primary_key=True, index=True)
    institution_name = Column(String, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)

    verified = Column(Boolean, default=False, nullable=False)
    # не более одного действующего кода; повторная отправка перезаписывает
    otp_code = Column(String, nullable=True)
    otp_expires_at = Column(DateTime, nullable=True)

    refresh_jti = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    role = "hod"
