from sqlalchemy import Column, DateTime, Integer, JSON, String
from sqlalchemy.ext.mutable import MutableList

from deptrecords.database import Base
from deptrecords.models.mixins import PasswordMixin
from deptrecords.utils.timeutils import utcnow


class Professor(PasswordMixin, Base):
    __tablename__ = "professors"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)

    owner_hod_id = Column(String, index=True, nullable=False)
    # коды классов (Class.class_id); согласованность держит utils/consistency.py
    class_ids = Column(MutableList.as_mutable(JSON), default=list, nullable=False)

    refresh_jti = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    role = "professor"
