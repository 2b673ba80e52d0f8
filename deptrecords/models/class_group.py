from sqlalchemy import Column, DateTime, Integer, JSON, String, UniqueConstraint
from sqlalchemy.ext.mutable import MutableList

from deptrecords.database import Base
from deptrecords.utils.timeutils import utcnow


class Class(Base):
    __tablename__ = "classes"

    id = Column(String, primary_key=True, index=True)
    # внешний идентификатор, задаётся заведующим (например, "CS101-A")
    class_id = Column(String, index=True, nullable=False)
    class_name = Column(String, nullable=False)
    division = Column(String, nullable=False)

    student_ids = Column(MutableList.as_mutable(JSON), default=list, nullable=False)
    professor_ids = Column(MutableList.as_mutable(JSON), default=list, nullable=False)

    owner_hod_id = Column(String, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    # оптимистическая блокировка: запись по устаревшему чтению даёт StaleDataError
    version = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("owner_hod_id", "class_id", name="uq_class_code_per_hod"),
    )
    __mapper_args__ = {"version_id_col": version}
