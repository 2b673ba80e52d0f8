from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String

from deptrecords.database import Base
from deptrecords.utils.timeutils import utcnow


class Student(Base):
    __tablename__ = "students"

    id = Column(String, primary_key=True, index=True)
    enrollment_number = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    semester = Column(Integer, nullable=False)

    # код класса; если задан, Class.student_ids обязан содержать этого студента
    class_id = Column(String, index=True, nullable=True)

    owner_hod_id = Column(String, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    version = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("semester >= 1", name="ck_student_semester"),
    )
    __mapper_args__ = {"version_id_col": version}
