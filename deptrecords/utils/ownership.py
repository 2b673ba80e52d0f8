"""
Поиск записей в пределах одного заведующего.

Чужая запись и несуществующая неразличимы: одно и то же исключение
с одним и тем же текстом.
"""
from sqlalchemy.orm import Session

from deptrecords.errors import NotFoundError
from deptrecords.models import Class, Professor, Student


def get_owned_class(db: Session, hod_id: str, class_code: str) -> Class:
    cls = (
        db.query(Class)
        .filter(Class.class_id == class_code, Class.owner_hod_id == hod_id)
        .first()
    )
    if cls is None:
        raise NotFoundError.for_resource("Class")
    return cls


def get_owned_professor(db: Session, hod_id: str, professor_id: str) -> Professor:
    professor = (
        db.query(Professor)
        .filter(Professor.id == professor_id, Professor.owner_hod_id == hod_id)
        .first()
    )
    if professor is None:
        raise NotFoundError.for_resource("Professor")
    return professor


def get_owned_student(db: Session, hod_id: str, student_id: str) -> Student:
    student = (
        db.query(Student)
        .filter(Student.id == student_id, Student.owner_hod_id == hod_id)
        .first()
    )
    if student is None:
        raise NotFoundError.for_resource("Student")
    return student
