"""
Согласованность связей класс <-> студенты <-> преподаватели.

Хранилище ничего не проверяет: Class.student_ids, Class.professor_ids,
Professor.class_ids и Student.class_id обновляются только здесь.
Функции не делают commit: вызывающий оборачивает их в database.atomic(),
так что обе стороны связи меняются одним шагом или не меняются вовсе.
Пакетные операции сначала проверяют все id и только потом что-то меняют.
Class, Professor и Student версионируются (version_id_col): если связанную
запись успел изменить параллельный запрос, flush падает и atomic() откатывает
шаг целиком.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from deptrecords.errors import NotFoundError, ValidationError
from deptrecords.models import Class, Professor, Student
from deptrecords.utils.ownership import get_owned_class

logger = logging.getLogger(__name__)


def _unique(ids: Iterable[str]) -> List[str]:
    seen: dict = {}
    for item in ids:
        if not isinstance(item, str) or not item:
            raise ValidationError("Ids must be non-empty strings")
        seen.setdefault(item, None)
    if not seen:
        raise ValidationError("Please provide at least one id")
    return list(seen)


def _without(values: Iterable[str], item: str) -> List[str]:
    return [v for v in values if v != item]


def _load_students(db: Session, hod_id: str, student_ids: List[str]) -> List[Student]:
    students = (
        db.query(Student)
        .filter(Student.id.in_(student_ids), Student.owner_hod_id == hod_id)
        .all()
    )
    if len(students) != len(student_ids):
        raise NotFoundError("One or more students not found")
    return students


def _load_professors(db: Session, hod_id: str, professor_ids: List[str]) -> List[Professor]:
    professors = (
        db.query(Professor)
        .filter(Professor.id.in_(professor_ids), Professor.owner_hod_id == hod_id)
        .all()
    )
    if len(professors) != len(professor_ids):
        raise NotFoundError("One or more professors not found")
    return professors


def _detach_from_class(db: Session, student: Student) -> None:
    if not student.class_id:
        return
    old = (
        db.query(Class)
        .filter(Class.class_id == student.class_id, Class.owner_hod_id == student.owner_hod_id)
        .first()
    )
    if old is not None:
        old.student_ids = _without(old.student_ids, student.id)
    student.class_id = None


# ------------------------------------------------------------
# Удаление
# ------------------------------------------------------------

def delete_class(db: Session, cls: Class) -> None:
    students = (
        db.query(Student)
        .filter(Student.owner_hod_id == cls.owner_hod_id, Student.class_id == cls.class_id)
        .all()
    )
    for student in students:
        student.class_id = None

    professors = db.query(Professor).filter(Professor.owner_hod_id == cls.owner_hod_id).all()
    for professor in professors:
        if cls.class_id in professor.class_ids:
            professor.class_ids = _without(professor.class_ids, cls.class_id)

    db.delete(cls)
    logger.info(
        "Class %s deleted; detached %d students and %d professors",
        cls.class_id, len(students), len(cls.professor_ids),
    )


def delete_professor(db: Session, professor: Professor) -> None:
    classes = db.query(Class).filter(Class.owner_hod_id == professor.owner_hod_id).all()
    for cls in classes:
        if professor.id in cls.professor_ids:
            cls.professor_ids = _without(cls.professor_ids, professor.id)
    db.delete(professor)


def delete_student(db: Session, student: Student) -> None:
    _detach_from_class(db, student)
    db.delete(student)


# ------------------------------------------------------------
# Перевод и назначение
# ------------------------------------------------------------

def move_student(db: Session, student: Student, class_code: Optional[str]) -> None:
    """
    Переводит студента в класс `class_code` (None: убрать из класса).
    Новый класс проверяется до любых изменений: если его нет,
    class_id студента остаётся прежним.
    """
    if class_code == student.class_id:
        return
    target = get_owned_class(db, student.owner_hod_id, class_code) if class_code else None

    _detach_from_class(db, student)
    if target is not None:
        if student.id not in target.student_ids:
            target.student_ids.append(student.id)
        student.class_id = target.class_id


def assign_students(db: Session, cls: Class, student_ids: Iterable[str]) -> List[Student]:
    ids = _unique(student_ids)
    students = _load_students(db, cls.owner_hod_id, ids)

    for student in students:
        if student.class_id != cls.class_id:
            _detach_from_class(db, student)
            student.class_id = cls.class_id
        if student.id not in cls.student_ids:
            cls.student_ids.append(student.id)
    return students


def remove_students(db: Session, cls: Class, student_ids: Iterable[str]) -> List[Student]:
    ids = _unique(student_ids)
    students = _load_students(db, cls.owner_hod_id, ids)

    for student in students:
        if student.class_id == cls.class_id:
            student.class_id = None
    remaining = set(ids)
    cls.student_ids = [sid for sid in cls.student_ids if sid not in remaining]
    return students


def assign_professors(db: Session, cls: Class, professor_ids: Iterable[str]) -> List[Professor]:
    ids = _unique(professor_ids)
    professors = _load_professors(db, cls.owner_hod_id, ids)

    for professor in professors:
        if cls.class_id not in professor.class_ids:
            professor.class_ids.append(cls.class_id)
        if professor.id not in cls.professor_ids:
            cls.professor_ids.append(professor.id)
    return professors


def remove_professors(db: Session, cls: Class, professor_ids: Iterable[str]) -> List[Professor]:
    ids = _unique(professor_ids)
    professors = _load_professors(db, cls.owner_hod_id, ids)

    for professor in professors:
        professor.class_ids = _without(professor.class_ids, cls.class_id)
    remaining = set(ids)
    cls.professor_ids = [pid for pid in cls.professor_ids if pid not in remaining]
    return professors
